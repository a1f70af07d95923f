"""
Normalization of raw GitHub release payloads into Release records.
"""

from typing import Any, Dict, List, Optional, Tuple

from openjdk_api.constants import CHECKSUM_SUFFIX
from openjdk_api.log_utils import logger

from .filenames import is_installer, parse_filename, split_extension
from .interfaces import Binary, PlatformInfo, Release, VersionData
from .version import parse_version


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _valid_assets(raw_release: Dict[str, Any]) -> List[Dict[str, Any]]:
    assets = raw_release.get("assets")
    if not isinstance(assets, list):
        return []
    return [
        asset
        for asset in assets
        if isinstance(asset, dict) and isinstance(asset.get("name"), str)
    ]


class ReleaseNormalizer:
    """
    Turns one raw upstream release into a Release.

    Checksum sidecars (`*.sha256.txt`) never become binaries; they are matched
    by filename prefix to the archive or installer they describe. Installers
    (.msi/.pkg) are attached to the archive sharing their stem, or stand alone
    when no such archive exists. Assets whose names do not parse are dropped.
    """

    def normalize(self, raw_release: Dict[str, Any], repo_was_legacy: bool) -> Release:
        """
        Build a Release from a raw GitHub release object.

        Args:
            raw_release: One element of the releases endpoint payload.
            repo_was_legacy: True when the release came from a legacy per-implementation repository.

        Returns:
            Release whose binaries list may be empty; callers drop empty releases.
        """
        tag_name = _as_str(raw_release.get("tag_name")) or ""
        version_data = parse_version(tag_name)

        assets = _valid_assets(raw_release)
        checksums = {
            asset["name"]: _as_str(asset.get("browser_download_url"))
            for asset in assets
            if asset["name"].endswith(CHECKSUM_SUFFIX)
        }
        candidates = [
            asset for asset in assets if not asset["name"].endswith(CHECKSUM_SUFFIX)
        ]

        archives: List[Tuple[Dict[str, Any], PlatformInfo]] = []
        installers: Dict[str, Tuple[Dict[str, Any], PlatformInfo]] = {}
        for asset in candidates:
            info = parse_filename(asset["name"], tag_name)
            if info is None:
                logger.debug(
                    "Dropping asset %s of release %s: unrecognised filename",
                    asset["name"],
                    tag_name or "<unknown>",
                )
                continue
            if is_installer(asset["name"]):
                stem = self._stem(asset["name"])
                installers[stem] = (asset, info)
            else:
                archives.append((asset, info))

        binaries: List[Binary] = []
        for asset, info in archives:
            installer = installers.pop(self._stem(asset["name"]), None)
            binaries.append(
                self._form_binary(asset, info, version_data, checksums, installer)
            )
        # Installers whose archive is missing are still downloadable on their own
        for asset, info in installers.values():
            binaries.append(self._form_binary(asset, info, version_data, checksums))

        return Release(
            release_name=tag_name,
            release_link=_as_str(raw_release.get("html_url")),
            timestamp=_as_str(raw_release.get("published_at")),
            release=not bool(raw_release.get("prerelease", False)),
            binaries=binaries,
            download_count=sum(binary.total_download_count for binary in binaries),
            old_repo=repo_was_legacy,
            version_data=version_data,
        )

    @staticmethod
    def _stem(name: str) -> str:
        split = split_extension(name)
        return split[0] if split else name

    def _checksum_link(self, name: str, checksums: Dict[str, Optional[str]]) -> Optional[str]:
        for candidate in (f"{self._stem(name)}{CHECKSUM_SUFFIX}", f"{name}{CHECKSUM_SUFFIX}"):
            link = checksums.get(candidate)
            if link:
                return link
        return None

    def _form_binary(
        self,
        asset: Dict[str, Any],
        info: PlatformInfo,
        version_data: VersionData,
        checksums: Dict[str, Optional[str]],
        installer: Optional[Tuple[Dict[str, Any], PlatformInfo]] = None,
    ) -> Binary:
        installer_fields: Dict[str, Any] = {}
        if installer is not None:
            installer_asset = installer[0]
            installer_fields = {
                "installer_name": installer_asset["name"],
                "installer_link": _as_str(installer_asset.get("browser_download_url")),
                "installer_size": _as_int(installer_asset.get("size")),
                "installer_checksum_link": self._checksum_link(
                    installer_asset["name"], checksums
                ),
                "installer_download_count": _as_int(
                    installer_asset.get("download_count")
                ),
            }

        return Binary(
            os=info.os,
            architecture=info.architecture,
            binary_type=info.binary_type,
            openjdk_impl=info.openjdk_impl,
            heap_size=info.heap_size,
            binary_name=asset["name"],
            binary_link=_as_str(asset.get("browser_download_url")) or "",
            binary_size=_as_int(asset.get("size")),
            checksum_link=self._checksum_link(asset["name"], checksums),
            version=info.version,
            version_data=version_data,
            download_count=_as_int(asset.get("download_count")),
            updated_at=_as_str(asset.get("updated_at")),
            **installer_fields,
        )


_normalizer = ReleaseNormalizer()


def normalize(raw_release: Dict[str, Any], repo_was_legacy: bool) -> Release:
    """Normalize one raw release with the shared normalizer; see ReleaseNormalizer.normalize."""
    return _normalizer.normalize(raw_release, repo_was_legacy)
