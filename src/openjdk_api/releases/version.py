"""
Version parsing and ordering for OpenJDK release names.

Two grammars are supported. Releases up to Java 8 use the legacy form
(`jdk8u162-b12_openj9-0.8.0`); later releases follow JEP 223
(`jdk-11.0.1+13`). See http://openjdk.java.net/jeps/223 and
http://openjdk.java.net/jeps/322.

    VNUM           = $MAJOR(.$MINOR(.$SECURITY)?)?
    VERSION_STRING = $VNUM(-$PRE)?\\+$BUILD(-$OPT)?
                   | $VNUM-$PRE(-$OPT)?
                   | $VNUM(+-$OPT)?

Legacy names are mapped onto the same fields (update -> security, minor 0)
so both eras share one ordering.
"""

import re
from typing import Any, Callable, List, Optional, Tuple

from openjdk_api.utils import natural_sort_key

from .interfaces import Release, VersionData

_VNUM = r"(?P<major>[0-9]+)(?:\.(?P<minor>[0-9]+))?(?:\.(?P<security>[0-9]+))?"
_PRE = r"(?P<pre>[a-zA-Z0-9]+)"
_BUILD = r"(?P<build>[0-9]+)"
_OPT = r"(?P<opt>[-a-zA-Z0-9.]+)"


def _to_int(value: Optional[str]) -> Optional[int]:
    return int(value) if value is not None else None


def _or_zero(value: Optional[str]) -> int:
    return int(value) if value is not None else 0


class VersionParser:
    """
    Parses OpenJDK release names into VersionData.

    Tags starting with `jdk` and a digit (`jdk8u162-b12`, `jdk11u-2019-01-16-09-48`)
    belong to the legacy scheme and are only read with the legacy grammar.
    Everything else tries the JEP 223 grammars in order; the first match wins.
    Parsing never raises.
    """

    LEGACY_PREFIX_RX = re.compile(r"^jdk[0-9]")

    LEGACY_RX = re.compile(
        r"^jdk(?P<version>(?P<major>[1-8])(?:u(?P<update>[0-9]+))?-b(?P<build>[0-9]+)"
        r"(?:_(?P<opt>[-a-zA-Z0-9.]+))?)"
    )
    JEP223_RXS = (
        re.compile(rf"(?P<version>{_VNUM}(?:-{_PRE})?\+{_BUILD}(?:-{_OPT})?)"),
        re.compile(rf"(?P<version>{_VNUM}-{_PRE}(?:-{_OPT})?)"),
        re.compile(rf"(?P<version>{_VNUM}(?:\+-{_OPT})?)"),
    )

    def __init__(self) -> None:
        self._parsers: List[Callable[[str], Optional[VersionData]]] = [
            self._parse_legacy,
            self._parse_jep223,
        ]

    def parse(self, tag: Any) -> VersionData:
        """
        Parse a release tag into structured version data.

        Args:
            tag: Release name such as 'jdk8u162-b12' or 'jdk-11.0.1+13'.

        Returns:
            VersionData with ordering fields set, or holding only the raw tag
            when no grammar matches.
        """
        if not isinstance(tag, str):
            return VersionData(openjdk_version="" if tag is None else str(tag))

        parsers = self._parsers
        if self.LEGACY_PREFIX_RX.match(tag):
            parsers = [self._parse_legacy]

        for parser in parsers:
            result = parser(tag)
            if result is not None:
                return result
        return VersionData(openjdk_version=tag)

    def _parse_legacy(self, tag: str) -> Optional[VersionData]:
        match = self.LEGACY_RX.match(tag)
        if match is None:
            return None
        return self._build(
            version=match.group("version"),
            major=int(match.group("major")),
            minor=0,
            security=_or_zero(match.group("update")),
            pre=None,
            build=_to_int(match.group("build")),
            opt=match.group("opt"),
        )

    def _parse_jep223(self, tag: str) -> Optional[VersionData]:
        for regex in self.JEP223_RXS:
            match = regex.search(tag)
            if match is None:
                continue
            groups = match.groupdict()
            return self._build(
                version=groups["version"],
                major=int(groups["major"]),
                minor=_or_zero(groups.get("minor")),
                security=_or_zero(groups.get("security")),
                pre=groups.get("pre"),
                build=_to_int(groups.get("build")),
                opt=groups.get("opt"),
            )
        return None

    @staticmethod
    def _build(
        version: str,
        major: int,
        minor: int,
        security: int,
        pre: Optional[str],
        build: Optional[int],
        opt: Optional[str],
    ) -> VersionData:
        semver = f"{major}.{minor}.{security}"
        if pre:
            semver += f"-{pre}"
        if build is not None:
            semver += f"+{build}"
        return VersionData(
            openjdk_version=version,
            major=major,
            minor=minor,
            security=security,
            pre=pre,
            build=build,
            opt=opt,
            semver=semver,
        )


_parser = VersionParser()


def parse_version(tag: Any) -> VersionData:
    """Parse a release tag with the shared parser; see VersionParser.parse."""
    return _parser.parse(tag)


def version_sort_key(version: VersionData) -> Tuple[Any, ...]:
    """
    Build an ordering key for parsed versions.

    Unparsed versions sort after every parsed one. Within the parsed group the
    order is major, minor, security, then pre (a prerelease sorts before its
    final build), build, opt. Absent build or opt sorts before a present one.
    """
    if not version.parsed:
        return (1, natural_sort_key(version.openjdk_version))

    pre_key = (0, natural_sort_key(version.pre)) if version.pre else (1, [])
    build_key = (0, 0) if version.build is None else (1, version.build)
    opt_key = (0, []) if version.opt is None else (1, natural_sort_key(version.opt))
    return (
        0,
        version.major,
        version.minor,
        version.security,
        pre_key,
        build_key,
        opt_key,
    )


def release_sort_key(release: Release) -> Tuple[Any, ...]:
    """Total order for releases: version first, then name and publish timestamp."""
    version = release.version_data or parse_version(release.release_name)
    return (
        version_sort_key(version),
        release.release_name or "",
        release.timestamp or "",
    )


def sort_releases(releases: List[Release]) -> List[Release]:
    """Return releases in ascending version order; the last one is the latest."""
    return sorted(releases, key=release_sort_key)
