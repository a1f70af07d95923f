"""
Tests for turning raw GitHub releases into Release records.
"""

import pytest

from openjdk_api.releases.normalizer import ReleaseNormalizer, normalize

pytestmark = [pytest.mark.unit]

LINUX_TGZ = "OpenJDK11U-jdk_x64_linux_hotspot_11.0.1_13.tar.gz"
WINDOWS_ZIP = "OpenJDK11U-jdk_x64_windows_hotspot_11.0.1_13.zip"
WINDOWS_MSI = "OpenJDK11U-jdk_x64_windows_hotspot_11.0.1_13.msi"
MAC_PKG = "OpenJDK11U-jdk_x64_mac_hotspot_11.0.1_13.pkg"


class TestBinaries:
    def test_basic_fields(self, raw_release, raw_asset):
        raw = raw_release(
            "jdk-11.0.1+13",
            [raw_asset(LINUX_TGZ, size=1234, download_count=7, updated_at="2018-10-17T12:00:00Z")],
        )

        release = normalize(raw, repo_was_legacy=False)

        assert release.release_name == "jdk-11.0.1+13"
        assert release.release is True
        assert release.old_repo is False
        assert len(release.binaries) == 1
        binary = release.binaries[0]
        assert binary.os == "linux"
        assert binary.architecture == "x64"
        assert binary.binary_type == "jdk"
        assert binary.openjdk_impl == "hotspot"
        assert binary.heap_size == "normal"
        assert binary.binary_name == LINUX_TGZ
        assert binary.binary_link.endswith(LINUX_TGZ)
        assert binary.binary_size == 1234
        assert binary.download_count == 7
        assert binary.updated_at == "2018-10-17T12:00:00Z"
        assert binary.version == "11"
        assert binary.version_data.openjdk_version == "11.0.1+13"
        assert binary.checksum_link is None

    def test_prerelease_flag_and_legacy_marker(self, raw_release):
        release = normalize(raw_release("jdk-12+9", [LINUX_TGZ], prerelease=True), True)

        assert release.release is False
        assert release.old_repo is True

    def test_unparsable_assets_are_dropped(self, raw_release):
        release = normalize(raw_release("jdk-11.0.1+13", [LINUX_TGZ, "README.md"]), False)

        assert [b.binary_name for b in release.binaries] == [LINUX_TGZ]

    def test_release_without_binaries_is_still_built(self, raw_release):
        release = normalize(raw_release("jdk-11.0.1+13", ["notes.txt"]), False)

        assert release.binaries == []
        assert release.download_count == 0


class TestChecksums:
    def test_sidecar_named_after_full_name(self, raw_release):
        release = normalize(
            raw_release("jdk-11.0.1+13", [LINUX_TGZ, f"{LINUX_TGZ}.sha256.txt"]), False
        )

        assert len(release.binaries) == 1
        assert release.binaries[0].checksum_link.endswith(f"{LINUX_TGZ}.sha256.txt")

    def test_sidecar_named_after_stem(self, raw_release):
        sidecar = "OpenJDK11U-jdk_x64_linux_hotspot_11.0.1_13.sha256.txt"
        release = normalize(raw_release("jdk-11.0.1+13", [LINUX_TGZ, sidecar]), False)

        assert release.binaries[0].checksum_link.endswith(sidecar)

    def test_sidecar_of_other_binary_is_not_used(self, raw_release):
        release = normalize(
            raw_release("jdk-11.0.1+13", [LINUX_TGZ, f"{WINDOWS_ZIP}.sha256.txt"]), False
        )

        assert release.binaries[0].checksum_link is None


class TestInstallers:
    def test_installer_attaches_to_archive(self, raw_release, raw_asset):
        raw = raw_release(
            "jdk-11.0.1+13",
            [
                raw_asset(WINDOWS_ZIP, download_count=5),
                raw_asset(WINDOWS_MSI, size=99, download_count=3),
                raw_asset(f"{WINDOWS_MSI}.sha256.txt"),
            ],
        )

        release = normalize(raw, False)

        assert len(release.binaries) == 1
        binary = release.binaries[0]
        assert binary.binary_name == WINDOWS_ZIP
        assert binary.installer_name == WINDOWS_MSI
        assert binary.installer_size == 99
        assert binary.installer_download_count == 3
        assert binary.installer_link.endswith(WINDOWS_MSI)
        assert binary.installer_checksum_link.endswith(f"{WINDOWS_MSI}.sha256.txt")
        assert release.download_count == 8

    def test_orphan_installer_is_its_own_binary(self, raw_release):
        release = normalize(raw_release("jdk-11.0.1+13", [LINUX_TGZ, MAC_PKG]), False)

        names = sorted(b.binary_name for b in release.binaries)
        assert names == sorted([LINUX_TGZ, MAC_PKG])
        assert all(b.installer_name is None for b in release.binaries)

    def test_download_count_sums_binaries(self, raw_release, raw_asset):
        raw = raw_release(
            "jdk-11.0.1+13",
            [raw_asset(LINUX_TGZ, download_count=10), raw_asset(MAC_PKG, download_count=2)],
        )

        assert normalize(raw, False).download_count == 12


class TestRobustness:
    def test_idempotent(self, raw_release):
        raw = raw_release(
            "jdk-11.0.1+13", [LINUX_TGZ, WINDOWS_ZIP, WINDOWS_MSI, f"{LINUX_TGZ}.sha256.txt"]
        )

        assert normalize(raw, False) == normalize(raw, False)
        assert normalize(raw, False).to_dict() == normalize(raw, False).to_dict()

    def test_malformed_input(self):
        raw = {
            "tag_name": None,
            "assets": [None, 42, {"size": 5}, {"name": LINUX_TGZ, "size": "big"}],
        }

        release = ReleaseNormalizer().normalize(raw, False)

        assert release.release_name == ""
        assert len(release.binaries) == 1
        assert release.binaries[0].binary_size == 0
        assert release.binaries[0].binary_link == ""

    def test_missing_assets(self):
        release = normalize({"tag_name": "jdk-11.0.1+13", "assets": "nope"}, False)

        assert release.binaries == []


class TestSerialization:
    def test_absent_fields_are_omitted(self, raw_release):
        binary = normalize(raw_release("jdk-11.0.1+13", [LINUX_TGZ]), False).binaries[0]

        data = binary.to_dict()

        assert "checksum_link" not in data
        assert "installer_name" not in data
        assert data["version_data"] == {
            "openjdk_version": "11.0.1+13",
            "semver": "11.0.1+13",
        }

    def test_release_dict_shape(self, raw_release):
        data = normalize(raw_release("jdk-11.0.1+13", [LINUX_TGZ]), True).to_dict()

        assert set(data) == {
            "release_name",
            "release_link",
            "timestamp",
            "release",
            "binaries",
            "download_count",
        }
