"""
Binary asset filename parsing.

The AdoptOpenJDK naming scheme changed twice. Each scheme has its own parser
function; they are tried in order and the first match wins:

    new style   OpenJDK11U-jdk_x64_linux_hotspot_11.0.1_13.tar.gz
                OpenJDK8U-jre_x64_linux_openj9_linuxXL_2018-11-02-13-30.tar.gz
    old style   OpenJDK8_x64_Linux_hotspot_8u162b12.tar.gz
                OpenJDK8-OPENJ9_x64_LinuxLH_jdk8u162-b12_openj9-0.8.0.tar.gz
    amber       OpenJDK-AMBER_x64_linux_201809031820.tar.gz
"""

import re
from typing import Callable, Dict, List, Optional, Tuple

from openjdk_api.constants import ARCHIVE_EXTENSIONS, INSTALLER_EXTENSIONS

from .interfaces import PlatformInfo

_EXTENSION = r"(?P<extension>\.tar\.gz|\.zip|\.msi|\.pkg)"
_HEAP = r"(?P<heap_size>linuxXL|macosXL|large|normal)"

NEW_STYLE_RX = re.compile(
    r"^OpenJDK(?P<version>[0-9]{1,2})U?-"
    r"(?P<type>jdk|jre)_"
    r"(?P<arch>[0-9a-zA-Z-]+)_"
    r"(?P<os>[0-9a-zA-Z]+)_"
    r"(?P<impl>hotspot|openj9)_"
    rf"(?:{_HEAP}_)?"
    r"(?P<suffix>[0-9]{4}-[0-9]{2}-[0-9]{2}-[0-9]{2}-[0-9]{2}|[0-9][\w.+-]*?)"
    rf"{_EXTENSION}$",
    re.IGNORECASE,
)

OLD_STYLE_RX = re.compile(
    r"^OpenJDK(?P<version>[0-9]{1,2})U?"
    r"(?:-(?P<impl_prefix>hotspot|openj9))?"
    r"(?:-(?P<type>jdk|jre))?_"
    r"(?P<arch>[0-9a-zA-Z-]+)_"
    r"(?P<os>[0-9a-zA-Z]+)"
    r"(?:_(?P<impl>hotspot|openj9))?"
    rf"(?:_{_HEAP})?"
    r"(?:_(?P<suffix>[\w.+-]*?))?"
    rf"{_EXTENSION}$",
    re.IGNORECASE,
)

AMBER_STYLE_RX = re.compile(
    r"^OpenJDK-AMBER_"
    r"(?P<arch>[0-9a-zA-Z-]+)_"
    r"(?P<os>[0-9a-zA-Z]+)_"
    r"(?P<suffix>[0-9]{12})"
    r"(?P<extension>\.tar\.gz|\.zip)$",
    re.IGNORECASE,
)

AMBER_TAG_VERSION_RX = re.compile(r"jdk-(?P<version>[0-9]{1,2})")

ARCHITECTURE_ALIASES: Dict[str, str] = {"x86-32": "x32"}
OS_ALIASES: Dict[str, str] = {"win": "windows", "linuxlh": "linux"}
LARGE_HEAP_OS_TOKENS = frozenset({"linuxlh"})
LARGE_HEAP_TOKENS = frozenset({"linuxxl", "macosxl", "large"})


def _canonical_platform(
    version: str,
    binary_type: Optional[str],
    arch: str,
    os_token: str,
    impl: Optional[str],
    heap_token: Optional[str],
    extension: str,
    suffix: Optional[str],
) -> PlatformInfo:
    os_lower = os_token.lower()
    heap_size = "normal"
    if os_lower in LARGE_HEAP_OS_TOKENS:
        heap_size = "large"
    if heap_token and heap_token.lower() in LARGE_HEAP_TOKENS:
        heap_size = "large"

    arch_lower = arch.lower()
    return PlatformInfo(
        version=str(int(version)),
        binary_type=(binary_type or "jdk").lower(),
        architecture=ARCHITECTURE_ALIASES.get(arch_lower, arch_lower),
        os=OS_ALIASES.get(os_lower, os_lower),
        openjdk_impl=(impl or "hotspot").lower(),
        heap_size=heap_size,
        extension=extension.lower(),
        suffix=suffix or None,
    )


def parse_new_style(name: str, release_tag: Optional[str] = None) -> Optional[PlatformInfo]:
    match = NEW_STYLE_RX.match(name)
    if match is None:
        return None
    return _canonical_platform(
        version=match.group("version"),
        binary_type=match.group("type"),
        arch=match.group("arch"),
        os_token=match.group("os"),
        impl=match.group("impl"),
        heap_token=match.group("heap_size"),
        extension=match.group("extension"),
        suffix=match.group("suffix"),
    )


def parse_old_style(name: str, release_tag: Optional[str] = None) -> Optional[PlatformInfo]:
    match = OLD_STYLE_RX.match(name)
    if match is None:
        return None
    return _canonical_platform(
        version=match.group("version"),
        binary_type=match.group("type"),
        arch=match.group("arch"),
        os_token=match.group("os"),
        impl=match.group("impl_prefix") or match.group("impl"),
        heap_token=match.group("heap_size"),
        extension=match.group("extension"),
        suffix=match.group("suffix"),
    )


def parse_amber_style(name: str, release_tag: Optional[str] = None) -> Optional[PlatformInfo]:
    """Amber filenames carry no version; it comes from the release tag (jdk-<major>...)."""
    match = AMBER_STYLE_RX.match(name)
    if match is None or not release_tag:
        return None
    tag_match = AMBER_TAG_VERSION_RX.search(release_tag)
    if tag_match is None:
        return None
    return _canonical_platform(
        version=tag_match.group("version"),
        binary_type="jdk",
        arch=match.group("arch"),
        os_token=match.group("os"),
        impl="hotspot",
        heap_token=None,
        extension=match.group("extension"),
        suffix=match.group("suffix"),
    )


FILENAME_PARSERS: List[Callable[[str, Optional[str]], Optional[PlatformInfo]]] = [
    parse_new_style,
    parse_old_style,
    parse_amber_style,
]


def parse_filename(name: object, release_tag: Optional[str] = None) -> Optional[PlatformInfo]:
    """
    Parse a binary asset filename into platform attributes.

    Args:
        name: Asset filename.
        release_tag: Tag of the owning release; only needed for amber names.

    Returns:
        PlatformInfo for the first matching naming scheme, or None when no
        scheme matches (the caller drops the asset).
    """
    if not isinstance(name, str) or not name:
        return None
    for parser in FILENAME_PARSERS:
        info = parser(name, release_tag)
        if info is not None:
            return info
    return None


def split_extension(name: str) -> Optional[Tuple[str, str]]:
    """Split a filename into (stem, extension) for known archive and installer extensions."""
    lowered = name.lower()
    for extension in ARCHIVE_EXTENSIONS + INSTALLER_EXTENSIONS:
        if lowered.endswith(extension):
            return name[: -len(extension)], extension
    return None


def is_installer(name: str) -> bool:
    return name.lower().endswith(INSTALLER_EXTENSIONS)
