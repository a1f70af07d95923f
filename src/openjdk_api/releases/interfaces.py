"""
Core data structures for the openjdk-api release subsystem.

Raw GitHub payloads stay plain dicts inside the cache; everything derived from
them per request is one of the dataclasses below.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class VersionData:
    """Structured OpenJDK version parsed from a release name."""

    openjdk_version: str
    """The matched version text, or the raw tag when parsing failed"""

    major: Optional[int] = None
    minor: Optional[int] = None
    security: Optional[int] = None
    pre: Optional[str] = None
    build: Optional[int] = None
    opt: Optional[str] = None

    semver: Optional[str] = None
    """Display form major.minor.security[-pre][+build]; not used for ordering"""

    @property
    def parsed(self) -> bool:
        return self.major is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"openjdk_version": self.openjdk_version}
        if self.semver is not None:
            data["semver"] = self.semver
        if self.opt is not None:
            data["optional"] = self.opt
        if self.pre is not None:
            data["preview"] = self.pre
        return data


@dataclass(frozen=True)
class PlatformInfo:
    """Platform attributes parsed from a binary asset's filename."""

    version: str
    """Feature version number as a string (e.g. '11')"""

    binary_type: str
    architecture: str
    os: str
    openjdk_impl: str
    heap_size: str
    extension: str

    suffix: Optional[str] = None
    """Trailing timestamp or embedded version token, when present"""


@dataclass(frozen=True)
class Binary:
    """One downloadable binary of a release, normalized across naming schemes."""

    os: str
    architecture: str
    binary_type: str
    openjdk_impl: str
    heap_size: str
    binary_name: str
    binary_link: str
    binary_size: int
    version: str
    version_data: VersionData
    download_count: int = 0
    updated_at: Optional[str] = None
    checksum_link: Optional[str] = None
    installer_name: Optional[str] = None
    installer_link: Optional[str] = None
    installer_size: Optional[int] = None
    installer_checksum_link: Optional[str] = None
    installer_download_count: Optional[int] = None

    @property
    def total_download_count(self) -> int:
        return self.download_count + (self.installer_download_count or 0)

    def attribute(self, name: str) -> Optional[str]:
        value = getattr(self, name, None)
        return value if isinstance(value, str) else None

    def platform_key(self, fields: Tuple[str, ...]) -> Tuple[Optional[str], ...]:
        return tuple(self.attribute(name) for name in fields)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "os": self.os,
            "architecture": self.architecture,
            "binary_type": self.binary_type,
            "openjdk_impl": self.openjdk_impl,
            "binary_name": self.binary_name,
            "binary_link": self.binary_link,
            "binary_size": self.binary_size,
            "checksum_link": self.checksum_link,
            "installer_name": self.installer_name,
            "installer_link": self.installer_link,
            "installer_size": self.installer_size,
            "installer_checksum_link": self.installer_checksum_link,
            "installer_download_count": self.installer_download_count,
            "version": self.version,
            "version_data": self.version_data.to_dict(),
            "heap_size": self.heap_size,
            "download_count": self.download_count,
            "updated_at": self.updated_at,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class Release:
    """A release with its normalized binaries."""

    release_name: str
    release_link: Optional[str]
    timestamp: Optional[str]
    release: bool
    """True for GA builds, False for prereleases and nightlies"""

    binaries: List[Binary] = field(default_factory=list)
    download_count: int = 0
    old_repo: bool = False
    """Whether the release came from a legacy per-implementation repository"""

    version_data: Optional[VersionData] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "release_name": self.release_name,
            "release_link": self.release_link,
            "timestamp": self.timestamp,
            "release": self.release,
            "binaries": [binary.to_dict() for binary in self.binaries],
            "download_count": self.download_count,
        }


@dataclass
class CacheEntry:
    """Cached raw release collection for one repository."""

    key: str
    """Repository name (e.g. 'openjdk11-binaries')"""

    data: Optional[List[Dict[str, Any]]] = None
    """Raw releases list; None only before the first successful fetch"""

    fetched_at: float = 0.0
    """Epoch seconds of the last successful fetch"""

    next_eligible_refresh: float = 0.0
    """Epoch seconds before which the entry counts as fresh"""

    @property
    def has_data(self) -> bool:
        return self.data is not None
