"""
Path and query parameter handling for the v2 release endpoints.

A query parameter is either absent, given once, or repeated; QueryValue models
the three cases so filters and validators share one membership predicate
instead of checking for lists everywhere.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from openjdk_api.constants import (
    ALPHANUMERIC_PATTERN,
    BUILD_TYPES,
    HEAP_SIZES,
    IMAGE_TYPES,
    JVM_IMPLEMENTATIONS,
    MSG_MULTI_VALUE_RELEASE,
    MSG_NOT_FOUND,
    MSG_UNKNOWN_PATH_PARAM,
    MSG_UNKNOWN_QUERY_PARAM,
    RELEASE_NAME_PATTERN,
    REQUEST_TYPES,
    VERSION_PATH_PATTERN,
)
from openjdk_api.exceptions import NotFoundError, RequestValidationError

_ALPHANUMERIC_RX = re.compile(ALPHANUMERIC_PATTERN)
_RELEASE_NAME_RX = re.compile(RELEASE_NAME_PATTERN)
_VERSION_PATH_RX = re.compile(VERSION_PATH_PATTERN)


class QueryValue:
    """A query parameter value: Absent, One or Many."""

    @property
    def values(self) -> Tuple[str, ...]:
        raise NotImplementedError

    @property
    def present(self) -> bool:
        return bool(self.values)

    def matches(self, candidate: Optional[str]) -> bool:
        """
        Case-insensitive membership test used by every filter.

        An absent parameter matches anything; otherwise the candidate must equal
        one of the given values.
        """
        if not self.present:
            return True
        if candidate is None:
            return False
        lowered = candidate.lower()
        return any(value.lower() == lowered for value in self.values)

    def first_invalid(self, predicate: Callable[[str], bool]) -> Optional[str]:
        for value in self.values:
            if not predicate(value):
                return value
        return None


@dataclass(frozen=True)
class Absent(QueryValue):
    @property
    def values(self) -> Tuple[str, ...]:
        return ()


@dataclass(frozen=True)
class One(QueryValue):
    value: str

    @property
    def values(self) -> Tuple[str, ...]:
        return (self.value,)


@dataclass(frozen=True)
class Many(QueryValue):
    items: Tuple[str, ...]

    @property
    def values(self) -> Tuple[str, ...]:
        return self.items


ABSENT = Absent()


def query_value(query: Optional[Mapping[str, Any]], name: str) -> QueryValue:
    """
    Read one parameter from a plain mapping or an aiohttp MultiDict.

    Lists and repeated MultiDict keys become Many; empty strings count as absent.
    """
    if query is None:
        return ABSENT

    raw: Iterable[Any]
    getall = getattr(query, "getall", None)
    if callable(getall):
        raw = getall(name, [])
    else:
        value = query.get(name)
        if value is None:
            raw = []
        elif isinstance(value, (list, tuple)):
            raw = value
        else:
            raw = [value]

    values = tuple(str(item) for item in raw if item is not None and str(item) != "")
    if not values:
        return ABSENT
    if len(values) == 1:
        return One(values[0])
    return Many(values)


@dataclass(frozen=True)
class ReleaseQuery:
    """The filter parameters of one request."""

    openjdk_impl: QueryValue = ABSENT
    os: QueryValue = ABSENT
    arch: QueryValue = ABSENT
    release: QueryValue = ABSENT
    type: QueryValue = ABSENT
    heap_size: QueryValue = ABSENT

    @classmethod
    def from_mapping(cls, query: Optional[Mapping[str, Any]]) -> "ReleaseQuery":
        return cls(
            openjdk_impl=query_value(query, "openjdk_impl"),
            os=query_value(query, "os"),
            arch=query_value(query, "arch"),
            release=query_value(query, "release"),
            type=query_value(query, "type"),
            heap_size=query_value(query, "heap_size"),
        )

    def get(self, name: str) -> QueryValue:
        return getattr(self, name)


def _in_vocabulary(vocabulary: Tuple[str, ...]) -> Callable[[str], bool]:
    return lambda value: value.lower() in vocabulary


# Checked in this order; the first failure is reported
QUERY_VALIDATORS: Tuple[Tuple[str, Callable[[str], bool]], ...] = (
    ("openjdk_impl", _in_vocabulary(JVM_IMPLEMENTATIONS)),
    ("os", lambda value: bool(_ALPHANUMERIC_RX.fullmatch(value))),
    ("arch", lambda value: bool(_ALPHANUMERIC_RX.fullmatch(value))),
    ("type", _in_vocabulary(IMAGE_TYPES)),
    ("heap_size", _in_vocabulary(HEAP_SIZES)),
    ("release", lambda value: bool(_RELEASE_NAME_RX.fullmatch(value.lower()))),
)


def validate_path_params(
    request_type: Optional[str], buildtype: Optional[str], version: Optional[str]
) -> None:
    """
    Check the three path segments of a v2 request.

    Raises:
        NotFoundError: A segment is missing.
        RequestValidationError: A segment is outside its vocabulary; the message names it
            (`Unknown request type`, `Unknown build type`, `Unknown version type`).
    """
    if not request_type or not buildtype or not version:
        raise NotFoundError(MSG_NOT_FOUND)

    checks = (
        ("request", request_type in REQUEST_TYPES),
        ("build", buildtype in BUILD_TYPES),
        ("version", bool(_VERSION_PATH_RX.fullmatch(version))),
    )
    for name, valid in checks:
        if not valid:
            raise RequestValidationError(MSG_UNKNOWN_PATH_PARAM.format(name=name))


def validate_query_params(query: ReleaseQuery) -> None:
    """
    Check every filter value against its vocabulary.

    Raises:
        RequestValidationError: With the name and first invalid value of the first
            failing parameter, or when `release` is given more than once.
    """
    for name, predicate in QUERY_VALIDATORS:
        invalid = query.get(name).first_invalid(predicate)
        if invalid is not None:
            raise RequestValidationError(
                MSG_UNKNOWN_QUERY_PARAM.format(name=name, value=invalid)
            )

    if isinstance(query.release, Many):
        raise RequestValidationError(MSG_MULTI_VALUE_RELEASE)
