"""Results of comparing contents, and their conversion to plugin content mismatches."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

MismatchValue = Union[str, bytes, int, None]


class MismatchKind(Enum):
    """The part of an interaction a mismatch was found in."""

    METHOD = "method"
    PATH = "path"
    STATUS = "status"
    QUERY = "query"
    HEADER = "header"
    BODY_TYPE = "body_type"
    BODY = "body"
    METADATA = "metadata"


@dataclass(frozen=True)
class Mismatch:
    """A single mismatch between expected and actual contents.

    ``path`` holds the body path for body mismatches, the key for metadata and header
    mismatches and the parameter name for query mismatches.
    """

    kind: MismatchKind
    expected: MismatchValue = None
    actual: MismatchValue = None
    mismatch: str = ""
    path: str = ""
    expected_body: bytes | None = None
    actual_body: bytes | None = None

    def description(self) -> str:
        """Return a human readable description of the mismatch."""
        if self.kind is MismatchKind.METHOD:
            return f"expected method of {_as_text(self.expected)} but was {_as_text(self.actual)}"
        if self.kind is MismatchKind.BODY_TYPE:
            return (
                f"Expected a body of '{_as_text(self.expected)}' but the actual content type "
                f"was '{_as_text(self.actual)}'"
            )
        if self.kind is MismatchKind.BODY:
            return f"{self.path} -> {self.mismatch}"
        return self.mismatch


def _as_text(value: MismatchValue) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _as_bytes(value: MismatchValue) -> bytes:
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


def _optional_bytes(value: MismatchValue) -> bytes | None:
    return None if value is None else _as_bytes(value)


@dataclass(frozen=True)
class BodyMatchResult:
    """Outcome of comparing two bodies.

    With neither field set the bodies matched. ``type_mismatch`` is set when the bodies were
    of different types; ``body_mismatches`` maps body paths to the mismatches found there.
    An empty mapping still counts as a mismatch result, not as a match.
    """

    body_mismatches: dict[str, list[Mismatch]] | None = None
    type_mismatch: Mismatch | None = None

    def __post_init__(self) -> None:
        if self.body_mismatches is not None and self.type_mismatch is not None:
            raise ValueError("A body match result can not hold both a type mismatch and body mismatches")
        if self.type_mismatch is not None and self.type_mismatch.kind is not MismatchKind.BODY_TYPE:
            raise ValueError("The type mismatch of a body match result must be a body type mismatch")

    def is_ok(self) -> bool:
        """True if the bodies matched."""
        return self.body_mismatches is None and self.type_mismatch is None

    def mismatches(self) -> list[Mismatch]:
        """Return all the mismatches held by the result."""
        if self.type_mismatch is not None:
            return [self.type_mismatch]
        if self.body_mismatches is not None:
            return [m for found in self.body_mismatches.values() for m in found]
        return []


@dataclass(frozen=True)
class MetadataMatchResult:
    """Outcome of comparing message metadata."""

    result: bool = True
    mismatches: list[Mismatch] = field(default_factory=list)

    @classmethod
    def ok(cls) -> MetadataMatchResult:
        """A result in which all the metadata matched."""
        return cls(result=True, mismatches=[])

    def all_matched(self) -> bool:
        """True if every metadata item matched."""
        return self.result and not self.mismatches


@dataclass(frozen=True)
class ContentMismatch:
    """A mismatch in the form the plugin interface reports it."""

    expected: bytes | None = None
    actual: bytes | None = None
    mismatch: str = ""
    path: str = ""
    diff: str = ""
    mismatch_type: str = ""


def mismatch_to_content_mismatch(mismatch: Mismatch) -> ContentMismatch:
    """Convert a mismatch into a plugin content mismatch."""
    kind = mismatch.kind
    if kind is MismatchKind.BODY:
        return ContentMismatch(
            expected=_optional_bytes(mismatch.expected),
            actual=_optional_bytes(mismatch.actual),
            mismatch=mismatch.mismatch,
            path=mismatch.path,
        )
    if kind is MismatchKind.METHOD:
        text = "Method mismatch"
    else:
        text = mismatch.mismatch
    path = mismatch.path if kind is MismatchKind.METADATA else ""
    return ContentMismatch(
        expected=_as_bytes(mismatch.expected),
        actual=_as_bytes(mismatch.actual),
        mismatch=text,
        path=path,
    )