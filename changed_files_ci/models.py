from __future__ import annotations

from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Any


OUTPUT_NAMES = ("all", "added", "modified", "removed", "renamed", "added_modified", "deleted")


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"

    @classmethod
    def parse(cls, raw: str | None) -> "FileStatus" | None:
        for member in cls:
            if member.value == raw:
                return member
        return None


class OutputFormat(str, Enum):
    SPACE_DELIMITED = "space-delimited"
    CSV = "csv"
    JSON = "json"

    @classmethod
    def parse(cls, raw: str | None) -> "OutputFormat" | None:
        for member in cls:
            if member.value == raw:
                return member
        return None


class FailureKind(str, Enum):
    INVALID_FORMAT = "invalid_format"
    UNSUPPORTED_EVENT = "unsupported_event"
    MISSING_REFS = "missing_refs"
    COMPARISON_FAILED = "comparison_failed"
    NOT_AHEAD = "not_ahead"
    NO_CHANGES = "no_changes"
    SPACE_IN_FILENAME = "space_in_filename"
    UNSUPPORTED_STATUS = "unsupported_status"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str


@dataclass(frozen=True)
class ChangeEvent:
    name: str
    base: str | None
    head: str | None
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def resolved(self) -> bool:
        return isinstance(self.base, str) and bool(self.base) and isinstance(self.head, str) and bool(self.head)

    @property
    def refs(self) -> tuple[str, str]:
        """Refs to compare; both fall back to empty placeholders when either is missing."""
        if not self.resolved:
            return "", ""
        return self.base, self.head


@dataclass(frozen=True)
class ChangedFile:
    filename: str
    status: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ChangedFile":
        return cls(filename=str(data.get("filename") or ""), status=str(data.get("status") or ""))


@dataclass(frozen=True)
class CompareResult:
    http_status: int
    status: str | None
    files: list[ChangedFile] | None


@dataclass
class ClassificationResult:
    all: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    renamed: list[str] = field(default_factory=list)
    added_modified: list[str] = field(default_factory=list)

    def groups(self) -> dict[str, list[str]]:
        """Group name -> filenames, in output order."""
        return asdict(self)
