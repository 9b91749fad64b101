"""
Edit models: value objects exchanged with the batch editor.

``to_dict()`` produces the JSON shape expected by tool callers (camelCase
keys, optional keys omitted when unset).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class EditStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class EditOperation:
    """One requested find/replace change."""
    file_path: str
    old_string: str
    new_string: str
    use_regex: bool = False
    replace_all: bool = False
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.old_string:
            raise ValueError(f"oldString must not be empty (file: {self.file_path})")

    @classmethod
    def from_dict(cls, data: dict) -> "EditOperation":
        """Build an operation from its JSON shape."""
        return cls(
            file_path=data["filePath"],
            old_string=data["oldString"],
            new_string=data["newString"],
            use_regex=bool(data.get("useRegex", False)),
            replace_all=bool(data.get("replaceAll", False)),
            description=data.get("description"),
        )

    def to_dict(self) -> dict:
        data = {
            "filePath": self.file_path,
            "oldString": self.old_string,
            "newString": self.new_string,
            "useRegex": self.use_regex,
            "replaceAll": self.replace_all,
        }
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass
class EditResult:
    """Outcome of one EditOperation.

    ``status == APPLIED`` in a dry run means "would apply": nothing was
    written.
    """
    file_path: str
    status: EditStatus
    reason: Optional[str] = None
    backup: Optional[str] = None
    diff: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"filePath": self.file_path, "status": self.status.value}
        for key, value in (("reason", self.reason), ("backup", self.backup),
                           ("diff", self.diff)):
            if value is not None:
                data[key] = value
        return data


@dataclass
class EditSummary:
    total: int = 0
    applied: int = 0
    skipped: int = 0
    failed: int = 0

    @classmethod
    def from_results(cls, results: list[EditResult]) -> "EditSummary":
        return cls(
            total=len(results),
            applied=sum(1 for r in results if r.status is EditStatus.APPLIED),
            skipped=sum(1 for r in results if r.status is EditStatus.SKIPPED),
            failed=sum(1 for r in results if r.status is EditStatus.FAILED),
        )

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "applied": self.applied,
            "skipped": self.skipped,
            "failed": self.failed,
        }


@dataclass
class RollbackError:
    file_path: str
    error: str

    def to_dict(self) -> dict:
        return {"filePath": self.file_path, "error": self.error}


@dataclass
class BatchResult:
    """Aggregate outcome of a batch edit run.

    ``results`` is historical: rollback restores files on disk but never
    rewrites the per-edit records.
    """
    success: bool
    results: list[EditResult] = field(default_factory=list)
    summary: EditSummary = field(default_factory=EditSummary)
    dry_run: bool = False
    rolled_back: list[str] = field(default_factory=list)
    rollback_errors: list[RollbackError] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary.to_dict(),
            "dryRun": self.dry_run,
            "rolledBack": list(self.rolled_back),
            "rollbackErrors": [e.to_dict() for e in self.rollback_errors],
            "cancelled": self.cancelled,
        }
