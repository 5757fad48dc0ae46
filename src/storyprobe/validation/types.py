"""Shared validation types: issues, fix tags and aggregated results."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from storyprobe.models.story import Story

Severity = Literal["critical", "error", "warning", "info"]
Category = Literal["structure", "links", "variables", "content"]

SEVERITIES: tuple[Severity, ...] = ("critical", "error", "warning", "info")
CATEGORIES: tuple[Category, ...] = ("structure", "links", "variables", "content")


class FixKind(StrEnum):
    """Repair the AutoFixer applies for an issue."""

    DELETE_PASSAGE = "delete_passage"
    REMOVE_CHOICE = "remove_choice"
    ADD_VARIABLE = "add_variable"
    DELETE_VARIABLE = "delete_variable"
    DELETE_ASSET = "delete_asset"


@dataclass
class Issue:
    """A structured validation finding.

    Attributes:
        id: Stable composite of check and target (``dead_link_<pid>_<cid>``),
            so repeated runs can be correlated.
        severity: "critical", "error", "warning" or "info".
        category: "structure", "links", "variables" or "content".
        message: Human-readable one-line description.
        passage_id: Passage the finding is attached to, if any.
        choice_id: Choice the finding is attached to, if any.
        variable_name: Variable the finding is about, if any.
        asset_id: Asset the finding is about, if any.
        fixable: True if an automatic repair exists.
        fix_kind: Tag the AutoFixer dispatches on.
        fix_action: Optional zero-argument callable performing the repair
            directly. Built per ``validate()`` call; closes over the story.
        description: Longer explanation for UI display.
    """

    id: str
    severity: Severity
    category: Category
    message: str
    passage_id: str | None = None
    choice_id: str | None = None
    variable_name: str | None = None
    asset_id: str | None = None
    fixable: bool = False
    fix_kind: FixKind | None = None
    fix_action: Callable[[], None] | None = field(default=None, repr=False, compare=False)
    description: str = ""


class Validator(Protocol):
    """A named, categorized rule run against a story snapshot."""

    name: str
    category: Category

    def validate(self, story: Story) -> list[Issue]: ...


@dataclass
class ValidationOptions:
    """Filters for a registry run.

    Attributes:
        categories: Only run validators in these categories (None = all).
        include_warnings: Keep warning-level issues.
        include_info: Keep info-level issues.
        disabled: Validator names to skip.
    """

    categories: list[Category] | None = None
    include_warnings: bool = True
    include_info: bool = True
    disabled: list[str] = field(default_factory=list)


@dataclass
class StoryStats:
    """Size of the validated story."""

    total_passages: int = 0
    total_choices: int = 0
    total_variables: int = 0
    total_assets: int = 0


@dataclass
class ValidationResult:
    """Aggregated issues of a registry run."""

    issues: list[Issue] = field(default_factory=list)
    stats: StoryStats = field(default_factory=StoryStats)
    failed_validators: list[str] = field(default_factory=list)

    def count(self, severity: Severity) -> int:
        return sum(1 for i in self.issues if i.severity == severity)

    @property
    def critical_count(self) -> int:
        return self.count("critical")

    @property
    def error_count(self) -> int:
        return self.count("error")

    @property
    def warning_count(self) -> int:
        return self.count("warning")

    @property
    def info_count(self) -> int:
        return self.count("info")

    @property
    def fixable_count(self) -> int:
        return sum(1 for i in self.issues if i.fixable)

    @property
    def valid(self) -> bool:
        """True if no critical or error issues were found."""
        return self.critical_count == 0 and self.error_count == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of issue counts."""
        parts: list[str] = []
        if self.critical_count:
            parts.append(f"{self.critical_count} critical")
        if self.error_count:
            parts.append(f"{self.error_count} errors")
        if self.warning_count:
            parts.append(f"{self.warning_count} warnings")
        if self.info_count:
            parts.append(f"{self.info_count} info")
        return ", ".join(parts) if parts else "no issues"
