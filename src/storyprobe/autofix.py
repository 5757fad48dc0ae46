"""Automatic repair of validation issues.

The AutoFixer interprets issues by their ``fix_kind`` tag, or, for issues
built without one, by the id prefix the built-in validators use
(``unreachable_``, ``dead_link_``, ``undefined_var_``, ``unused_var_``,
``unused_asset_``). It mutates the story in place and never raises: every
issue ends up either fixed or failed.

Fixes are idempotent. An issue whose target is already gone (or, for
undefined variables, already declared) counts as fixed.

Callers must serialize ``fix()`` calls on the same story.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from storyprobe.observability.logging import get_logger
from storyprobe.validation.types import FixKind
from storyprobe.validation.variables import declare_inferred_variable

if TYPE_CHECKING:
    from storyprobe.models.story import Story
    from storyprobe.validation.types import Issue

log = get_logger(__name__)

_ID_PREFIXES: tuple[tuple[str, FixKind], ...] = (
    ("unreachable_", FixKind.DELETE_PASSAGE),
    ("dead_link_", FixKind.REMOVE_CHOICE),
    ("undefined_var_", FixKind.ADD_VARIABLE),
    ("unused_var_", FixKind.DELETE_VARIABLE),
    ("unused_asset_", FixKind.DELETE_ASSET),
)

_FIX_LABELS: dict[FixKind, tuple[str, str]] = {
    FixKind.DELETE_PASSAGE: ("unreachable passage", "unreachable passages"),
    FixKind.REMOVE_CHOICE: ("dead link", "dead links"),
    FixKind.ADD_VARIABLE: ("undefined variable", "undefined variables"),
    FixKind.DELETE_VARIABLE: ("unused variable", "unused variables"),
    FixKind.DELETE_ASSET: ("unused asset", "unused assets"),
}


class FixError(Exception):
    """A single issue could not be repaired."""


@dataclass
class FixResult:
    """Outcome of an AutoFixer pass.

    Attributes:
        success: True only if no issue failed.
        issues_fixed: Number of issues repaired (or already resolved).
        issues_failed: Number of issues that could not be repaired.
        passages_deleted: IDs of passages removed from the story.
        choices_deleted: IDs of choices removed from their passages.
        variables_added: Names of variables declared.
        variables_deleted: Names of variables removed.
        assets_deleted: IDs of assets removed.
        errors: One message per failed issue.
    """

    success: bool = True
    issues_fixed: int = 0
    issues_failed: int = 0
    passages_deleted: list[str] = field(default_factory=list)
    choices_deleted: list[str] = field(default_factory=list)
    variables_added: list[str] = field(default_factory=list)
    variables_deleted: list[str] = field(default_factory=list)
    assets_deleted: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def fix_kind_for(issue: Issue) -> FixKind | None:
    """Return the repair an issue calls for, or None if unrecognized."""
    if issue.fix_kind is not None:
        return issue.fix_kind
    for prefix, kind in _ID_PREFIXES:
        if issue.id.startswith(prefix):
            return kind
    return None


def _id_suffix(issue: Issue, prefix: str) -> str | None:
    if issue.id.startswith(prefix) and len(issue.id) > len(prefix):
        return issue.id[len(prefix) :]
    return None


class AutoFixer:
    """Applies bounded repairs for recognized issues."""

    def can_fix(self, issue: Issue) -> bool:
        """True if the fixer recognizes the issue's pattern.

        Says nothing about whether the fix would succeed on the current story.
        """
        return fix_kind_for(issue) is not None

    def fix(self, story: Story, issues: list[Issue]) -> FixResult:
        """Repair issues in order, mutating ``story`` in place.

        Args:
            story: The story to repair.
            issues: Issues to fix, typically from ``ValidatorRegistry.validate``.

        Returns:
            FixResult; ``success`` is False if any issue failed.
        """
        result = FixResult()
        for issue in issues:
            kind = fix_kind_for(issue)
            try:
                if kind is None:
                    raise FixError(f"No automatic fix for issue {issue.id!r}")
                self._apply(story, issue, kind, result)
            except Exception as e:
                result.issues_failed += 1
                result.errors.append(f"{issue.id}: {e}")
                log.warning("fix_failed", issue=issue.id, kind=kind, error=str(e))
                continue
            result.issues_fixed += 1
            log.debug("fix_applied", issue=issue.id, kind=kind)

        result.success = result.issues_failed == 0
        log.info(
            "autofix_complete",
            fixed=result.issues_fixed,
            failed=result.issues_failed,
        )
        return result

    def get_fix_description(self, issues: list[Issue]) -> str:
        """Summarize recognized issues by fix type, e.g. "2 unreachable passages, 1 dead link"."""
        counts: dict[FixKind, int] = {}
        for issue in issues:
            kind = fix_kind_for(issue)
            if kind is not None:
                counts[kind] = counts.get(kind, 0) + 1

        if not counts:
            return "No fixable issues"

        parts: list[str] = []
        for kind, count in counts.items():
            singular, plural = _FIX_LABELS[kind]
            parts.append(f"{count} {singular if count == 1 else plural}")
        return ", ".join(parts)

    # -- Individual repairs ----------------------------------------------------

    def _apply(self, story: Story, issue: Issue, kind: FixKind, result: FixResult) -> None:
        if kind is FixKind.DELETE_PASSAGE:
            self._delete_passage(story, issue, result)
        elif kind is FixKind.REMOVE_CHOICE:
            self._remove_choice(story, issue, result)
        elif kind is FixKind.ADD_VARIABLE:
            self._add_variable(story, issue, result)
        elif kind is FixKind.DELETE_VARIABLE:
            self._delete_variable(story, issue, result)
        elif kind is FixKind.DELETE_ASSET:
            self._delete_asset(story, issue, result)
        else:
            raise FixError(f"Unsupported fix kind {kind!r}")

    def _delete_passage(self, story: Story, issue: Issue, result: FixResult) -> None:
        passage_id = issue.passage_id or _id_suffix(issue, "unreachable_")
        if not passage_id:
            raise FixError("Issue does not name a passage")
        if passage_id == story.start_passage:
            raise FixError(f"Refusing to delete start passage {passage_id!r}")
        if story.remove_passage(passage_id):
            result.passages_deleted.append(passage_id)

    def _remove_choice(self, story: Story, issue: Issue, result: FixResult) -> None:
        if not issue.passage_id or not issue.choice_id:
            raise FixError("Issue does not name a passage and choice")
        passage = story.get_passage(issue.passage_id)
        if passage is not None and passage.remove_choice(issue.choice_id):
            result.choices_deleted.append(issue.choice_id)

    def _add_variable(self, story: Story, issue: Issue, result: FixResult) -> None:
        if not issue.variable_name:
            raise FixError("Issue does not name a variable")
        if declare_inferred_variable(story, issue.variable_name):
            result.variables_added.append(issue.variable_name)

    def _delete_variable(self, story: Story, issue: Issue, result: FixResult) -> None:
        name = issue.variable_name or _id_suffix(issue, "unused_var_")
        if not name:
            raise FixError("Issue does not name a variable")
        if story.variables.pop(name, None) is not None:
            result.variables_deleted.append(name)

    def _delete_asset(self, story: Story, issue: Issue, result: FixResult) -> None:
        asset_id = issue.asset_id or _id_suffix(issue, "unused_asset_")
        if not asset_id:
            raise FixError("Issue does not name an asset")
        keys = [key for key, asset in story.assets.items() if key == asset_id or asset.id == asset_id]
        for key in keys:
            del story.assets[key]
        if keys:
            result.assets_deleted.append(asset_id)
