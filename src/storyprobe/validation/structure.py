"""Structure validators: start passage, reachability, empty and duplicate passages."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from storyprobe.graph.algorithms import find_reachable_passages
from storyprobe.models.story import END, RESTART
from storyprobe.validation.types import Category, FixKind, Issue

if TYPE_CHECKING:
    from storyprobe.models.story import Story


class MissingStartPassageValidator:
    """Error when ``start_passage`` is unset or does not resolve."""

    name = "missing_start_passage"
    category: Category = "structure"

    def validate(self, story: Story) -> list[Issue]:
        if story.start_passage and story.start_passage in story.passages:
            return []
        if story.start_passage:
            message = f'Start passage "{story.start_passage}" does not exist'
        else:
            message = "No start passage defined"
        return [
            Issue(
                id="missing_start_passage",
                severity="error",
                category=self.category,
                message=message,
                passage_id=story.start_passage or None,
                description="Every story needs a start passage that exists in the story.",
            )
        ]


class UnreachablePassagesValidator:
    """Warn about passages no chain of choices leads to from the start.

    Sentinel targets are not traversed. The start passage is never reported.
    When the start passage is unset or missing nothing is reachable, so every
    other passage is reported.
    """

    name = "unreachable_passages"
    category: Category = "structure"

    def validate(self, story: Story) -> list[Issue]:
        start = story.start_passage
        reachable = find_reachable_passages(story)
        issues: list[Issue] = []
        for pid, passage in story.passages.items():
            if pid == start or pid in reachable:
                continue
            issues.append(
                Issue(
                    id=f"unreachable_{pid}",
                    severity="warning",
                    category=self.category,
                    message=f'Passage "{passage.title or pid}" is unreachable',
                    passage_id=pid,
                    fixable=True,
                    fix_kind=FixKind.DELETE_PASSAGE,
                    fix_action=partial(story.remove_passage, pid),
                    description=(
                        "This passage cannot be reached from the start passage "
                        "through any path of choices."
                    ),
                )
            )
        return issues


class EmptyPassagesValidator:
    """Warn about passages with no content, no script and no choices."""

    name = "empty_passages"
    category: Category = "structure"

    def validate(self, story: Story) -> list[Issue]:
        issues: list[Issue] = []
        for pid, passage in story.passages.items():
            if passage.content.strip() or passage.choices or passage.on_enter_script:
                continue
            issues.append(
                Issue(
                    id=f"empty_passage_{pid}",
                    severity="warning",
                    category=self.category,
                    message=f'Passage "{passage.title or pid}" is empty',
                    passage_id=pid,
                )
            )
        return issues


class DuplicatePassageTitlesValidator:
    """Warn when several passages share a title (case-insensitive)."""

    name = "duplicate_passage_titles"
    category: Category = "structure"

    def validate(self, story: Story) -> list[Issue]:
        first_by_title: dict[str, str] = {}
        issues: list[Issue] = []
        for pid, passage in story.passages.items():
            key = passage.title.strip().lower()
            if not key:
                continue
            if key not in first_by_title:
                first_by_title[key] = pid
                continue
            issues.append(
                Issue(
                    id=f"duplicate_title_{pid}",
                    severity="warning",
                    category=self.category,
                    message=f'Duplicate passage title: "{passage.title}"',
                    passage_id=pid,
                    description=f"Same title as passage {first_by_title[key]}.",
                )
            )
        return issues


class NoTerminalPassageValidator:
    """Info when no passage can end the story."""

    name = "no_terminal_passage"
    category: Category = "structure"

    def validate(self, story: Story) -> list[Issue]:
        if not story.passages:
            return []
        for passage in story.passages.values():
            if not passage.choices:
                return []
            if any(c.target in (END, RESTART) for c in passage.choices):
                return []
        return [
            Issue(
                id="no_terminal_passage",
                severity="info",
                category=self.category,
                message="Story has no terminal passages",
                description="No passage ends the story (via END or by having no choices).",
            )
        ]
