"""Link validators: dead links, self links and sentinel target misuse."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from storyprobe.models.story import BACK, SENTINEL_TARGETS
from storyprobe.validation.types import Category, FixKind, Issue

if TYPE_CHECKING:
    from storyprobe.models.story import Story


class DeadLinksValidator:
    """One fixable error per choice whose target resolves to nothing.

    A target is dead when it is neither a sentinel nor an existing passage
    id. Empty targets are dead too.
    """

    name = "dead_links"
    category: Category = "links"

    def validate(self, story: Story) -> list[Issue]:
        issues: list[Issue] = []
        for pid, passage in story.passages.items():
            for choice in passage.choices:
                if choice.is_sentinel or choice.target in story.passages:
                    continue
                if choice.target:
                    message = f'Choice links to non-existent passage: "{choice.target}"'
                else:
                    message = "Choice has no target"
                issues.append(
                    Issue(
                        id=f"dead_link_{pid}_{choice.id}",
                        severity="error",
                        category=self.category,
                        message=message,
                        passage_id=pid,
                        choice_id=choice.id,
                        fixable=True,
                        fix_kind=FixKind.REMOVE_CHOICE,
                        fix_action=partial(passage.remove_choice, choice.id),
                    )
                )
        return issues


class SelfLinkValidator:
    """Info when a choice loops back to its own passage without an action."""

    name = "self_links"
    category: Category = "links"

    def validate(self, story: Story) -> list[Issue]:
        issues: list[Issue] = []
        for pid, passage in story.passages.items():
            for choice in passage.choices:
                if choice.target != pid or choice.action:
                    continue
                issues.append(
                    Issue(
                        id=f"self_link_{pid}_{choice.id}",
                        severity="info",
                        category=self.category,
                        message="Choice links to same passage without state change",
                        passage_id=pid,
                        choice_id=choice.id,
                    )
                )
        return issues


class SpecialTargetCaseValidator:
    """Warn when a target spells a sentinel in the wrong case (``end``)."""

    name = "special_target_case"
    category: Category = "links"

    def validate(self, story: Story) -> list[Issue]:
        issues: list[Issue] = []
        for pid, passage in story.passages.items():
            for choice in passage.choices:
                target = choice.target.strip()
                expected = target.upper()
                if expected not in SENTINEL_TARGETS or choice.target == expected:
                    continue
                if choice.target in story.passages:
                    continue
                issues.append(
                    Issue(
                        id=f"special_target_case_{pid}_{choice.id}",
                        severity="warning",
                        category=self.category,
                        message=f'Special target "{choice.target}" should be "{expected}"',
                        passage_id=pid,
                        choice_id=choice.id,
                    )
                )
        return issues


class BackOnStartValidator:
    """Warn about BACK choices on the start passage (there is no history)."""

    name = "back_on_start"
    category: Category = "links"

    def validate(self, story: Story) -> list[Issue]:
        start = story.get_passage(story.start_passage)
        if start is None:
            return []
        return [
            Issue(
                id=f"back_on_start_{choice.id}",
                severity="warning",
                category=self.category,
                message="BACK used on start passage",
                passage_id=start.id,
                choice_id=choice.id,
            )
            for choice in start.choices
            if choice.target == BACK
        ]
