"""Content validators: assets, passage length and choice count."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from storyprobe.validation.references import iter_asset_references
from storyprobe.validation.types import Category, FixKind, Issue

if TYPE_CHECKING:
    from storyprobe.models.story import Story

DEFAULT_LARGE_ASSET_BYTES = 5 * 1024 * 1024
DEFAULT_MAX_PASSAGE_WORDS = 1000
DEFAULT_MAX_CHOICES = 10


def _format_size(size: int) -> str:
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024  # type: ignore[assignment]
    return f"{size:.1f} GB"


class ValidateAssetsValidator:
    """Check asset declarations and ``asset://`` references.

    - empty id or empty path: error
    - size above the large-asset threshold: warning
    - reference to an undeclared asset: "Broken asset reference" error on the
      referencing passage
    - declared but never referenced: fixable info "Unused asset"
    """

    name = "validate_assets"
    category: Category = "content"

    def __init__(self, large_asset_bytes: int = DEFAULT_LARGE_ASSET_BYTES) -> None:
        self.large_asset_bytes = large_asset_bytes

    def validate(self, story: Story) -> list[Issue]:
        issues: list[Issue] = []
        declared_ids = {asset.id for asset in story.assets.values() if asset.id}

        for key, asset in story.assets.items():
            label = asset.name or asset.id or key
            if not asset.id:
                issues.append(
                    Issue(
                        id=f"asset_missing_id_{key}",
                        severity="error",
                        category=self.category,
                        message=f'Asset "{label}" is missing ID',
                        asset_id=key or None,
                        description="Asset must have a unique ID.",
                    )
                )
            if not asset.path:
                issues.append(
                    Issue(
                        id=f"asset_missing_path_{asset.id or key}",
                        severity="error",
                        category=self.category,
                        message=f'Asset "{label}" is missing path',
                        asset_id=asset.id or None,
                    )
                )
            if asset.size is not None and asset.size > self.large_asset_bytes:
                issues.append(
                    Issue(
                        id=f"large_asset_{asset.id or key}",
                        severity="warning",
                        category=self.category,
                        message=f'Asset "{label}" is large ({_format_size(asset.size)})',
                        asset_id=asset.id or None,
                    )
                )

        referenced: set[str] = set()
        for asset_id, pid in iter_asset_references(story):
            referenced.add(asset_id)
            if asset_id in declared_ids:
                continue
            issues.append(
                Issue(
                    id=f"broken_asset_{pid}_{asset_id}",
                    severity="error",
                    category=self.category,
                    message=f'Broken asset reference: "{asset_id}"',
                    passage_id=pid,
                    asset_id=asset_id,
                )
            )

        for key, asset in story.assets.items():
            if not asset.id or asset.id in referenced:
                continue
            issues.append(
                Issue(
                    id=f"unused_asset_{asset.id}",
                    severity="info",
                    category=self.category,
                    message=f'Unused asset: "{asset.name or asset.id}"',
                    asset_id=asset.id,
                    fixable=True,
                    fix_kind=FixKind.DELETE_ASSET,
                    fix_action=partial(story.assets.pop, key, None),
                )
            )
        return issues


class LongPassagesValidator:
    """Warn about passages whose content exceeds a word limit."""

    name = "long_passages"
    category: Category = "content"

    def __init__(self, max_words: int = DEFAULT_MAX_PASSAGE_WORDS) -> None:
        self.max_words = max_words

    def validate(self, story: Story) -> list[Issue]:
        issues: list[Issue] = []
        for pid, passage in story.passages.items():
            words = len(passage.content.split())
            if words <= self.max_words:
                continue
            issues.append(
                Issue(
                    id=f"long_passage_{pid}",
                    severity="warning",
                    category=self.category,
                    message=f'Passage "{passage.title or pid}" is long ({words} words)',
                    passage_id=pid,
                    description=f"Consider splitting passages over {self.max_words} words.",
                )
            )
        return issues


class TooManyChoicesValidator:
    """Warn about passages offering more choices than a reader can weigh."""

    name = "too_many_choices"
    category: Category = "content"

    def __init__(self, max_choices: int = DEFAULT_MAX_CHOICES) -> None:
        self.max_choices = max_choices

    def validate(self, story: Story) -> list[Issue]:
        return [
            Issue(
                id=f"too_many_choices_{pid}",
                severity="warning",
                category=self.category,
                message=f'Passage "{passage.title or pid}" has {len(passage.choices)} choices',
                passage_id=pid,
            )
            for pid, passage in story.passages.items()
            if len(passage.choices) > self.max_choices
        ]
