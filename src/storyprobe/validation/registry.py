"""Validator registry: an ordered, name-deduplicated collection of rules.

Validators are plain objects satisfying the ``Validator`` protocol (``name``,
``category``, ``validate(story)``). The registry runs all of them against the
same story snapshot and concatenates their issues in registration order.

Usage::

    registry = create_default_registry()
    issues = registry.validate(story)

    result = registry.run(story, ValidationOptions(categories=["links"]))
    if not result.valid:
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from storyprobe.observability.logging import get_logger
from storyprobe.validation.types import (
    Issue,
    StoryStats,
    ValidationOptions,
    ValidationResult,
    Validator,
)

if TYPE_CHECKING:
    from storyprobe.config import ValidationConfig
    from storyprobe.models.story import Story

log = get_logger(__name__)


class ValidatorRegistry:
    """Collects validators and runs them against a story.

    A validator that raises is isolated: its issues are discarded, the
    failure is logged, and the remaining validators still run.
    """

    def __init__(self) -> None:
        self._validators: dict[str, Validator] = {}

    # -- Registration ----------------------------------------------------------

    def register(self, validator: Validator) -> None:
        """Register a validator.

        Registering a second validator under an existing name is a no-op
        that logs a warning.
        """
        if validator.name in self._validators:
            log.warning(
                "validator_duplicate_ignored",
                validator=validator.name,
                existing=type(self._validators[validator.name]).__qualname__,
            )
            return
        self._validators[validator.name] = validator

    def get_validators(self) -> list[Validator]:
        """All registered validators, in registration order."""
        return list(self._validators.values())

    def get(self, name: str) -> Validator | None:
        """Get a registered validator by name, or None."""
        return self._validators.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._validators)

    def __len__(self) -> int:
        return len(self._validators)

    def __contains__(self, name: str) -> bool:
        return name in self._validators

    # -- Execution -------------------------------------------------------------

    def validate(self, story: Story) -> list[Issue]:
        """Run every validator and concatenate their issues."""
        issues, _failed = self._run_validators(story, self.get_validators())
        return issues

    def run(self, story: Story, options: ValidationOptions | None = None) -> ValidationResult:
        """Run a filtered validation pass and aggregate the result.

        Args:
            story: Story snapshot to validate. Not modified.
            options: Category/severity/name filters. Defaults to everything.

        Returns:
            ValidationResult with the kept issues, story stats, and the names
            of validators that raised.
        """
        options = options or ValidationOptions()
        selected = [
            v
            for v in self.get_validators()
            if v.name not in options.disabled
            and (options.categories is None or v.category in options.categories)
        ]
        issues, failed = self._run_validators(story, selected)

        if not options.include_warnings:
            issues = [i for i in issues if i.severity != "warning"]
        if not options.include_info:
            issues = [i for i in issues if i.severity != "info"]

        result = ValidationResult(
            issues=issues,
            stats=StoryStats(
                total_passages=len(story.passages),
                total_choices=story.choice_count,
                total_variables=len(story.variables),
                total_assets=len(story.assets),
            ),
            failed_validators=failed,
        )
        log.info(
            "validation_complete",
            validators=len(selected),
            issues=len(issues),
            summary=result.summary,
        )
        return result

    def _run_validators(
        self, story: Story, validators: list[Validator]
    ) -> tuple[list[Issue], list[str]]:
        issues: list[Issue] = []
        failed: list[str] = []
        for validator in validators:
            try:
                found = validator.validate(story)
            except Exception as e:
                log.error(
                    "validator_failed",
                    validator=validator.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                failed.append(validator.name)
                continue
            log.debug("validator_ran", validator=validator.name, issues=len(found))
            issues.extend(found)
        return issues, failed


def create_default_registry(config: ValidationConfig | None = None) -> ValidatorRegistry:
    """Build a registry holding every built-in validator.

    Args:
        config: Thresholds for the content checks and validator names to
            leave out. Defaults to ``ValidationConfig()``.
    """
    from storyprobe.config import ValidationConfig
    from storyprobe.validation.content import (
        LongPassagesValidator,
        TooManyChoicesValidator,
        ValidateAssetsValidator,
    )
    from storyprobe.validation.links import (
        BackOnStartValidator,
        DeadLinksValidator,
        SelfLinkValidator,
        SpecialTargetCaseValidator,
    )
    from storyprobe.validation.structure import (
        DuplicatePassageTitlesValidator,
        EmptyPassagesValidator,
        MissingStartPassageValidator,
        NoTerminalPassageValidator,
        UnreachablePassagesValidator,
    )
    from storyprobe.validation.variables import (
        InvalidVariableNamesValidator,
        UndefinedVariablesValidator,
        UnusedVariablesValidator,
    )

    config = config or ValidationConfig()
    validators: list[Validator] = [
        MissingStartPassageValidator(),
        UnreachablePassagesValidator(),
        EmptyPassagesValidator(),
        DuplicatePassageTitlesValidator(),
        NoTerminalPassageValidator(),
        DeadLinksValidator(),
        SelfLinkValidator(),
        SpecialTargetCaseValidator(),
        BackOnStartValidator(),
        UndefinedVariablesValidator(),
        UnusedVariablesValidator(),
        InvalidVariableNamesValidator(),
        ValidateAssetsValidator(large_asset_bytes=config.large_asset_bytes),
        LongPassagesValidator(max_words=config.max_passage_words),
        TooManyChoicesValidator(max_choices=config.max_choices_per_passage),
    ]

    registry = ValidatorRegistry()
    for validator in validators:
        if validator.name in config.disabled_validators:
            continue
        registry.register(validator)
    return registry
