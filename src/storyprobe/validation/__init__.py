"""Story validation: the validator registry and the built-in rule set."""

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
from storyprobe.validation.registry import ValidatorRegistry, create_default_registry
from storyprobe.validation.structure import (
    DuplicatePassageTitlesValidator,
    EmptyPassagesValidator,
    MissingStartPassageValidator,
    NoTerminalPassageValidator,
    UnreachablePassagesValidator,
)
from storyprobe.validation.types import (
    CATEGORIES,
    SEVERITIES,
    Category,
    FixKind,
    Issue,
    Severity,
    StoryStats,
    ValidationOptions,
    ValidationResult,
    Validator,
)
from storyprobe.validation.variables import (
    InvalidVariableNamesValidator,
    UndefinedVariablesValidator,
    UnusedVariablesValidator,
)

__all__ = [
    "CATEGORIES",
    "SEVERITIES",
    "BackOnStartValidator",
    "Category",
    "DeadLinksValidator",
    "DuplicatePassageTitlesValidator",
    "EmptyPassagesValidator",
    "FixKind",
    "InvalidVariableNamesValidator",
    "Issue",
    "LongPassagesValidator",
    "MissingStartPassageValidator",
    "NoTerminalPassageValidator",
    "SelfLinkValidator",
    "Severity",
    "SpecialTargetCaseValidator",
    "StoryStats",
    "TooManyChoicesValidator",
    "UndefinedVariablesValidator",
    "UnreachablePassagesValidator",
    "UnusedVariablesValidator",
    "ValidateAssetsValidator",
    "ValidationOptions",
    "ValidationResult",
    "Validator",
    "ValidatorRegistry",
    "create_default_registry",
]
