"""Variable validators: undefined, unused and badly named variables."""

from __future__ import annotations

import re
from functools import partial
from typing import TYPE_CHECKING

from storyprobe.models.story import Variable
from storyprobe.validation.references import infer_variable_type, iter_variable_references
from storyprobe.validation.types import Category, FixKind, Issue

if TYPE_CHECKING:
    from storyprobe.models.story import Story, VariableType

_VALID_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
RESERVED_PREFIXES = ("whisker_", "__")

DEFAULT_INITIAL: dict[VariableType, bool | int | str] = {
    "number": 0,
    "boolean": False,
    "string": "",
}


def declare_inferred_variable(story: Story, name: str) -> bool:
    """Declare ``name`` with a default for the type its usage suggests.

    Falls back to a number initialised to 0 when usage gives no hint.

    Returns:
        True if the variable was added, False if it already existed.
    """
    if name in story.variables:
        return False
    var_type = infer_variable_type(story, name) or "number"
    story.add_variable(Variable(name=name, type=var_type, initial=DEFAULT_INITIAL[var_type]))
    return True


class UndefinedVariablesValidator:
    """One fixable error per referenced name that is not declared.

    Deduplicated across passages; the issue points at the first passage
    where the name appears.
    """

    name = "undefined_variables"
    category: Category = "variables"

    def validate(self, story: Story) -> list[Issue]:
        seen: set[str] = set()
        issues: list[Issue] = []
        for ref in iter_variable_references(story):
            if ref.name in story.variables or ref.name in seen:
                continue
            seen.add(ref.name)
            issues.append(
                Issue(
                    id=f"undefined_var_{ref.name}",
                    severity="error",
                    category=self.category,
                    message=f'Undefined variable: "{ref.name}"',
                    passage_id=ref.passage_id,
                    choice_id=ref.choice_id,
                    variable_name=ref.name,
                    fixable=True,
                    fix_kind=FixKind.ADD_VARIABLE,
                    fix_action=partial(declare_inferred_variable, story, ref.name),
                    description=f"Referenced in {ref.source} but never declared.",
                )
            )
        return issues


class UnusedVariablesValidator:
    """Fixable info for declared variables that nothing references."""

    name = "unused_variables"
    category: Category = "variables"

    def validate(self, story: Story) -> list[Issue]:
        used = {ref.name for ref in iter_variable_references(story)}
        return [
            Issue(
                id=f"unused_var_{name}",
                severity="info",
                category=self.category,
                message=f'Unused variable: "{name}"',
                variable_name=name,
                fixable=True,
                fix_kind=FixKind.DELETE_VARIABLE,
                fix_action=partial(story.variables.pop, name, None),
            )
            for name in story.variables
            if name not in used
        ]


class InvalidVariableNamesValidator:
    """Errors for unusable names, warnings for reserved prefixes."""

    name = "invalid_variable_names"
    category: Category = "variables"

    def validate(self, story: Story) -> list[Issue]:
        issues: list[Issue] = []
        for name in story.variables:
            if not _VALID_NAME.match(name):
                issues.append(
                    Issue(
                        id=f"invalid_var_name_{name}",
                        severity="error",
                        category=self.category,
                        message=f'Invalid variable name: "{name}"',
                        variable_name=name,
                        description=(
                            "Variable names must start with a letter or underscore "
                            "and contain only letters, digits and underscores."
                        ),
                    )
                )
            elif name.startswith(RESERVED_PREFIXES):
                issues.append(
                    Issue(
                        id=f"reserved_var_prefix_{name}",
                        severity="warning",
                        category=self.category,
                        message=f'Variable uses reserved prefix: "{name}"',
                        variable_name=name,
                    )
                )
        return issues
