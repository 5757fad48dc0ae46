"""Story graph model read (and, for the fixer, mutated) by the analysis core.

The editor owns these objects; storyprobe only reads them during validation
and simulation. Field names are snake_case in Python and accept the editor's
camelCase spelling (``startPassage``, ``onEnterScript``, ``mimeType``) when
validated from a document.
"""

from __future__ import annotations

from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

END = "END"
BACK = "BACK"
RESTART = "RESTART"
SENTINEL_TARGETS = frozenset({END, BACK, RESTART})

VariableType = Literal["string", "number", "boolean"]


def _new_id() -> str:
    return uuid4().hex[:12]


class _StoryModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=False,
    )


class Choice(_StoryModel):
    """A directed edge from its passage to a passage id or a sentinel target."""

    id: str = Field(default_factory=_new_id)
    text: str = ""
    target: str = ""
    condition: str | None = None
    action: str | None = None

    @property
    def is_sentinel(self) -> bool:
        """True if the target is END, BACK or RESTART."""
        return self.target in SENTINEL_TARGETS


class Passage(_StoryModel):
    """A node of the narrative graph."""

    id: str = Field(default_factory=_new_id)
    title: str = ""
    content: str = ""
    choices: list[Choice] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    on_enter_script: str | None = None

    def add_choice(self, choice: Choice) -> Choice:
        self.choices.append(choice)
        return choice

    def get_choice(self, choice_id: str) -> Choice | None:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None

    def remove_choice(self, choice_id: str) -> bool:
        """Remove a choice by id. Returns False if it was not present."""
        for index, choice in enumerate(self.choices):
            if choice.id == choice_id:
                del self.choices[index]
                return True
        return False


class Variable(_StoryModel):
    """A story-scoped variable declaration."""

    name: str
    type: VariableType = "number"
    initial: bool | int | float | str | None = None


class Asset(_StoryModel):
    """A media asset referenced from content as ``asset://<id>``."""

    id: str = ""
    name: str = ""
    type: str = ""
    path: str = ""
    mime_type: str = ""
    size: int | None = Field(default=None, ge=0)


def _record_key(item: Any, key: str) -> str:
    if isinstance(item, dict):
        return item.get(key) or ""
    return getattr(item, key, "") or ""


def _with_key(item: Any, key: str, value: str) -> Any:
    if isinstance(item, dict):
        return {**item, key: value}
    if isinstance(item, BaseModel):
        return item.model_copy(update={key: value})
    return item


def _keyed(value: Any, key: str, *, fill_from_key: bool = False, generate: bool = False) -> Any:
    """Key a list of records by ``key`` and check a mapping against its records.

    In a list, a record without its own ``key`` gets a fresh id when
    ``generate`` is set and is otherwise keyed by its position. In a mapping,
    such a record takes its mapping key when ``fill_from_key`` is set.

    Raises:
        ValueError: A list repeats a key, or a record's own ``key`` differs
            from its mapping key.
    """
    if isinstance(value, list):
        keyed: dict[str, Any] = {}
        for index, item in enumerate(value):
            item_key = _record_key(item, key)
            if not item_key and generate:
                item_key = _new_id()
                item = _with_key(item, key, item_key)
            elif not item_key:
                item_key = str(index)
            elif item_key in keyed:
                raise ValueError(f"Duplicate {key} {item_key!r}")
            keyed[item_key] = item
        return keyed
    if isinstance(value, dict):
        checked: dict[str, Any] = {}
        for map_key, item in value.items():
            item_key = _record_key(item, key)
            if not item_key and fill_from_key:
                item = _with_key(item, key, map_key)
            elif item_key and item_key != map_key:
                raise ValueError(f"{key} {item_key!r} does not match its key {map_key!r}")
            checked[map_key] = item
        return checked
    return value


class Story(_StoryModel):
    """Passages keyed by id, variables keyed by name, assets keyed by id."""

    title: str = ""
    passages: dict[str, Passage] = Field(default_factory=dict)
    variables: dict[str, Variable] = Field(default_factory=dict)
    assets: dict[str, Asset] = Field(default_factory=dict)
    start_passage: str | None = None

    @field_validator("passages", mode="before")
    @classmethod
    def _key_passages(cls, value: Any) -> Any:
        return _keyed(value, "id", fill_from_key=True, generate=True)

    @field_validator("variables", mode="before")
    @classmethod
    def _key_variables(cls, value: Any) -> Any:
        return _keyed(value, "name", fill_from_key=True)

    # Keyless assets stay keyless so ValidateAssets can report them.
    @field_validator("assets", mode="before")
    @classmethod
    def _key_assets(cls, value: Any) -> Any:
        return _keyed(value, "id")

    def add_passage(self, passage: Passage) -> Passage:
        self.passages[passage.id] = passage
        return passage

    def get_passage(self, passage_id: str | None) -> Passage | None:
        if passage_id is None:
            return None
        return self.passages.get(passage_id)

    def remove_passage(self, passage_id: str) -> bool:
        """Remove a passage by id. Returns False if it was not present."""
        return self.passages.pop(passage_id, None) is not None

    def add_variable(self, variable: Variable) -> Variable:
        self.variables[variable.name] = variable
        return variable

    def add_asset(self, asset: Asset) -> Asset:
        self.assets[asset.id] = asset
        return asset

    @property
    def choice_count(self) -> int:
        return sum(len(p.choices) for p in self.passages.values())
