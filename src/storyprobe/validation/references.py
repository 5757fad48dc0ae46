"""Pattern scanning for variable and asset references.

Passage content interpolates variables as ``{{name}}``, ``$name`` or
``${expression}``, and wraps prose in block macros: ``{{if cond}}``,
``{{elseif cond}}``, ``{{else}}``, ``{{each item in items}}`` and
``{{for i in range(1, n)}}``, each closed by ``{{end}}``. Handlebars-style
``{{#if cond}}`` / ``{{/if}}`` tags read the same way. Inline ``{{var expr}}``
and ``{{call fn(args)}}`` tags interpolate expressions. Names bound by a loop
are local to its block. Conditions, choice actions and on-enter scripts are
Lua-like expressions: every free identifier that is not a keyword, a known
global, a local, a member access or a function call counts as a variable
reference. Assets are referenced as ``asset://<id>``.

Scanning is purely textual and never raises: text that cannot be
interpreted simply yields no references.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from storyprobe.models.story import Story, VariableType

ReferenceSource = Literal["content", "condition", "action", "script"]

LUA_KEYWORDS = frozenset(
    {
        "and",
        "break",
        "do",
        "else",
        "elseif",
        "end",
        "false",
        "for",
        "function",
        "goto",
        "if",
        "in",
        "local",
        "nil",
        "not",
        "or",
        "repeat",
        "return",
        "then",
        "true",
        "until",
        "while",
    }
)

KNOWN_GLOBALS = frozenset(
    {
        "ipairs",
        "math",
        "os",
        "pairs",
        "print",
        "string",
        "table",
        "tonumber",
        "tostring",
        "type",
        "whisker",
    }
)

BLOCK_MACROS = frozenset({"if", "unless", "each", "for"})
CONDITION_MACROS = frozenset({"if", "elseif", "unless"})
LOOP_MACROS = frozenset({"each", "for"})
CONTENT_MACROS = BLOCK_MACROS | {"elseif", "else", "end", "var", "call"}

_TAG = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")
_TAG_KEYWORD = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\s*(.*)", re.DOTALL)
_LOOP_HEAD = re.compile(r"([A-Za-z_][A-Za-z0-9_]*(?:\s*,\s*[A-Za-z_][A-Za-z0-9_]*)*)\s+in\s+(.*)", re.DOTALL)
_DOLLAR = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)")
_DOLLAR_EXPR = re.compile(r"\$\{([^}]*)\}")
_ASSET = re.compile(r"asset://([A-Za-z0-9_.\-]+)")

_IDENT = re.compile(r"(?<![A-Za-z0-9_])[A-Za-z_][A-Za-z0-9_]*")
_STRING = re.compile(r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'|\[\[.*?\]\]", re.DOTALL)
_COMMENT = re.compile(r"--\[\[.*?\]\]|--[^\n]*", re.DOTALL)
_LOCAL = re.compile(r"\blocal\s+(?:function\s+)?([A-Za-z_][A-Za-z0-9_]*(?:\s*,\s*[A-Za-z_][A-Za-z0-9_]*)*)")
_FUNC_PARAMS = re.compile(r"\bfunction\b[^(]*\(([^)]*)\)")
_FOR_VARS = re.compile(r"\bfor\s+([A-Za-z_][A-Za-z0-9_]*(?:\s*,\s*[A-Za-z_][A-Za-z0-9_]*)*)\s*(?:=|\bin\b)")


@dataclass(frozen=True)
class VariableReference:
    """One occurrence of a variable name in the story."""

    name: str
    passage_id: str
    source: ReferenceSource
    choice_id: str | None = None


def _split_names(group: str) -> list[str]:
    return [n.strip() for n in group.split(",") if n.strip()]


def _bound_names(text: str) -> set[str]:
    bound: set[str] = set()
    for pattern in (_LOCAL, _FUNC_PARAMS, _FOR_VARS):
        for match in pattern.finditer(text):
            bound.update(_split_names(match.group(1)))
    return bound


def strip_literals(expression: str) -> str:
    """Remove comments and string literals from a Lua-like expression."""
    without_comments = _COMMENT.sub(" ", expression)
    return _STRING.sub(" ", without_comments)


def expression_references(expression: str | None) -> list[str]:
    """Return free variable names referenced by a Lua-like expression or script.

    Names appear once each, in first-occurrence order.
    """
    if not expression:
        return []
    text = strip_literals(expression)
    bound = _bound_names(text)

    names: list[str] = []
    for match in _IDENT.finditer(text):
        name = match.group(0)
        if name in LUA_KEYWORDS or name in KNOWN_GLOBALS or name in bound:
            continue
        if name.startswith("_"):
            continue
        before = text[: match.start()].rstrip()
        if before.endswith((".", ":")) and not before.endswith(".."):
            continue
        if text[match.end() :].lstrip().startswith("("):
            continue
        if name not in names:
            names.append(name)
    return names


def _split_tag(tag: str) -> tuple[str, str]:
    """Split the inside of a ``{{...}}`` tag into ``(macro, argument)``.

    ``else if`` reads as ``elseif`` and any ``{{/name}}`` closer as ``end``.
    A tag that does not start with a macro keyword is a plain interpolation
    and comes back as ``("", tag)``.
    """
    if tag.startswith("/"):
        return "end", ""
    body = tag.lstrip("#").strip()
    match = _TAG_KEYWORD.fullmatch(body)
    if match is None or match.group(1) not in CONTENT_MACROS:
        return "", body
    macro, argument = match.group(1), match.group(2).strip()
    if macro == "else":
        head = _TAG_KEYWORD.fullmatch(argument)
        if head is not None and head.group(1) == "if":
            return "elseif", head.group(2).strip()
        return "else", ""
    if macro == "end":
        return "end", ""
    return macro, argument


def _loop_head(argument: str) -> tuple[set[str], str]:
    match = _LOOP_HEAD.fullmatch(argument)
    if match is None:
        return set(), argument
    return set(_split_names(match.group(1))), match.group(2)


def content_references(content: str | None) -> list[str]:
    """Return variable names interpolated into passage content.

    Macro keywords are never names. Loop variables of ``each`` and ``for``
    are skipped inside their block.
    """
    if not content:
        return []
    names: list[str] = []
    scopes: list[set[str]] = []

    def _add(name: str) -> None:
        if name.startswith("_") or name in names:
            return
        if any(name in scope for scope in scopes):
            return
        names.append(name)

    for match in _TAG.finditer(content):
        macro, argument = _split_tag(match.group(1))
        bound: set[str] = set()
        if macro in LOOP_MACROS:
            bound, argument = _loop_head(argument)
        for name in expression_references(argument):
            _add(name)
        if macro in BLOCK_MACROS:
            scopes.append(bound)
        elif macro == "end" and scopes:
            scopes.pop()
    for match in _DOLLAR.finditer(content):
        _add(match.group(1))
    for match in _DOLLAR_EXPR.finditer(content):
        for name in expression_references(match.group(1)):
            _add(name)
    return names


def asset_references(text: str | None) -> list[str]:
    """Return asset ids referenced as ``asset://<id>`` in text."""
    if not text:
        return []
    ids: list[str] = []
    for match in _ASSET.finditer(text):
        asset_id = match.group(1).rstrip(".")
        if asset_id and asset_id not in ids:
            ids.append(asset_id)
    return ids


def iter_variable_references(story: Story) -> Iterator[VariableReference]:
    """Yield every variable reference in passage order.

    Scans passage content, the on-enter script, and each choice's condition
    and action.
    """
    for pid, passage in story.passages.items():
        for name in content_references(passage.content):
            yield VariableReference(name, pid, "content")
        for name in expression_references(passage.on_enter_script):
            yield VariableReference(name, pid, "script")
        for choice in passage.choices:
            for name in expression_references(choice.condition):
                yield VariableReference(name, pid, "condition", choice.id)
            for name in expression_references(choice.action):
                yield VariableReference(name, pid, "action", choice.id)


def iter_asset_references(story: Story) -> Iterator[tuple[str, str]]:
    """Yield ``(asset_id, passage_id)`` for every asset reference.

    Each asset is yielded once per passage that references it.
    """
    for pid, passage in story.passages.items():
        seen: list[str] = []
        sources = [passage.content, passage.on_enter_script]
        sources.extend(choice.action for choice in passage.choices)
        for text in sources:
            for asset_id in asset_references(text):
                if asset_id not in seen:
                    seen.append(asset_id)
                    yield asset_id, pid


def _expression_sources(story: Story) -> Iterator[str]:
    for passage in story.passages.values():
        for match in _DOLLAR_EXPR.finditer(passage.content or ""):
            yield match.group(1)
        for match in _TAG.finditer(passage.content or ""):
            macro, argument = _split_tag(match.group(1))
            if macro in CONDITION_MACROS and argument:
                yield argument
        if passage.on_enter_script:
            yield passage.on_enter_script
        for choice in passage.choices:
            if choice.condition:
                yield choice.condition
            if choice.action:
                yield choice.action


def infer_variable_type(story: Story, name: str) -> VariableType | None:
    """Guess a variable's type from how expressions use it.

    Comparison or assignment with a quoted string means ``string``; with
    ``true``/``false``, negation or bare truthiness means ``boolean``;
    arithmetic or numeric comparison means ``number``. Returns None when the
    usage gives no hint.
    """
    n = re.escape(name)
    string_patterns = [
        re.compile(rf"(?<![\w.]){n}\s*(?:==|~=|!=|=(?!=)|\.\.)\s*[\"']"),
        re.compile(rf"[\"']\s*(?:==|~=|!=|\.\.)\s*{n}(?![\w(])"),
    ]
    boolean_patterns = [
        re.compile(rf"(?<![\w.]){n}\s*(?:==|~=|!=|=(?!=))\s*(?:true|false)\b"),
        re.compile(rf"\bnot\s+{n}(?![\w(])"),
        re.compile(rf"^\s*{n}\s*$"),
        re.compile(rf"(?<![\w.]){n}\s+(?:and|or)\b"),
        re.compile(rf"\b(?:and|or)\s+{n}(?![\w(.])"),
    ]
    number_patterns = [
        re.compile(rf"(?<![\w.]){n}\s*(?:<=|>=|<|>|==|~=|!=|=(?!=))\s*-?\d"),
        re.compile(rf"(?<![\w.]){n}\s*[-+*/%^](?!-)"),
        re.compile(rf"[-+*/%^<>]\s*{n}(?![\w(])"),
    ]

    sources = [_COMMENT.sub(" ", source) for source in _expression_sources(story)]
    for kind, patterns in (
        ("string", string_patterns),
        ("boolean", boolean_patterns),
        ("number", number_patterns),
    ):
        for source in sources:
            if any(p.search(source) for p in patterns):
                return kind  # type: ignore[return-value]
    return None
