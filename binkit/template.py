"""String templates with ``{ key }`` placeholders."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


class TemplateParseError(ValueError):
    """Raised when a template string is malformed."""

    def __init__(self, message: str, source: str, position: int) -> None:
        super().__init__(f"{message} at position {position} in {source!r}")
        self.source = source
        self.position = position


class TemplateRenderError(LookupError):
    """Raised when a template refers to a key that has no value."""

    def __init__(self, key: str) -> None:
        super().__init__(f"missing value for key {key!r}")
        self.key = key


@dataclass(frozen=True)
class _Text:
    text: str


@dataclass(frozen=True)
class _Key:
    name: str


_LEXER = re.compile(
    r"\\(?P<escaped>[{}\\])"
    r"|\{(?P<key>[^{}]*)\}"
    r"|(?P<stray>[{}])"
    r"|(?P<text>[^\\{}]+|\\)"
)


def _normalise(items: Iterable[_Text | _Key]) -> tuple[_Text | _Key, ...]:
    out: list[_Text | _Key] = []
    for item in items:
        if isinstance(item, _Text):
            if not item.text:
                continue
            if out and isinstance(out[-1], _Text):
                out[-1] = _Text(out[-1].text + item.text)
                continue
        elif not isinstance(item, _Key):
            raise TypeError(f"invalid template item: {item!r}")
        out.append(item)
    return tuple(out)


def _lookup(values: Any, key: str) -> str:
    getter = getattr(values, "get_value", None)
    if callable(getter):
        value = getter(key)
    elif isinstance(values, Mapping):
        value = values.get(key)
    elif callable(values):
        value = values(key)
    else:
        raise TypeError(f"cannot look up template values in {type(values).__name__}")
    if value is None:
        raise TemplateRenderError(key)
    return str(value)


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("{", "\\{").replace("}", "\\}")


@dataclass(frozen=True)
class Template:
    """A sequence of literal text and named keys."""

    items: tuple[_Text | _Key, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", _normalise(self.items))

    @classmethod
    def parse(cls, source: str) -> Template:
        """Parse ``source``; keys are written ``{ key }`` and braces escaped with a backslash."""
        items: list[_Text | _Key] = []
        for match in _LEXER.finditer(source):
            kind = match.lastgroup
            if kind == "escaped":
                items.append(_Text(match.group("escaped")))
            elif kind == "text":
                items.append(_Text(match.group("text")))
            elif kind == "key":
                name = match.group("key").strip()
                if not name:
                    raise TemplateParseError("empty key", source, match.start())
                items.append(_Key(name))
            elif match.group("stray") == "{":
                raise TemplateParseError("unclosed '{'", source, match.start())
            else:
                raise TemplateParseError("unmatched '}'", source, match.start())
        return cls(tuple(items))

    def render(self, values: Any) -> str:
        """Fill every key from ``values``.

        ``values`` may be an object with a ``get_value(key)`` method, a mapping
        or a callable; a ``None`` result means the key is missing.
        """
        return "".join(
            item.text if isinstance(item, _Text) else _lookup(values, item.name)
            for item in self.items
        )

    def keys(self) -> tuple[str, ...]:
        """Distinct keys in order of first appearance."""
        return tuple(dict.fromkeys(item.name for item in self.items if isinstance(item, _Key)))

    def has_key(self, key: str) -> bool:
        return any(isinstance(item, _Key) and item.name == key for item in self.items)

    def has_any_of_keys(self, keys: Iterable[str]) -> bool:
        wanted = set(keys)
        return any(isinstance(item, _Key) and item.name in wanted for item in self.items)

    def __add__(self, other: object) -> Template:
        if isinstance(other, Template):
            return Template(self.items + other.items)
        if isinstance(other, str):
            return Template(self.items + (_Text(other),))
        return NotImplemented

    def __str__(self) -> str:
        return "".join(
            _escape(item.text) if isinstance(item, _Text) else f"{{ {item.name} }}"
            for item in self.items
        )