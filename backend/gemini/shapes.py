"""
Response shapes: how raw model text is turned into what a call site expects.

  FreeText         stripped text, verbatim
  JsonStringArray  first [...] block as a list of strings, falling back to
                   one item per line when the block is missing or invalid
  JsonObjectArray  first [...] block as a list of records, each field read
                   from its first present alias; unparseable → MalformedResponse
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from gemini.errors import MalformedResponse

_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)
_NUMBER_PREFIX_RE = re.compile(r"^\d+[.)]\s*")


def _find_array(raw: str) -> Optional[list]:
    """Parse the first bracketed block as JSON; None if absent, invalid, or not a list."""
    match = _ARRAY_RE.search(raw)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, list) else None


# ─── Shapes ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FreeText:
    def parse(self, raw: str) -> str:
        return raw.strip()


@dataclass(frozen=True)
class JsonStringArray:
    count: int
    questions_only: bool = True

    def parse(self, raw: str) -> list[str]:
        items = _find_array(raw)
        if items is not None:
            return [item if isinstance(item, str) else str(item) for item in items][: self.count]
        return self._split_lines(raw)

    def _split_lines(self, raw: str) -> list[str]:
        lines = []
        for line in raw.split("\n"):
            if not line.strip():
                continue
            if self.questions_only and "?" not in line:
                continue
            lines.append(_NUMBER_PREFIX_RE.sub("", line.strip()).strip())
        return lines[: self.count]


@dataclass(frozen=True)
class FieldSpec:
    """One target field, read from the first alias present in the entry."""
    name: str
    aliases: tuple[str, ...]
    default: Any = ""
    coerce: Optional[Callable[[Any], Any]] = None

    def read(self, entry: dict) -> Any:
        for alias in self.aliases:
            value = entry.get(alias)
            if value is None or value == "":
                continue
            if self.coerce is None:
                return value
            try:
                return self.coerce(value)
            except (TypeError, ValueError):
                continue
        return self.default() if callable(self.default) else self.default


@dataclass(frozen=True)
class JsonObjectArray:
    fields: Sequence[FieldSpec]
    build: Callable[..., Any] = dict
    count: Optional[int] = None
    label: str = "items"

    def parse(self, raw: str) -> list:
        entries = _find_array(raw)
        if not entries:
            raise MalformedResponse(f"Failed to parse {self.label} from AI response")

        if self.count is not None:
            entries = entries[: self.count]

        records = []
        for entry in entries:
            if not isinstance(entry, dict):
                entry = {}
            records.append(self.build(**{f.name: f.read(entry) for f in self.fields}))
        return records


FREE_TEXT = FreeText()


# ─── Field coercions ──────────────────────────────────────────────────

def as_text(value: Any) -> str:
    if isinstance(value, (dict, list)):
        raise TypeError("expected a scalar")
    return str(value).strip()


def as_index(value: Any) -> int:
    # bool is an int subclass; true/false is not a valid answer index
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError("expected an integer index")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError("expected an integer index")
    return int(value)


def as_string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise TypeError("expected a list")
    return [str(item) for item in value]
