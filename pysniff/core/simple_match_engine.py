"""Case-insensitive ``key: value`` and substring matching.

This is the matching the web viewer shipped with: ``method: /pkg.Svc/Call``
compares one field exactly (surrounding whitespace ignored), any other text is searched for in the method and
message names. It never rejects filter text.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from .predicate_engine import PredicateEngine
from .schema import MESSAGE_SCHEMA, FieldType

HELP_TEXT = """\
Type text to match it anywhere in the method or message name.

Use "field: value" to match one field exactly (case-insensitive):

  direction: recv
  method: /helloworld.Greeter/SayHello
  peer_address: 127.0.0.1:50312

Click a value in the details pane to filter on it."""


@dataclass(frozen=True)
class SimplePredicate:
    text: str                   # lower-cased query
    key: Optional[str] = None
    value: Optional[str] = None


def _as_text(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


class SimpleMatchEngine(PredicateEngine):
    """Key/value or substring matcher."""

    name = "simple"
    help_text = HELP_TEXT

    def __init__(self, schema: Optional[Mapping[str, FieldType]] = None):
        self._schema = dict(schema if schema is not None else MESSAGE_SCHEMA)

    def parse(self, text: str) -> SimplePredicate:
        query = text.strip().lower()
        if ":" in query:
            key, _, value = query.partition(":")
            return SimplePredicate(text=query, key=key.strip(), value=value.strip())
        return SimplePredicate(text=query)

    def check(self, predicate: SimplePredicate, schema: Mapping[str, FieldType]) -> None:
        # Unknown keys fall back to substring search, nothing to reject
        return None

    def evaluate(self, predicate: SimplePredicate, fields: Mapping[str, Any]) -> bool:
        if predicate.key is not None and predicate.key in fields:
            return _as_text(fields[predicate.key]).strip().lower() == predicate.value
        return (predicate.text in str(fields.get("method", "")).lower()
                or predicate.text in str(fields.get("message", "")).lower())

    def quick_filter(self, field_name: str, value: Any) -> str:
        if field_name not in self._schema:
            raise ValueError(f"unknown field '{field_name}'")
        return f"{field_name}: {_as_text(value)}"
