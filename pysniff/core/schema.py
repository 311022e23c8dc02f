"""Field schema that filter predicates are checked against."""

from enum import Enum
from typing import Dict


class FieldType(Enum):
    """Static type of a filterable field."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DYNAMIC = "dynamic"    # Any JSON value, checked at evaluation time


MESSAGE_SCHEMA: Dict[str, FieldType] = {
    "message_id": FieldType.DYNAMIC,
    "stream_id": FieldType.DYNAMIC,
    "direction": FieldType.STRING,
    "time": FieldType.STRING,
    "method": FieldType.STRING,
    "message": FieldType.STRING,
    "peer_address": FieldType.STRING,
    "content": FieldType.DYNAMIC,
    "error": FieldType.STRING,
}

# Fields a record may omit
OPTIONAL_FIELDS = frozenset({"stream_id", "error"})
