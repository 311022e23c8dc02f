"""Decoding of capture file lines into message records."""

import json
import os
from typing import Any, Dict, Optional

import jsonschema
from jsonschema.exceptions import best_match

from pysniff.logging import get_logger
from ..core.errors import DecodeError
from ..core.message_record import MessageRecord

logger = get_logger(__name__)

SCHEMA_PATH = os.path.join(os.path.dirname(__file__), 'record_schema.json')

_validator: Optional[jsonschema.Draft202012Validator] = None


def _get_validator() -> jsonschema.Draft202012Validator:
    global _validator
    if _validator is None:
        with open(SCHEMA_PATH, 'r', encoding='utf-8') as f:
            _validator = jsonschema.Draft202012Validator(json.load(f))
    return _validator


def upgrade_legacy(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Convert the older capture shape (id/type/message) to the current one.

    Older interceptors wrote the protobuf type name under ``type`` and the
    payload under ``message``.
    """
    if 'message_id' in payload or 'id' not in payload:
        return payload
    return {
        'message_id': payload['id'],
        'direction': payload.get('direction'),
        'time': payload.get('time', ''),
        'method': payload.get('method', ''),
        'message': payload.get('type', ''),
        'peer_address': payload.get('peer_address', 'unknown'),
        'content': payload.get('message'),
    }


def decode_record(line: str) -> MessageRecord:
    """
    Parse one capture line.

    Raises:
        DecodeError: if the line is not JSON or not a valid message record.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON at column {e.colno}: {e.msg}") from None

    if not isinstance(payload, dict):
        raise DecodeError(f"Expected a JSON object, got {type(payload).__name__}")

    payload = upgrade_legacy(payload)
    error = best_match(_get_validator().iter_errors(payload))
    if error is not None:
        path = ".".join(str(p) for p in error.absolute_path)
        where = f" ({path})" if path else ""
        raise DecodeError(f"Invalid message record{where}: {error.message}")

    return MessageRecord.from_dict(payload)
