"""Message record data structure for captured gRPC messages."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .formatting import parse_timestamp


class Direction(str, Enum):
    """Which way a message travelled, as seen by the intercepted server."""
    RECV = "recv"    # inbound
    SEND = "send"    # outbound

    @property
    def is_inbound(self) -> bool:
        return self is Direction.RECV


@dataclass(frozen=True)
class MessageRecord:
    """One captured message. Never mutated once stored."""

    message_id: int
    time: str
    direction: Direction
    method: str
    message: str
    peer_address: str
    content: Any = None
    stream_id: Optional[int] = None
    error: Optional[str] = None

    @property
    def timestamp(self) -> Optional[datetime]:
        """Capture time as an aware datetime, if the text parses."""
        return parse_timestamp(self.time)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def fields(self) -> Dict[str, Any]:
        """Values keyed by schema name. Absent optional fields are omitted."""
        values = {
            'message_id': self.message_id,
            'direction': self.direction.value,
            'time': self.time,
            'method': self.method,
            'message': self.message,
            'peer_address': self.peer_address,
            'content': self.content,
        }
        if self.stream_id is not None:
            values['stream_id'] = self.stream_id
        if self.error is not None:
            values['error'] = self.error
        return values

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the capture file's JSON object shape."""
        return self.fields()

    @staticmethod
    def from_dict(payload: Dict[str, Any]) -> "MessageRecord":
        """Build a record from a decoded capture object."""
        return MessageRecord(
            message_id=payload['message_id'],
            time=payload.get('time', ''),
            direction=Direction(payload['direction']),
            method=payload.get('method', ''),
            message=payload.get('message', ''),
            peer_address=payload.get('peer_address', 'unknown'),
            content=payload.get('content'),
            stream_id=payload.get('stream_id'),
            error=payload.get('error'),
        )
