"""Append-only store of captured message records."""

from collections.abc import Sequence
from typing import Iterator, List, Optional, Union, overload

from pysniff.logging import get_logger
from .errors import InvariantViolation
from .message_record import MessageRecord

logger = get_logger(__name__)


class RecordSnapshot(Sequence):
    """Read-only view of the records present when the snapshot was taken.

    The store only ever extends its list or swaps it for a fresh one on
    clear(), so the first ``length`` items of the captured list never change.
    """

    __slots__ = ('_records', '_length')

    def __init__(self, records: List[MessageRecord], length: int):
        self._records = records
        self._length = length

    def __len__(self) -> int:
        return self._length

    @overload
    def __getitem__(self, index: int) -> MessageRecord: ...

    @overload
    def __getitem__(self, index: slice) -> List[MessageRecord]: ...

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return self._records[:self._length][index]
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError("snapshot index out of range")
        return self._records[index]

    def __iter__(self) -> Iterator[MessageRecord]:
        records = self._records
        for i in range(self._length):
            yield records[i]

    def __repr__(self) -> str:
        return f"RecordSnapshot(len={self._length})"


class RecordStore:
    """Ordered collection of records, insertion order = arrival order."""

    def __init__(self):
        self._records: List[MessageRecord] = []
        self._generation = 0

    def append(self, record: MessageRecord) -> int:
        """Store a record and return the new size.

        Raises:
            InvariantViolation: if the id is not above the last stored id.
        """
        if self._records and record.message_id <= self._records[-1].message_id:
            logger.error(
                "Rejected out of order message: id=%s last=%s",
                record.message_id,
                self._records[-1].message_id,
            )
            raise InvariantViolation(
                f"message id {record.message_id} is not greater than "
                f"last id {self._records[-1].message_id}"
            )
        self._records.append(record)
        return len(self._records)

    def clear(self) -> None:
        """Drop all records. Does not notify anyone."""
        # Rebind instead of clearing in place: existing snapshots keep their list
        self._records = []
        self._generation += 1
        logger.debug("Record store cleared (generation %d)", self._generation)

    def snapshot(self) -> RecordSnapshot:
        """Immutable view of the full ordered sequence."""
        return RecordSnapshot(self._records, len(self._records))

    @property
    def generation(self) -> int:
        """Incremented by every clear()."""
        return self._generation

    @property
    def last_id(self) -> Optional[int]:
        if not self._records:
            return None
        return self._records[-1].message_id

    def __len__(self) -> int:
        return len(self._records)
