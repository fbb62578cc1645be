from dataclasses import dataclass
from typing import Any, List

from zscan_sync.models import ScanRecord


@dataclass(frozen=True, order=True)
class ScanEntry:
    """A record as exchanged with clients: claim snapshots and staged updates."""

    sequence: int
    isbn: str
    timestamp: int
    canceled: bool = False

    @classmethod
    def from_row(cls, row: ScanRecord) -> "ScanEntry":
        return cls(
            sequence=int(row.sequence),
            isbn=str(row.isbn),
            timestamp=int(row.timestamp),
            canceled=bool(row.cancel_flag),
        )

    @property
    def cancel_flag(self) -> int:
        return 1 if self.canceled else 0

    def as_wire(self) -> List[Any]:
        return [self.sequence, self.isbn, self.timestamp, self.canceled]
