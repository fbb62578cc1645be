"""
mode.py - Dataset mode state machine.

The persisted mode column overloads one text field:
    "?"   waiting   - claimable by the first client
    "!"   blocked   - neither claimable nor updatable
    "*"   open-all  - updatable with any passcode, not claimable
    hash  claimed   - updatable with the claimant's passcode

The column is decoded into a DatasetMode as soon as it is read and encoded
back only when written.

Transitions:
- admin: any state -> waiting | blocked | open-all
- claim: waiting -> claimed (the only way into claimed)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import SyncException, format_error


class ModeKind(str, Enum):
    WAITING = "waiting"
    BLOCKED = "blocked"
    OPEN_ALL = "open_all"
    CLAIMED = "claimed"


WAITING_SYMBOL = "?"
BLOCKED_SYMBOL = "!"
OPEN_ALL_SYMBOL = "*"
CLAIMED_SYMBOL = "."  # listing only, never stored

_SYMBOL_BY_KIND = {
    ModeKind.WAITING: WAITING_SYMBOL,
    ModeKind.BLOCKED: BLOCKED_SYMBOL,
    ModeKind.OPEN_ALL: OPEN_ALL_SYMBOL,
}
_KIND_BY_SYMBOL = {symbol: kind for kind, symbol in _SYMBOL_BY_KIND.items()}

# Names accepted by the admin tool
_KIND_BY_ADMIN_NAME = {
    "wait": ModeKind.WAITING,
    "block": ModeKind.BLOCKED,
    "all": ModeKind.OPEN_ALL,
}
ADMIN_MODE_NAMES = tuple(_KIND_BY_ADMIN_NAME)


@dataclass(frozen=True)
class DatasetMode:
    kind: ModeKind
    passcode_hash: Optional[str] = None

    @classmethod
    def decode(cls, field: str) -> "DatasetMode":
        if len(field) > 1:
            return cls(ModeKind.CLAIMED, passcode_hash=field)
        # Unknown symbols are treated as blocked
        return cls(_KIND_BY_SYMBOL.get(field, ModeKind.BLOCKED))

    @classmethod
    def claimed(cls, passcode_hash: str) -> "DatasetMode":
        if len(passcode_hash) <= 1:
            raise ValueError("passcode hash must be longer than one character")
        return cls(ModeKind.CLAIMED, passcode_hash=passcode_hash)

    @classmethod
    def from_admin_name(cls, name: str) -> "DatasetMode":
        """Map the admin names wait/block/all to their modes."""
        kind = _KIND_BY_ADMIN_NAME.get(name)
        if kind is None:
            raise SyncException(format_error("Invalid mode", mode=name))
        return cls(kind)

    def encode(self) -> str:
        if self.kind is ModeKind.CLAIMED:
            return self.passcode_hash
        return _SYMBOL_BY_KIND[self.kind]

    @property
    def symbol(self) -> str:
        if self.kind is ModeKind.CLAIMED:
            return CLAIMED_SYMBOL
        return _SYMBOL_BY_KIND[self.kind]

    @property
    def is_claimable(self) -> bool:
        return self.kind is ModeKind.WAITING

    @property
    def is_updatable(self) -> bool:
        return self.kind in (ModeKind.CLAIMED, ModeKind.OPEN_ALL)
