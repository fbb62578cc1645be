"""
Sync service package.

Claim and Update: the only two operations that mutate a dataset's records.
"""

from .claim import claim
from .entries import ScanEntry
from .errors import SyncError, SyncErrorKind, SyncException, SyncResult
from .mode import DatasetMode, ModeKind
from .passcode import PasscodeHasher
from .update import UpdateBatch, UpdateOutcome, submit

__all__ = [
    'DatasetMode',
    'ModeKind',
    'PasscodeHasher',
    'ScanEntry',
    'SyncError',
    'SyncErrorKind',
    'SyncException',
    'SyncResult',
    'UpdateBatch',
    'UpdateOutcome',
    'claim',
    'submit',
]
