"""
sync.py - Pydantic schemas for the sync API.

One POST body, discriminated by "verb":
- claim:  {"verb": "claim", "dsname": ..., "dspass": ...}
- update: {"verb": "update", "dsname": ..., "dspass": ..., "recset": [...]}

Each recset entry is [sequence, isbn, minutes_since_epoch, canceled].
Only the JSON shape is checked here; ranges, ISBN check digits and passcode
charset are checked by the sync service so every caller gets the same rules.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    TypeAdapter,
)


def _integral_float_to_int(value: Any) -> Any:
    """Clients may send 1000.0 for 1000; fractional values stay invalid."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


WireInt = Annotated[StrictInt, BeforeValidator(_integral_float_to_int)]

WireRecord = tuple[WireInt, StrictStr, WireInt, StrictBool]


class ClaimRequest(BaseModel):
    """Claim a waiting dataset"""

    verb: Literal["claim"]
    dsname: StrictStr = Field(..., description="Dataset identifier")
    dspass: StrictStr = Field(..., description="Passcode to bind the dataset to")


class UpdateRequest(BaseModel):
    """Upsert records into a claimed (or open-all) dataset"""

    verb: Literal["update"]
    dsname: StrictStr = Field(..., description="Dataset identifier")
    dspass: StrictStr = Field(..., description="Passcode given at claim time")
    recset: list[WireRecord] = Field(
        ..., description="Records as [sequence, isbn, timestamp, canceled]"
    )


SyncRequest = Annotated[Union[ClaimRequest, UpdateRequest], Field(discriminator="verb")]

sync_request_adapter: TypeAdapter[Any] = TypeAdapter(SyncRequest)


class RejectionResponse(BaseModel):
    """
    Error response for rejected requests.

    HTTP 400: malformed request or record
    HTTP 403: dataset missing, not claimable, or authentication failed
    HTTP 500: storage failure
    """

    status: str = Field("rejected", description="Always 'rejected'")
    code: str = Field(..., description="Machine-readable error kind")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(None, description="Additional context")
