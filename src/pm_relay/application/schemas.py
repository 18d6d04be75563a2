"""Pydantic schemas for the relay endpoint."""

from pydantic import BaseModel, Field, field_validator

from src.pm_common.fixed_point import MAX_ID, MAX_NUMERIC
from src.pm_relay.domain.models import RelayResult


class RemoteMessageRequest(BaseModel):
    source_domain_id: int = Field(..., ge=0, le=MAX_ID)
    source_address: str = Field(..., min_length=1, max_length=128)
    nonce: int = Field(..., ge=0, le=MAX_NUMERIC)
    payload_hex: str = Field(..., description="Hex-encoded payload bytes, optional 0x prefix")

    @field_validator("payload_hex")
    @classmethod
    def _strip_prefix(cls, v: str) -> str:
        return v[2:] if v.startswith(("0x", "0X")) else v


class RemoteMessageResponse(BaseModel):
    applied: bool
    duplicate: bool = False
    source_domain_id: int
    nonce: int
    market_id: int | None = None
    account_id: str | None = None
    side: str | None = None
    amount: int | None = None
    cost: int | None = None

    @classmethod
    def from_result(cls, r: RelayResult) -> "RemoteMessageResponse":
        return cls(
            applied=True,
            source_domain_id=r.source_domain_id,
            nonce=r.nonce,
            market_id=r.market_id,
            account_id=r.account_id,
            side=r.side.value,
            amount=r.amount,
            cost=r.cost,
        )
