"""Relay payload codec.

Wire format: UTF-8 JSON array with exactly four elements

    [market_id: int, account: str, amount: int, side: "YES" | "NO"]

Validation is strict: no coercion from strings or floats, no extra elements,
amount must be positive, account non-empty, and both numbers must fit their
columns.
"""

import json
from dataclasses import dataclass
from typing import Annotated

from pydantic import Field, StrictInt, StrictStr, TypeAdapter, ValidationError

from src.pm_common.enums import Side
from src.pm_common.errors import MalformedPayloadError
from src.pm_common.fixed_point import MAX_ID, MAX_NUMERIC

_PayloadTuple = tuple[
    Annotated[StrictInt, Field(ge=1, le=MAX_ID)],
    Annotated[StrictStr, Field(min_length=1, max_length=128)],
    Annotated[StrictInt, Field(gt=0, le=MAX_NUMERIC)],
    Side,
]
_ADAPTER: TypeAdapter[_PayloadTuple] = TypeAdapter(_PayloadTuple)


@dataclass(frozen=True)
class RemoteBet:
    market_id: int
    account_id: str
    amount: int
    side: Side


def decode_payload(payload: bytes) -> RemoteBet:
    try:
        market_id, account_id, amount, side = _ADAPTER.validate_json(payload)
    except ValidationError as e:
        raise MalformedPayloadError(f"{e.error_count()} validation error(s)") from e
    return RemoteBet(market_id=market_id, account_id=account_id, amount=amount, side=side)


def encode_payload(bet: RemoteBet) -> bytes:
    return json.dumps([bet.market_id, bet.account_id, bet.amount, bet.side.value]).encode()
