"""
TWAP handler validator.

Checks the static input of TWAP conditional orders with the same rules the
TWAP handler enforces on-chain. An order that fails them can never become
tradeable, so it is dropped from the registry instead of being simulated
every block.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from eth_abi import decode

from cow_watchtower.storage.models import ConditionalOrderParams

from .protocol import ValidationOutcome, ValidationResult

logger = logging.getLogger(__name__)

TWAP_HANDLER_ADDRESS = "0x6cf1e9ca41f7611def408122793c358a3d11e5a5"

TWAP_DATA_TYPES = [
    "address",  # sellToken
    "address",  # buyToken
    "address",  # receiver
    "uint256",  # partSellAmount
    "uint256",  # minPartLimit
    "uint256",  # t0
    "uint256",  # n
    "uint256",  # t
    "uint256",  # span
]

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT32 = 2**32 - 1
MAX_FREQUENCY = 365 * 24 * 60 * 60


@dataclass(frozen=True)
class TwapData:
    sell_token: str
    buy_token: str
    receiver: str
    part_sell_amount: int
    min_part_limit: int
    t0: int
    n: int
    t: int
    span: int

    @classmethod
    def decode(cls, static_input: str) -> "TwapData":
        values = decode(TWAP_DATA_TYPES, bytes.fromhex(static_input[2:]))
        return cls(*values)

    def invalid_reason(self) -> Optional[str]:
        """Name of the first violated rule, or None when valid."""
        if self.sell_token == self.buy_token:
            return "InvalidSameToken"
        if int(self.sell_token, 16) == 0 or int(self.buy_token, 16) == 0:
            return "InvalidToken"
        if self.part_sell_amount == 0:
            return "InvalidPartSellAmount"
        if self.min_part_limit == 0:
            return "InvalidMinPartLimit"
        if self.t0 > MAX_UINT32:
            return "InvalidStartTime"
        if self.n <= 1 or self.n > MAX_UINT32:
            return "InvalidNumParts"
        if self.t == 0 or self.t > MAX_FREQUENCY:
            return "InvalidFrequency"
        if self.span > self.t:
            return "InvalidSpan"
        return None


class TwapValidator:
    """Validator for the TWAP handler."""

    handler = TWAP_HANDLER_ADDRESS

    async def validate(self, params: ConditionalOrderParams) -> ValidationResult:
        try:
            data = TwapData.decode(params.static_input)
        except Exception as e:
            logger.info(f"[twap] Cannot decode static input of {params.salt}: {e}")
            return ValidationResult(
                outcome=ValidationOutcome.FAILED_BUT_EXPECTED,
                delete_conditional_order=True,
                reason="InvalidStaticInput",
            )

        reason = data.invalid_reason()
        if reason is not None:
            logger.info(f"[twap] Conditional order {params.salt} is invalid: {reason}")
            return ValidationResult(
                outcome=ValidationOutcome.FAILED_BUT_EXPECTED,
                delete_conditional_order=True,
                reason=reason,
            )

        return ValidationResult.success()
