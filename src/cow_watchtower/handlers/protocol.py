"""
Handler validator protocol.

A validator inspects a conditional order's params before the watchtower
simulates it. Validators are pure logic: no RPC, no storage.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

from cow_watchtower.storage.models import ConditionalOrderParams


class ValidationOutcome(Enum):
    """Result of validating a conditional order."""

    SUCCESS = "success"
    FAILED = "failed"  # unexpected, counts as a processing error
    FAILED_BUT_EXPECTED = "failed_but_expected"  # not an error


@dataclass(frozen=True)
class ValidationResult:
    outcome: ValidationOutcome
    delete_conditional_order: bool = False
    reason: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.outcome == ValidationOutcome.SUCCESS

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(outcome=ValidationOutcome.SUCCESS)


@runtime_checkable
class OrderValidator(Protocol):
    """Validates the params of conditional orders for one handler."""

    @property
    def handler(self) -> str:
        """Handler address this validator applies to."""
        ...

    async def validate(self, params: ConditionalOrderParams) -> ValidationResult:
        ...
