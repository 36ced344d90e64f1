"""
Handler validator registry.

Maps handler addresses to validators so new conditional order types can be
supported without touching the evaluation loop. Handlers without a
registered validator are always considered valid.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from cow_watchtower.storage.models import ConditionalOrderParams, normalize_address

from .protocol import OrderValidator, ValidationResult


class DuplicateValidatorError(Exception):
    """Raised when a handler already has a validator registered."""

    pass


class AlwaysValid:
    """Fallback validator for handlers without custom validation."""

    handler = ""

    async def validate(self, params: ConditionalOrderParams) -> ValidationResult:
        return ValidationResult.success()


class HandlerValidatorRegistry:
    """
    Registry for per-handler validators.

    Usage:
        registry = HandlerValidatorRegistry()
        registry.register(TwapValidator())

        result = await registry.validate(conditional_order.params)
    """

    def __init__(self) -> None:
        self._validators: Dict[str, OrderValidator] = {}
        self._fallback = AlwaysValid()

    def register(self, validator: OrderValidator) -> None:
        """
        Register a validator for its handler.

        Raises:
            DuplicateValidatorError: If the handler already has a validator
        """
        handler = normalize_address(validator.handler)
        if handler in self._validators:
            raise DuplicateValidatorError(
                f"Handler '{handler}' already has a validator registered."
            )
        self._validators[handler] = validator

    def get(self, handler: str) -> OrderValidator:
        """Validator for a handler, or the always-valid fallback."""
        return self._validators.get(normalize_address(handler), self._fallback)

    def get_optional(self, handler: str) -> Optional[OrderValidator]:
        return self._validators.get(normalize_address(handler))

    async def validate(self, params: ConditionalOrderParams) -> ValidationResult:
        return await self.get(params.handler).validate(params)

    def list_all(self) -> List[str]:
        """Sorted list of handlers with a registered validator."""
        return sorted(self._validators.keys())

    def __len__(self) -> int:
        return len(self._validators)

    def __contains__(self, handler: str) -> bool:
        return normalize_address(handler) in self._validators


def create_default_registry() -> HandlerValidatorRegistry:
    """Registry with the validators for the built-in handlers."""
    from .twap import TwapValidator

    registry = HandlerValidatorRegistry()
    registry.register(TwapValidator())
    return registry
