"""
Handlers - pluggable per-handler validation of conditional orders.

Public API:
    HandlerValidatorRegistry, create_default_registry
    OrderValidator, ValidationResult, ValidationOutcome
    TwapValidator, TWAP_HANDLER_ADDRESS
"""
from .protocol import OrderValidator, ValidationOutcome, ValidationResult
from .registry import (
    AlwaysValid,
    DuplicateValidatorError,
    HandlerValidatorRegistry,
    create_default_registry,
)
from .twap import TWAP_HANDLER_ADDRESS, TwapData, TwapValidator

__all__ = [
    "OrderValidator",
    "ValidationOutcome",
    "ValidationResult",
    "AlwaysValid",
    "DuplicateValidatorError",
    "HandlerValidatorRegistry",
    "create_default_registry",
    "TWAP_HANDLER_ADDRESS",
    "TwapData",
    "TwapValidator",
]
