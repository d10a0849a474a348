"""
Core module - базовые типы ошибок для всего стека.
"""

from astra.core.exceptions import (
    AstraError,
    ValidationError,
    NotFoundError,
    ConflictError,
    ExpiredError,
    CapacityExhaustedError,
    ExternalVerificationError,
    AuthenticationError,
)

__all__ = [
    "AstraError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ExpiredError",
    "CapacityExhaustedError",
    "ExternalVerificationError",
    "AuthenticationError",
]
