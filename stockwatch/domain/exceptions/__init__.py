"""Domain exceptions."""
from stockwatch.domain.exceptions.domain_errors import (
    DomainError,
    InsufficientDataError,
    CandleFetchTimeoutError,
    MalformedConditionError,
    DeliveryFailureError,
    InvalidTransitionError,
    AlertNotFoundError,
    RegistryUnavailableError,
)

__all__ = [
    "DomainError",
    "InsufficientDataError",
    "CandleFetchTimeoutError",
    "MalformedConditionError",
    "DeliveryFailureError",
    "InvalidTransitionError",
    "AlertNotFoundError",
    "RegistryUnavailableError",
]
