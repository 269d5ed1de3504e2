"""Domain events."""
from stockwatch.domain.events.domain_events import DomainEvent, AlertFired

__all__ = ["DomainEvent", "AlertFired"]
