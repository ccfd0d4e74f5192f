"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_resolver import AvailabilityResolver, CalendarClientProtocol

__all__ = ["AvailabilityResolver", "CalendarClientProtocol"]
