"""
Builds the calendar client and availability resolver from configuration.
"""

from __future__ import annotations

import logging

from .adapters.google_authenticator import GoogleAuthenticator
from .adapters.google_calendar_client import GoogleCalendarClient
from .adapters.mock_calendar_client import MockCalendarClient
from .config import AppConfig
from .domain.business_hours import BusinessHoursCalendar
from .domain.slot_calculator import SlotCalculator
from .services.availability_resolver import (
    AvailabilityResolver,
    CalendarClientProtocol,
    Clock,
)

logger = logging.getLogger(__name__)


def build_calendar_client(config: AppConfig, mock: bool = False) -> CalendarClientProtocol:
    """
    Return the Google Calendar client, or the in-memory mock when requested.

    Raises:
        AuthenticationError: If the real client cannot load credentials
    """
    if mock:
        logger.info("Using MockCalendarClient")
        return MockCalendarClient()

    authenticator = GoogleAuthenticator(key_file=config.service_account_key_file)
    return GoogleCalendarClient(
        session=authenticator.get_session(),
        calendar_id=config.calendar_id,
        business_name=config.business_name,
        timeout=config.request_timeout_seconds,
    )


def build_resolver(
    config: AppConfig,
    calendar_client: CalendarClientProtocol,
    clock: Clock | None = None,
) -> AvailabilityResolver:
    calculator = SlotCalculator(
        business_hours=BusinessHoursCalendar(config.weekly_schedule()),
        timezone=config.timezone,
    )
    return AvailabilityResolver(
        calendar_client=calendar_client,
        slot_calculator=calculator,
        clock=clock,
        request_timeout=config.request_timeout_seconds,
        max_party_size=config.max_party_size,
    )
