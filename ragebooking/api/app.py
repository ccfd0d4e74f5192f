"""
HTTP API exposing availability and booking.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import AppConfig, load_config
from ..domain.exceptions import (
    BookingError,
    ErrorKind,
    ExternalServiceError,
    SlotConflictError,
    ValidationError,
)
from ..domain.models import (
    BookingRequest,
    CustomerDetails,
    Slot,
    TimeOfDay,
    parse_calendar_date,
)
from ..services.availability_resolver import CalendarClientProtocol, Clock
from ..wiring import build_calendar_client, build_resolver

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\d{8}$")

PERMISSION_HINT = (
    "To fix this: 1) Open Google Calendar, 2) Go to calendar settings, "
    "3) Share with your service account email, "
    "4) Give it \"Make changes to events\" permission"
)


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("date", "time_slot", "party_size", "error_kind"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)


class BookingPayload(BaseModel):
    """Body of POST /api/book."""
    model_config = ConfigDict(populate_by_name=True)

    date: str
    time_slot: str = Field(alias="timeSlot")
    group_size: Any = Field(alias="groupSize")
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    phone_number: str = Field(alias="phoneNumber")
    email: str
    special_requests: str | None = Field(default=None, alias="specialRequests")

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, value: str) -> str:
        value = re.sub(r"\s+", "", value)
        if not PHONE_PATTERN.match(value):
            raise ValueError("Phone number must be exactly 8 digits")
        return value

    def to_customer(self) -> CustomerDetails:
        return CustomerDetails(
            first_name=self.first_name,
            last_name=self.last_name,
            phone_number=self.phone_number,
            email=self.email,
            special_requests=(self.special_requests or "").strip(),
        )


def _error_body(exc: BookingError, action: str) -> dict[str, Any]:
    if isinstance(exc, ValidationError):
        return {"error": str(exc)}
    if isinstance(exc, SlotConflictError):
        return {
            "error": action,
            "code": "SLOT_TAKEN",
            "message": "Sorry, this time slot was just booked. Please choose another one.",
        }
    if isinstance(exc, ExternalServiceError) and exc.kind is ErrorKind.PERMISSION:
        return {
            "error": action,
            "message": (
                "Calendar permission denied. Please ensure the service account has "
                "\"Make changes to events\" permission on your Google Calendar."
            ),
            "details": PERMISSION_HINT,
        }
    if isinstance(exc, ExternalServiceError) and exc.kind is ErrorKind.TRANSIENT:
        return {"error": action, "message": "Calendar service temporarily unavailable. Please try again."}
    return {"error": action, "message": "Unexpected error talking to the calendar service."}


def create_app(
    config: AppConfig | None = None,
    calendar_client: CalendarClientProtocol | None = None,
    clock: Clock | None = None,
    mock: bool = False,
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Application config; loaded from the default location when omitted
        calendar_client: Calendar backend; built from config when omitted
        clock: Time source returning "now" in the business timezone
        mock: Use the in-memory mock calendar when no client is given
    """
    config = config or load_config()
    if calendar_client is None:
        calendar_client = build_calendar_client(config, mock=mock)
    resolver = build_resolver(config, calendar_client, clock=clock)

    app = FastAPI(title=f"{config.business_name} Booking API", version="1.0.0")
    app.state.config = config
    app.state.resolver = resolver

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BookingError)
    async def handle_booking_error(request: Request, exc: BookingError) -> JSONResponse:
        action = (
            "Failed to create booking"
            if request.url.path.endswith("/book")
            else "Failed to fetch availability"
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc, action))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(part) for part in error["loc"][1:]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid booking request", "details": details},
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "message": f"{config.business_name} API is running"}

    @app.get("/api/availability")
    async def availability(date: str | None = None) -> dict[str, Any]:
        if not date:
            raise ValidationError("Date parameter is required. Format: YYYY-MM-DD")

        day = parse_calendar_date(date)
        slots = await resolver.available_slots(day)
        available = [str(slot.time) for slot in slots]
        return {"date": date, "available": available, "totalSlots": len(available)}

    @app.post("/api/book")
    async def book(payload: BookingPayload) -> dict[str, Any]:
        booking = BookingRequest(
            slot=Slot(date=parse_calendar_date(payload.date), time=TimeOfDay.parse(payload.time_slot)),
            party_size=payload.group_size,
            customer=payload.to_customer(),
        )
        logger.info(
            "Creating booking",
            extra={
                "date": payload.date,
                "time_slot": payload.time_slot,
                "party_size": payload.group_size,
            },
        )

        reservation = await resolver.guard_and_reserve(booking)
        return {
            "success": True,
            "message": "Booking created successfully.",
            "booking": reservation.to_dict(),
        }

    return app
