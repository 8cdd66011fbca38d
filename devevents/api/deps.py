from fastapi import Request

from devevents.services.bookings import BookingsService
from devevents.services.events import EventsService


def get_events_service(request: Request) -> EventsService:
    return request.app.state.events_service


def get_bookings_service(request: Request) -> BookingsService:
    return request.app.state.bookings_service
