import logging
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import uuid4

from pymongo.errors import DuplicateKeyError, PyMongoError

from devevents.core.errors import DuplicateBookingError, EventNotFoundError, StoreError, ValidationError
from devevents.models.booking import Booking
from devevents.services.events import sanitize_slug

logger = logging.getLogger(__name__)


class BookingsService:
    def __init__(self, bookings_repo, events_repo):
        self.bookings_repo = bookings_repo
        self.events_repo = events_repo

    async def create_booking(self, slug: str, email: str) -> Dict[str, Any]:
        """
        Book a spot on the event at ``slug`` for ``email``.

        Raises:
            ValidationError: If the email is blank
            EventNotFoundError: If the event does not exist
            DuplicateBookingError: If this email already booked the event
        """
        email = email.strip().lower()
        if email == "":
            raise ValidationError("Email cannot be empty", field="email")

        sanitized_slug = sanitize_slug(slug)
        event = await self.events_repo.find_by_slug(sanitized_slug)
        if not event:
            raise EventNotFoundError(sanitized_slug)

        existing_booking = await self.bookings_repo.find_one(
            {"event_id": event["_id"], "email": email}
        )
        if existing_booking:
            raise DuplicateBookingError()

        now = datetime.now(timezone.utc)
        booking = Booking(
            _id=str(uuid4()),
            event_id=event["_id"],
            email=email,
            created_at=now,
            updated_at=now,
        ).model_dump(by_alias=True)

        try:
            await self.bookings_repo.insert_one(booking)
        except DuplicateKeyError:
            # Lost a race against an identical booking
            raise DuplicateBookingError()
        except PyMongoError as e:
            logger.exception("Booking creation failed for event %s", event["_id"])
            raise StoreError(str(e)) from e

        logger.info("Booked %s on event %s", email, event["slug"])
        return booking
