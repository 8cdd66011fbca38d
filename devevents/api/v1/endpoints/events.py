from fastapi import APIRouter, Depends, Request, status
from starlette.datastructures import UploadFile
from typing import Any, Dict, List, Optional, Tuple

from devevents.api.deps import get_events_service
from devevents.core.errors import PayloadTooLargeError, ValidationError
from devevents.schemas.error import ErrorResponse
from devevents.schemas.event import EventDetailResponse, EventListResponse, EventOut, EventResponse
from devevents.services.assets import MAX_IMAGE_SIZE, ImageUpload
from devevents.services.events import EventsService

router = APIRouter()


def format_event(event: Dict[str, Any]) -> EventOut:
    event_dict = dict(event)
    event_dict["id"] = event_dict.pop("_id")
    return EventOut(**event_dict)


async def read_event_form(request: Request) -> Tuple[Dict[str, Any], Optional[ImageUpload]]:
    """Split a multipart event form into plain fields and the optional image part."""
    form = await request.form()

    fields = {key: value for key, value in form.items() if key != "image"}

    image = None
    image_entry = form.get("image")
    if isinstance(image_entry, UploadFile):
        # Size is known once the part is spooled; refuse before reading it in
        if image_entry.size is not None and image_entry.size > MAX_IMAGE_SIZE:
            raise PayloadTooLargeError(image_entry.size, MAX_IMAGE_SIZE)
        data = await image_entry.read()
        # Browsers send an empty part when no file was picked
        if data:
            image = ImageUpload(
                data=data,
                content_type=image_entry.content_type,
                filename=image_entry.filename,
            )
    elif image_entry not in (None, ""):
        raise ValidationError("image must be a file", field="image")

    return fields, image


@router.get("", response_model=EventListResponse)
async def get_events(service: EventsService = Depends(get_events_service)):
    events = await service.list_events()
    return EventListResponse(
        message="Events fetched successfully",
        events=[format_event(event) for event in events],
    )


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: Request,
    service: EventsService = Depends(get_events_service),
):
    """
    Create an event from a multipart form.

    All text fields are required, ``tags`` and ``agenda`` are JSON arrays and
    the ``image`` part is mandatory.
    """
    fields, image = await read_event_form(request)
    event = await service.create_event(fields, image)
    return EventResponse(message="Event created successfully", event=format_event(event))


@router.get("/{slug}", response_model=EventDetailResponse)
async def get_event(slug: str, service: EventsService = Depends(get_events_service)):
    event, bookings_count = await service.get_event_with_bookings(slug)
    return EventDetailResponse(
        message="Event fetched successfully",
        event=format_event(event),
        bookings_count=bookings_count,
    )


@router.get("/{slug}/similar", response_model=List[EventOut])
async def get_similar_events(slug: str, service: EventsService = Depends(get_events_service)):
    events = await service.get_similar_events(slug)
    return [format_event(event) for event in events]


@router.patch(
    "/{slug}",
    response_model=EventResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def update_event(
    slug: str,
    request: Request,
    service: EventsService = Depends(get_events_service),
):
    """
    Partially update an event.

    Any subset of the text fields, ``tags``/``agenda`` as JSON arrays and an
    optional ``image`` part. Answers 409 when another request updated the
    event first; reload it and retry.
    """
    fields, image = await read_event_form(request)
    event = await service.update_event(slug, fields, image)
    return EventResponse(message="Event updated successfully", event=format_event(event))
