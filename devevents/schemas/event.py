from datetime import datetime
from pydantic import BaseModel
from typing import List


class EventOut(BaseModel):
    id: str
    slug: str
    title: str
    description: str
    overview: str
    venue: str
    location: str
    date: str
    time: str
    mode: str
    audience: str
    organizer: str
    tags: List[str]
    agenda: List[str]
    image: str
    image_public_id: str
    version: int
    created_at: datetime
    updated_at: datetime


class EventResponse(BaseModel):
    message: str
    event: EventOut


class EventDetailResponse(EventResponse):
    bookings_count: int


class EventListResponse(BaseModel):
    message: str
    events: List[EventOut]
