from pydantic import BaseModel, Field
from datetime import datetime


class Booking(BaseModel):
    """Booking document as stored in the ``bookings`` collection."""

    id: str = Field(alias="_id")
    event_id: str
    email: str
    created_at: datetime
    updated_at: datetime

    class Config:
        populate_by_name = True
