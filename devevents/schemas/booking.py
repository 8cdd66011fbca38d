from datetime import datetime
from pydantic import BaseModel, EmailStr


class BookingCreate(BaseModel):
    email: EmailStr


class BookingOut(BaseModel):
    id: str
    event_id: str
    email: str
    created_at: datetime


class BookingResponse(BaseModel):
    message: str
    booking: BookingOut
