from fastapi import APIRouter, Body, Depends, status

from devevents.api.deps import get_bookings_service
from devevents.schemas.booking import BookingCreate, BookingOut, BookingResponse
from devevents.services.bookings import BookingsService

router = APIRouter()


@router.post("/{slug}/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    slug: str,
    booking_data: BookingCreate = Body(...),
    service: BookingsService = Depends(get_bookings_service),
):
    booking = await service.create_booking(slug, booking_data.email)

    booking_dict = dict(booking)
    booking_dict["id"] = booking_dict.pop("_id")

    return BookingResponse(message="Booking created successfully", booking=BookingOut(**booking_dict))
