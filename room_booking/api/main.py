"""
FastAPI application for Room Booking.

This is the main entry point for the HTTP API, providing:
- Room management endpoints
- Booking endpoints (availability check, create, decide, edit, delete)
- Health and status endpoints
"""

import datetime as dt
import logging
from contextlib import asynccontextmanager
from typing import Literal, Optional
from uuid import UUID

from fastapi import FastAPI, Depends, HTTPException, Header, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from room_booking.api.dependencies import (
    get_booking_service,
    get_db_session,
    get_user_id,
    resolve_user_id,
)
from room_booking.api.middleware import RequestLoggingMiddleware
from room_booking.api.models import (
    AvailabilityResponse,
    BookingListResponse,
    BookingResponse,
    CreateBookingRequest,
    CreateBookingResponse,
    CreateRoomRequest,
    DecideBookingRequest,
    ErrorResponse,
    GroupActionResponse,
    HealthResponse,
    RoomResponse,
    UpdateBookingRequest,
    UpdateRoomRequest,
)
from room_booking.config import configure_logging, get_settings
from room_booking.database import check_connection, init_db
from room_booking.exceptions import (
    BookingError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from room_booking.models.bookings import BookingStatus
from room_booking.services import rooms as room_service
from room_booking.services.bookings import BookingService
from room_booking.services.groups import Scope

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    configure_logging(settings)
    logger.info("Starting Room Booking API")

    if settings.auto_create_tables:
        init_db()

    logger.info("Room Booking API started")

    yield

    logger.info("Shutting down Room Booking API")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Room Booking API",
    description="""
# Room Booking API

Classroom reservations with recurring requests, conflict detection and
admin approval.

## Booking Lifecycle
1. **POST /bookings/check** - See whether a request would collide
2. **POST /bookings** - Create the booking(s); all start as `pending`
3. **PATCH /bookings/{booking_id}/status** - Admin approves or rejects,
   for one booking or its whole recurring group
4. **PUT /bookings/{booking_id}** - Edit one booking
5. **DELETE /bookings/{booking_id}** - Remove one booking or its group

## Error Handling

All errors return `{error_type, message, retryable}`.

- **404** - Room or booking not found
- **409** - Overlaps an existing booking (`conflicts` lists them)
- **422** - Validation error
- **503** - Storage unavailable (safe to retry)
    """,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================


ERROR_STATUS = {
    ValidationError: (422, "validation_error"),
    ConflictError: (409, "conflict"),
    NotFoundError: (404, "not_found"),
    StorageError: (503, "storage_error"),
}


@app.exception_handler(BookingError)
async def booking_error_handler(request, exc: BookingError):
    """Translate domain errors into HTTP responses."""
    status_code, error_type = 500, "internal_error"
    for error_class, mapping in ERROR_STATUS.items():
        if isinstance(exc, error_class):
            status_code, error_type = mapping
            break

    if status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}", exc_info=exc.original_error)
    else:
        logger.info(f"{type(exc).__name__}: {exc.message}")

    body = ErrorResponse(
        error_type=error_type,
        message=exc.message,
        retryable=exc.retryable,
        conflicts=(
            [BookingResponse.model_validate(b) for b in exc.conflicts]
            if isinstance(exc, ConflictError)
            else None
        ),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_type": "http_error",
            "message": exc.detail,
            "retryable": exc.status_code >= 500,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error_type": "internal_error",
            "message": "An unexpected error occurred",
            "retryable": True,
        },
    )


ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Not found"},
    409: {"model": ErrorResponse, "description": "Conflicts with an existing booking"},
    422: {"model": ErrorResponse, "description": "Validation error"},
    503: {"model": ErrorResponse, "description": "Storage unavailable"},
}


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    tags=["System"],
)
def health_check(db: Session = Depends(get_db_session)) -> HealthResponse:
    """Check API health status including database connectivity."""
    database_connected = check_connection(db)
    return HealthResponse(
        status="healthy" if database_connected else "unhealthy",
        version=API_VERSION,
        database_connected=database_connected,
    )


# =============================================================================
# Room Endpoints
# =============================================================================


@app.post(
    "/rooms",
    response_model=RoomResponse,
    status_code=201,
    summary="Register a room",
    responses=ERROR_RESPONSES,
    tags=["Rooms"],
)
def create_room(
    request: CreateRoomRequest,
    db: Session = Depends(get_db_session),
) -> RoomResponse:
    room = room_service.create_room(
        db,
        name=request.name,
        number=request.number,
        building=request.building,
        capacity=request.capacity,
        features=request.features,
    )
    return RoomResponse.model_validate(room)


@app.get(
    "/rooms",
    response_model=list[RoomResponse],
    summary="List rooms",
    tags=["Rooms"],
)
def list_rooms(
    building: Optional[str] = Query(None, description="Only rooms in this building"),
    db: Session = Depends(get_db_session),
) -> list[RoomResponse]:
    return [RoomResponse.model_validate(room) for room in room_service.list_rooms(db, building)]


@app.get(
    "/rooms/{room_id}",
    response_model=RoomResponse,
    summary="Get room details",
    responses=ERROR_RESPONSES,
    tags=["Rooms"],
)
def get_room(room_id: UUID, db: Session = Depends(get_db_session)) -> RoomResponse:
    return RoomResponse.model_validate(room_service.get_room(db, room_id))


@app.patch(
    "/rooms/{room_id}",
    response_model=RoomResponse,
    summary="Update room details",
    responses=ERROR_RESPONSES,
    tags=["Rooms"],
)
def update_room(
    room_id: UUID,
    request: UpdateRoomRequest,
    db: Session = Depends(get_db_session),
) -> RoomResponse:
    room = room_service.update_room(db, room_id, **request.model_dump(exclude_unset=True))
    return RoomResponse.model_validate(room)


# =============================================================================
# Booking Endpoints
# =============================================================================


@app.post(
    "/bookings/check",
    response_model=AvailabilityResponse,
    summary="Check availability",
    description="""
Expand a booking request and report the existing bookings that would block
it, using the same rules as creation. Nothing is written.
    """,
    responses=ERROR_RESPONSES,
    tags=["Bookings"],
)
def check_availability(
    request: CreateBookingRequest,
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db_session),
    service: BookingService = Depends(get_booking_service),
) -> AvailabilityResponse:
    user_id = resolve_user_id(request.user_id, x_user_id)
    room_service.get_room(db, request.room_id)

    conflicts = service.check_availability(request.to_booking_request(user_id))
    return AvailabilityResponse(
        available=not conflicts,
        conflicts=[BookingResponse.model_validate(b) for b in conflicts],
    )


@app.post(
    "/bookings",
    response_model=CreateBookingResponse,
    status_code=201,
    summary="Create booking",
    description="""
Create a single or recurring booking. Every generated booking starts as
`pending`; recurring requests that produce more than one booking share a
`group_id`. Nothing is written when any occurrence conflicts.
    """,
    responses=ERROR_RESPONSES,
    tags=["Bookings"],
)
def create_booking(
    request: CreateBookingRequest,
    x_user_id: Optional[str] = Header(None),
    service: BookingService = Depends(get_booking_service),
) -> CreateBookingResponse:
    user_id = resolve_user_id(request.user_id, x_user_id)
    logger.info(f"Creating {request.repeat_type} booking for user {user_id} in room {request.room_id}")

    created = service.create_booking(request.to_booking_request(user_id))
    return CreateBookingResponse(
        group_id=created.group_id,
        count=len(created.bookings),
        bookings=[BookingResponse.model_validate(b) for b in created.bookings],
    )


@app.get(
    "/bookings",
    response_model=BookingListResponse,
    summary="List bookings",
    tags=["Bookings"],
)
def list_bookings(
    room_id: Optional[UUID] = Query(None),
    owner_id: Optional[str] = Query(None),
    status: Optional[Literal["pending", "approved", "rejected"]] = Query(None),
    date_from: Optional[dt.date] = Query(None, description="Earliest date (inclusive)"),
    date_to: Optional[dt.date] = Query(None, description="Latest date (inclusive)"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings, total = service.list_bookings(
        room_id=room_id,
        owner_id=owner_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        limit=limit,
        offset=offset,
    )


@app.get(
    "/bookings/{booking_id}",
    response_model=BookingResponse,
    summary="Get booking details",
    responses=ERROR_RESPONSES,
    tags=["Bookings"],
)
def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    return BookingResponse.model_validate(service.get_booking(booking_id))


@app.patch(
    "/bookings/{booking_id}/status",
    response_model=GroupActionResponse,
    summary="Approve or reject booking",
    description="""
Approve or reject a booking. With `scope=group` (the default) every booking
of its recurring group is decided together. Approval fails with 409 if any
affected booking overlaps an already approved booking.
    """,
    responses=ERROR_RESPONSES,
    tags=["Bookings"],
)
def decide_booking(
    booking_id: UUID,
    request: DecideBookingRequest,
    user_id: str = Depends(get_user_id),
    service: BookingService = Depends(get_booking_service),
) -> GroupActionResponse:
    result = service.decide_booking(
        booking_id,
        BookingStatus(request.status),
        scope=Scope(request.scope),
        notify_user=request.notify_user,
        decided_by=user_id,
    )
    return GroupActionResponse(
        booking_id=booking_id,
        scope=request.scope,
        affected_count=result.affected_count,
        group_id=result.group_id,
    )


@app.put(
    "/bookings/{booking_id}",
    response_model=BookingResponse,
    summary="Edit booking",
    description="Change one booking. The new time is checked against every pending and approved booking.",
    responses=ERROR_RESPONSES,
    tags=["Bookings"],
)
def edit_booking(
    booking_id: UUID,
    request: UpdateBookingRequest,
    user_id: str = Depends(get_user_id),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = service.edit_booking(booking_id, request.to_patch(), editor_id=user_id)
    return BookingResponse.model_validate(booking)


@app.delete(
    "/bookings/{booking_id}",
    response_model=GroupActionResponse,
    summary="Delete booking",
    description="Delete one booking (`scope=single`, default) or its whole recurring group.",
    responses=ERROR_RESPONSES,
    tags=["Bookings"],
)
def delete_booking(
    booking_id: UUID,
    scope: Literal["single", "group"] = Query("single"),
    user_id: str = Depends(get_user_id),
    service: BookingService = Depends(get_booking_service),
) -> GroupActionResponse:
    result = service.delete_booking(booking_id, scope=Scope(scope), deleter_id=user_id)
    return GroupActionResponse(
        booking_id=booking_id,
        scope=scope,
        affected_count=result.affected_count,
        group_id=result.group_id,
    )


# =============================================================================
# Run with Uvicorn
# =============================================================================


def run_server(host: Optional[str] = None, port: Optional[int] = None, reload: Optional[bool] = None):
    """Run the API server with Uvicorn, defaulting to configured host and port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "room_booking.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=settings.api_reload if reload is None else reload,
    )


if __name__ == "__main__":
    run_server()
