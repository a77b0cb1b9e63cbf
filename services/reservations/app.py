import datetime as dt
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roombook.config import get_settings
from roombook.errors import BookingError, MalformedInput
from roombook.logging_middleware import add_audit_middleware, configure_service_logging
from roombook.rate_limit import apply_rate_limiter, limiter, mutation_limit
from roombook.renderer import ViewRenderer
from roombook.schemas import (
    AvailabilityRead,
    ReservationCreate,
    ReservationCreated,
    ReservationLine,
    ReservationRead,
    RoomRead,
    RoomRow,
)
from roombook.service import BookingService
from roombook.store import MemorySnapshotStore, SnapshotStore, SqlSnapshotStore

settings = get_settings()
router = APIRouter()


def build_store() -> SnapshotStore:
    if settings.persistence_enabled:
        return SqlSnapshotStore.from_url(settings.database_url, key=settings.snapshot_key)
    return MemorySnapshotStore(key=settings.snapshot_key)


def create_app(service: Optional[BookingService] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        if getattr(fastapi_app.state, "booking_service", None) is None:
            renderer = ViewRenderer(ttl=settings.view_cache_ttl)
            fastapi_app.state.booking_service = BookingService.from_store(build_store(), renderer)
        yield

    configure_service_logging()
    fastapi_app = FastAPI(title="Reservations Service", version="0.1.0", lifespan=lifespan)
    fastapi_app.state.booking_service = service
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    add_audit_middleware(fastapi_app, "reservations")
    fastapi_app.add_exception_handler(BookingError, booking_error_handler)
    fastapi_app.add_exception_handler(RequestValidationError, validation_error_handler)
    fastapi_app.include_router(router)
    return fastapi_app


def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    # Only reservation submissions share the generic failure message.
    collapse = settings.collapse_error_messages and request.method == "POST"
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(collapse=collapse))


def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in error["loc"]) or "request", "message": error["msg"]}
        for error in exc.errors()
    ]
    return booking_error_handler(request, MalformedInput("Request is malformed", errors=errors))


def get_booking_service(request: Request) -> BookingService:
    service = getattr(request.app.state, "booking_service", None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service not ready")
    return service


def get_view_renderer(service: BookingService = Depends(get_booking_service)) -> ViewRenderer:
    renderer = service.renderer
    if not isinstance(renderer, ViewRenderer):
        raise HTTPException(status_code=status.HTTP_501_NOT_IMPLEMENTED, detail="No views configured")
    return renderer


@router.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "reservations"}


@router.get("/rooms", response_model=List[RoomRow])
def room_table(
    service: BookingService = Depends(get_booking_service),
    renderer: ViewRenderer = Depends(get_view_renderer),
) -> List[RoomRow]:
    table = renderer.room_table()
    if table is None:
        service.refresh_views()
        table = renderer.room_table() or []
    return table


@router.get("/rooms/{room_number}", response_model=RoomRead)
def get_room(room_number: int, service: BookingService = Depends(get_booking_service)) -> RoomRead:
    room = service.get_room(room_number)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return RoomRead(
        number=room.number,
        capacity=room.capacity,
        status=room.get_status(),
        reservations=[ReservationRead.from_reservation(r) for r in room.reservations],
    )


@router.get("/rooms/{room_number}/availability", response_model=AvailabilityRead)
def check_availability(
    room_number: int,
    date: dt.date = Query(...),
    start_time: dt.time = Query(...),
    duration: int = Query(..., gt=0),
    service: BookingService = Depends(get_booking_service),
) -> AvailabilityRead:
    available = service.is_available(room_number, date, start_time, duration)
    return AvailabilityRead(room_number=room_number, available=available)


@router.get("/reservations", response_model=List[ReservationLine])
def reservation_list(
    service: BookingService = Depends(get_booking_service),
    renderer: ViewRenderer = Depends(get_view_renderer),
) -> List[ReservationLine]:
    lines = renderer.reservation_list()
    if lines is None:
        service.refresh_views()
        lines = renderer.reservation_list() or []
    return lines


@router.post("/reservations", response_model=ReservationCreated, status_code=status.HTTP_201_CREATED)
@limiter.limit(mutation_limit)
def create_reservation(
    request: Request,
    submission: ReservationCreate,
    service: BookingService = Depends(get_booking_service),
) -> ReservationCreated:
    reservation = service.reserve(
        submission.name,
        submission.room_number,
        submission.date,
        submission.start_time,
        submission.duration,
    )
    return ReservationCreated(reservation=ReservationRead.from_reservation(reservation))


@router.delete("/rooms/{room_number}/reservations/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(mutation_limit)
def cancel_reservation(
    request: Request,
    room_number: int,
    reservation_id: str,
    service: BookingService = Depends(get_booking_service),
) -> None:
    service.cancel(room_number, reservation_id)


app = create_app()
