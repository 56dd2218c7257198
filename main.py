import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from database import (
    SQL_BACKEND,
    create_engine,
    create_session_factory,
    get_log_level,
    get_store_backend,
    init_db,
)
from exceptions import (
    BookingConflictError,
    InconsistentStateError,
    ReservationError,
    RoomNotFoundError,
    ValidationError,
)
from schemas import (
    BookingCreate,
    BookingCreated,
    BookingRead,
    CustomerBooking,
    CustomerBookingDetail,
    RoomCreate,
    RoomCreated,
    RoomWithBookings,
)
from service import ReservationService
from stores import InMemoryBookingStore, InMemoryRoomStore, SqlBookingStore, SqlRoomStore

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    RoomNotFoundError: status.HTTP_404_NOT_FOUND,
    BookingConflictError: status.HTTP_400_BAD_REQUEST,
    InconsistentStateError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def build_service(app: FastAPI) -> ReservationService:
    """Construct the stores selected by STORE_BACKEND and the service over them."""
    backend = get_store_backend()
    if backend == SQL_BACKEND:
        engine = create_engine()
        await init_db(engine)
        session_factory = create_session_factory(engine)
        app.state.engine = engine
        rooms, bookings = SqlRoomStore(session_factory), SqlBookingStore(session_factory)
    else:
        rooms, bookings = InMemoryRoomStore(), InMemoryBookingStore()
    logger.info(f"Using {backend} store backend")
    return ReservationService(rooms, bookings)


def get_service(request: Request) -> ReservationService:
    return request.app.state.service


def create_app(service: Optional[ReservationService] = None) -> FastAPI:
    app = FastAPI(title="Room Reservation API")
    app.state.service = service
    app.state.engine = None

    @app.on_event("startup")
    async def on_startup():
        if app.state.service is None:
            app.state.service = await build_service(app)

    @app.on_event("shutdown")
    async def on_shutdown():
        if app.state.engine is not None:
            await app.state.engine.dispose()

    # --- Error handlers ---
    @app.exception_handler(ReservationError)
    async def reservation_error_handler(request: Request, exc: ReservationError):
        status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # Raw inputs are left out: NaN or Infinity cannot be rendered as JSON
        errors = [{k: v for k, v in e.items() if k != "input"} for e in exc.errors()]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "validation_error",
                "message": "Missing required fields",
                "details": {"errors": jsonable_encoder(errors)},
            },
        )

    async def storage_unavailable_handler(request: Request, exc: Exception):
        logger.error(f"Storage unavailable: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": "service_unavailable",
                "message": "Storage is unavailable, try again later",
                "details": {},
            },
        )

    app.add_exception_handler(OperationalError, storage_unavailable_handler)
    app.add_exception_handler(InterfaceError, storage_unavailable_handler)

    # --- Endpoints ---
    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/rooms", response_model=RoomCreated, status_code=status.HTTP_201_CREATED)
    async def create_room(
        room_data: RoomCreate,
        service: ReservationService = Depends(get_service),
    ):
        room = await service.create_room(
            name=room_data.name,
            seats=room_data.seats,
            amenities=room_data.amenities,
            price_per_hour=room_data.price_per_hour,
        )
        return RoomCreated(room_id=room.id)

    @app.get("/rooms", response_model=List[RoomWithBookings])
    async def list_rooms(service: ReservationService = Depends(get_service)):
        return await service.rooms_with_bookings()

    @app.get("/rooms/{room_id}", response_model=RoomWithBookings)
    async def get_room(room_id: int, service: ReservationService = Depends(get_service)):
        return await service.room_with_bookings(room_id)

    @app.post("/bookings", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
    async def create_booking(
        booking_data: BookingCreate,
        service: ReservationService = Depends(get_service),
    ):
        booking = await service.create_booking(
            customer_name=booking_data.customer_name,
            date_start=booking_data.date_start,
            date_end=booking_data.date_end,
            room_id=booking_data.room_id,
        )
        return BookingCreated(booking_id=booking.id)

    @app.get("/bookings", response_model=List[BookingRead])
    async def list_bookings(service: ReservationService = Depends(get_service)):
        return [BookingRead.from_booking(b) for b in await service.list_bookings()]

    @app.get("/customers", response_model=List[CustomerBooking])
    async def list_customers(service: ReservationService = Depends(get_service)):
        return await service.customers_with_bookings()

    @app.get("/customer-bookings/{customer_name}", response_model=List[CustomerBookingDetail])
    async def customer_bookings(
        customer_name: str,
        service: ReservationService = Depends(get_service),
    ):
        return await service.customer_booking_history(customer_name)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
