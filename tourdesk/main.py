from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Callable, List, Mapping, Optional, Union

from fastapi import APIRouter, Body, Depends, FastAPI, File, Form, Query, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .errors import AppError, UnexpectedError, ValidationError
from .mongo import MongoDocumentStore
from .queries import BOOKING_SORT_FIELDS, TOUR_SORT_FIELDS, BookingFilter, PageRequest, TourFilter
from .schemas import (
    BookingConfirmation,
    BookingCreatedEnvelope,
    BookingEnvelope,
    BookingMessageEnvelope,
    BookingResponse,
    BookingsPageEnvelope,
    BookingStatusUpdate,
    ErrorResponse,
    HealthResponse,
    MessageEnvelope,
    PaginationResponse,
    TourEnvelope,
    TourMessageEnvelope,
    TourResponse,
    ToursEnvelope,
    ToursPageEnvelope,
    TourStatusUpdate,
)
from .service import BookingService, TourService
from .storage import InMemoryDocumentStore
from .uploads import ImageUpload, LocalImageStorage

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

Store = Union[InMemoryDocumentStore, MongoDocumentStore]

_store_lock = threading.Lock()


def create_store(config: Settings) -> Store:
    if config.STORE_BACKEND == "memory":
        logger.warning("Using in-memory store, data is lost on restart")
        return InMemoryDocumentStore()
    store = MongoDocumentStore(config.MONGO_URI, config.MONGO_DATABASE, timeout_ms=config.MONGO_TIMEOUT_MS)
    store.ping()
    store.ensure_indexes()
    logger.info("MongoDB connected successfully", extra={"database": config.MONGO_DATABASE})
    return store


def get_store() -> Store:
    with _store_lock:
        if not hasattr(get_store, "_instance"):
            get_store._instance = create_store(get_settings())  # type: ignore[attr-defined]
    return get_store._instance  # type: ignore[attr-defined]


def close_store() -> None:
    with _store_lock:
        store = getattr(get_store, "_instance", None)
        if store is None:
            return
        store.close()
        del get_store._instance  # type: ignore[attr-defined]
    logger.info("Store connection closed")


def get_image_storage() -> LocalImageStorage:
    return LocalImageStorage(get_settings().IMAGES_DIR)


def get_tour_service(
    store: Store = Depends(get_store),
    images: LocalImageStorage = Depends(get_image_storage),
) -> TourService:
    return TourService(store=store, images=images, max_image_size=get_settings().MAX_IMAGE_SIZE)


def get_booking_service(store: Store = Depends(get_store)) -> BookingService:
    return BookingService(store=store, phone_region=get_settings().PHONE_DEFAULT_REGION)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    Path(settings.IMAGES_DIR, "tours").mkdir(parents=True, exist_ok=True)
    logger.info("Starting %s", settings.APP_NAME, extra={"environment": settings.ENVIRONMENT})
    yield
    logger.info("Shutting down %s", settings.APP_NAME)
    close_store()


app = FastAPI(title=settings.APP_NAME, version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def handle_app_error(_: Request, exc: AppError) -> JSONResponse:
    content = exc.to_dict()
    if isinstance(exc, UnexpectedError):
        logger.error("Request failed", extra={"code": exc.code, "detail": exc.detail})
        if settings.is_development and exc.detail:
            content["error"] = exc.detail
    else:
        logger.warning("Request failed", extra={"code": exc.code, "reason": exc.message})
    return JSONResponse(status_code=exc.status_code, content=content)


def _error_field(location: tuple[Any, ...]) -> str:
    parts = [str(part) for part in location[1:]] or [str(part) for part in location]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{"field": _error_field(tuple(error["loc"])), "msg": error["msg"]} for error in exc.errors()]
    logger.warning("Request failed", extra={"code": "VALIDATION_FAILED", "errors": errors})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Endpoint not found" if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(_: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "Something went wrong!",
            "error": str(exc) if settings.is_development else "Internal server error",
        },
    )


def page_params(allowed: Mapping[str, str]) -> Callable[..., PageRequest]:
    def dependency(
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=100),
        sortBy: Optional[str] = Query(None),
        sortOrder: Optional[str] = Query(None),
    ) -> PageRequest:
        return PageRequest.from_query(page=page, limit=limit, sort_by=sortBy, sort_order=sortOrder, allowed=allowed)

    return dependency


def tour_form(
    title: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    duration: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    displayOrder: Optional[str] = Form(None),
    isActive: Optional[str] = Form(None),
) -> dict[str, Any]:
    return {
        "title": title,
        "price": price,
        "duration": duration,
        "category": category,
        "description": description,
        "displayOrder": displayOrder,
        "isActive": isActive,
    }


def read_image(image: Optional[List[UploadFile]] = File(None)) -> Optional[ImageUpload]:
    uploads = [upload for upload in image or [] if upload.filename]
    if not uploads:
        return None
    if len(uploads) > 1:
        raise ValidationError.single("image", "Only one image can be uploaded per request")
    upload = uploads[0]
    return ImageUpload(
        filename=upload.filename or "",
        content_type=upload.content_type or "",
        data=upload.file.read(get_settings().MAX_IMAGE_SIZE + 1),
    )


router = APIRouter(
    prefix="/api",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


@router.get("/tours", response_model=ToursEnvelope)
def list_tours(service: TourService = Depends(get_tour_service)) -> ToursEnvelope:
    tours = service.list_active_tours()
    return ToursEnvelope(data=[TourResponse.from_domain(tour) for tour in tours])


@router.get("/tours/{tour_id}", response_model=TourEnvelope)
def get_tour(tour_id: str, service: TourService = Depends(get_tour_service)) -> TourEnvelope:
    return TourEnvelope(data=TourResponse.from_domain(service.get_tour(tour_id)))


@router.get("/admin/tours", response_model=ToursPageEnvelope)
def list_admin_tours(
    page: PageRequest = Depends(page_params(TOUR_SORT_FIELDS)),
    status_filter: Optional[str] = Query(None, alias="status"),
    service: TourService = Depends(get_tour_service),
) -> ToursPageEnvelope:
    tours, pagination = service.list_admin_tours(page, TourFilter(status=status_filter))
    return ToursPageEnvelope(
        data=[TourResponse.from_domain(tour) for tour in tours],
        pagination=PaginationResponse.from_domain(pagination),
    )


@router.post("/tours", response_model=TourMessageEnvelope, status_code=status.HTTP_201_CREATED)
def create_tour(
    fields: dict[str, Any] = Depends(tour_form),
    image: Optional[ImageUpload] = Depends(read_image),
    service: TourService = Depends(get_tour_service),
) -> TourMessageEnvelope:
    tour = service.create_tour(fields, image)
    return TourMessageEnvelope(message="Tour created successfully!", data=TourResponse.from_domain(tour))


@router.put("/tours/{tour_id}", response_model=TourMessageEnvelope)
def update_tour(
    tour_id: str,
    fields: dict[str, Any] = Depends(tour_form),
    image: Optional[ImageUpload] = Depends(read_image),
    service: TourService = Depends(get_tour_service),
) -> TourMessageEnvelope:
    tour = service.update_tour(tour_id, fields, image)
    return TourMessageEnvelope(message="Tour updated successfully", data=TourResponse.from_domain(tour))


@router.put("/tours/{tour_id}/status", response_model=TourMessageEnvelope)
def set_tour_status(
    tour_id: str,
    payload: TourStatusUpdate,
    service: TourService = Depends(get_tour_service),
) -> TourMessageEnvelope:
    tour = service.set_tour_status(tour_id, payload.is_active)
    verb = "activated" if payload.is_active else "deactivated"
    return TourMessageEnvelope(message=f"Tour {verb} successfully", data=TourResponse.from_domain(tour))


@router.delete("/tours/{tour_id}", response_model=MessageEnvelope)
def delete_tour(tour_id: str, service: TourService = Depends(get_tour_service)) -> MessageEnvelope:
    service.delete_tour(tour_id)
    return MessageEnvelope(message="Tour deleted successfully")


@router.post("/bookings", response_model=BookingCreatedEnvelope, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: dict[str, Any] = Body(...),
    service: BookingService = Depends(get_booking_service),
) -> BookingCreatedEnvelope:
    booking = service.create_booking(payload)
    return BookingCreatedEnvelope(
        message="Booking submitted successfully! We will contact you soon.",
        booking=BookingConfirmation(
            id=booking.id,
            name=booking.name,
            email=booking.email,
            created_at=booking.created_at,
        ),
    )


@router.get("/bookings", response_model=BookingsPageEnvelope)
def list_bookings(
    page: PageRequest = Depends(page_params(BOOKING_SORT_FIELDS)),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    service: BookingService = Depends(get_booking_service),
) -> BookingsPageEnvelope:
    bookings, pagination = service.list_bookings(page, BookingFilter(status=status_filter, search=search))
    return BookingsPageEnvelope(
        data=[BookingResponse.from_domain(booking) for booking in bookings],
        pagination=PaginationResponse.from_domain(pagination),
    )


@router.get("/bookings/{booking_id}", response_model=BookingEnvelope)
def get_booking(booking_id: str, service: BookingService = Depends(get_booking_service)) -> BookingEnvelope:
    return BookingEnvelope(data=BookingResponse.from_domain(service.get_booking(booking_id)))


@router.put("/bookings/{booking_id}/status", response_model=BookingMessageEnvelope)
def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
) -> BookingMessageEnvelope:
    booking = service.update_booking_status(booking_id, payload.status)
    return BookingMessageEnvelope(
        message="Booking status updated successfully",
        data=BookingResponse.from_domain(booking),
    )


@router.delete("/bookings/{booking_id}", response_model=MessageEnvelope)
def delete_booking(booking_id: str, service: BookingService = Depends(get_booking_service)) -> MessageEnvelope:
    service.delete_booking(booking_id)
    return MessageEnvelope(message="Booking deleted successfully")


@app.get("/", include_in_schema=False)
def root() -> dict[str, Any]:
    return {
        "message": f"{settings.APP_NAME} is running",
        "status": "Active",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "docs": {
            "health": "GET /health - Server health check",
            "tours": "GET /api/tours - Active tours",
            "adminTours": "GET /api/admin/tours - All tours, paginated",
            "bookings": "GET /api/bookings - All bookings, paginated",
            "submitBooking": "POST /api/bookings - Submit new booking",
        },
    }


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="OK", message="Server is running", timestamp=datetime.now(timezone.utc))


app.include_router(router)
app.mount("/images", StaticFiles(directory=settings.IMAGES_DIR, check_dir=False), name="images")
