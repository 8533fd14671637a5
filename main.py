import asyncio
from fastapi import FastAPI, HTTPException, Depends, Query, WebSocket, WebSocketDisconnect, status
from datetime import timedelta
from typing import Dict, List, Optional
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError

from api.schemas import (
    # Hotel settings
    SaveHotelSettingsRequest, HotelSettingsResponse, ContainerRequest,
    # Reservation
    CreateReservationRequest, CreateDayUseReservationRequest, UpdateDayUseReservationRequest,
    UpsertOTAReservationsRequest,
    UpsertOTAReservationsResponse, UpdateReservationRequest, MoveReservationRequest,
    ReservationResponse,
    # Conflict & availability
    ConflictCheckRequest, ConflictResponse, RoomAvailabilityResponse, AvailabilitySummaryResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, fake_users_db, get_user
from config.logging import configure_logging, get_logger
from infrastructure.security import verify_password, create_access_token, decode_access_token, ACCESS_TOKEN_EXPIRE_MINUTES
from domain.auth import User

from application.services import ReservationService, AvailabilityService, HotelSettingsService
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryHotelSettingsRepository
)
from infrastructure.events import ReservationEventHub
from infrastructure.locks import RoomLockRegistry
from infrastructure.tenancy import HotelRegistry
from domain.dates import DateParseCache
from domain.entities import Reservation, RoomType, GridSettings
from domain.enums import ReservationType, OTASite
from domain.exceptions import (
    ConfigurationMissingError, NoRoomAvailableError,
    ReservationConflictError, ReservationNotMovableError
)

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Hotel Inventory API",
    description="Reservations, room grid, conflict detection and availability for multi-tenant hotels",
    version="1.0.0"
)

# Per-process state
reservation_repo = InMemoryReservationRepository()
hotel_settings_repo = InMemoryHotelSettingsRepository()
room_locks = RoomLockRegistry()
hotel_registry = HotelRegistry()
event_hub = ReservationEventHub()
date_parse_cache = DateParseCache()


def reset_state() -> None:
    """Drop all stored data and per-process caches"""
    global reservation_repo, hotel_settings_repo
    reservation_repo = InMemoryReservationRepository()
    hotel_settings_repo = InMemoryHotelSettingsRepository()
    room_locks.reset()
    hotel_registry.reset()
    date_parse_cache.reset()


# Dependency injection
def get_reservation_service() -> ReservationService:
    return ReservationService(
        reservation_repo, hotel_settings_repo,
        locks=room_locks, registry=hotel_registry, events=event_hub, parse_cache=date_parse_cache
    )

def get_availability_service() -> AvailabilityService:
    return AvailabilityService(reservation_repo, hotel_settings_repo)

def get_hotel_settings_service() -> HotelSettingsService:
    return HotelSettingsService(hotel_settings_repo, hotel_registry)


def _to_http_error(error: ValueError) -> HTTPException:
    """Map domain errors to HTTP responses"""
    if isinstance(error, ReservationConflictError):
        blocking = error.conflicting
        return HTTPException(status_code=409, detail={
            "message": str(error),
            "room_number": error.room_number,
            "conflicting_reservation_id": blocking.reservation_id,
            "conflicting_customer_name": blocking.customer_name,
            "conflicting_check_in": blocking.check_in.isoformat() if blocking.check_in else None,
            "conflicting_check_out": blocking.check_out.isoformat() if blocking.check_out else None,
        })
    if isinstance(error, (NoRoomAvailableError, ReservationNotMovableError)):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, ConfigurationMissingError):
        return HTTPException(status_code=404, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


def _reservation_to_response(reservation: Reservation) -> ReservationResponse:
    data = reservation.model_dump()
    data["type"] = reservation.type.value
    return ReservationResponse(**data)

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/reservation-type", tags=["Enum Reference"])
async def get_reservation_types():
    """Get all ReservationType enum values"""
    return {
        "values": [item.value for item in ReservationType],
        "description": "stay occupies whole days, dayUse occupies an hour range"
    }

@app.get("/api/enums/ota-sites", tags=["Enum Reference"])
async def get_ota_sites():
    """Get all OTASite enum values"""
    return {"values": [item.value for item in OTASite]}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username, "hotel_id": user.hotel_id}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# HOTEL SETTINGS ENDPOINTS
# ============================================================================

@app.put("/api/hotel-settings", response_model=HotelSettingsResponse, tags=["Hotel Settings"])
async def save_hotel_settings(
    request: SaveHotelSettingsRequest,
    service: HotelSettingsService = Depends(get_hotel_settings_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create or replace room types and room grid"""
    try:
        hotel_settings = await service.save_settings(
            hotel_id=current_user.hotel_id,
            room_types=[RoomType(**rt.model_dump()) for rt in request.room_types],
            grid_settings=GridSettings(**request.grid_settings.model_dump()) if request.grid_settings else None,
            check_in_time=request.check_in_time,
            check_out_time=request.check_out_time,
            total_rooms=request.total_rooms,
        )
        return HotelSettingsResponse(**hotel_settings.model_dump())
    except ValueError as e:
        raise _to_http_error(e)

@app.get("/api/hotel-settings", response_model=HotelSettingsResponse, tags=["Hotel Settings"])
async def get_hotel_settings(
    service: HotelSettingsService = Depends(get_hotel_settings_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get the current hotel's settings"""
    try:
        hotel_settings = await service.get_settings(current_user.hotel_id)
        return HotelSettingsResponse(**hotel_settings.model_dump())
    except ValueError as e:
        raise _to_http_error(e)

@app.get("/api/hotel-settings/rooms/{room_info}", response_model=List[ContainerRequest], tags=["Hotel Settings"])
async def get_active_rooms(
    room_info: str,
    service: HotelSettingsService = Depends(get_hotel_settings_service),
    current_user: User = Depends(get_current_active_user)
):
    """Active rooms of a room type in assignment order"""
    containers = await service.get_active_rooms(current_user.hotel_id, room_info)
    return [ContainerRequest(**c.model_dump()) for c in containers]

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Book a stay; a room is assigned automatically when none is given"""
    try:
        reservation = await service.create_reservation(
            hotel_id=current_user.hotel_id,
            room_info=request.room_info,
            check_in=request.check_in,
            check_out=request.check_out,
            price=request.price,
            site_name=request.site_name,
            external_no=request.external_no,
            customer_name=request.customer_name,
            phone_number=request.phone_number,
            room_number=request.room_number,
            special_requests=request.special_requests,
            validate_price=request.validate_price,
        )
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.post("/api/reservations/ota", response_model=UpsertOTAReservationsResponse, status_code=201, tags=["Reservations"])
async def upsert_ota_reservations(
    request: UpsertOTAReservationsRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create or update scraped OTA bookings"""
    created_ids = await service.upsert_ota_reservations(
        current_user.hotel_id, request.site_name, request.reservations
    )
    return UpsertOTAReservationsResponse(
        message="Reservations processed successfully",
        created_reservation_ids=created_ids,
    )

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_reservations(
    name: Optional[str] = None,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get live reservations"""
    reservations = await service.get_live_reservations(current_user.hotel_id, name)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/canceled", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_canceled_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get cancelled reservations"""
    reservations = await service.get_cancelled_reservations(current_user.hotel_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    reservation = await service.get_reservation(current_user.hotel_id, reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)

@app.patch("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def update_reservation(
    reservation_id: str,
    request: UpdateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Update reservation fields, dates or room"""
    try:
        reservation = await service.update_reservation(
            current_user.hotel_id, reservation_id, request.model_dump(exclude_unset=True)
        )
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.post("/api/reservations/{reservation_id}/move", response_model=ReservationResponse, tags=["Reservations"])
async def move_reservation(
    reservation_id: str,
    request: MoveReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Drag a reservation into another room"""
    try:
        reservation = await service.move_reservation(
            current_user.hotel_id, reservation_id, request.room_number, request.selected_date
        )
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.post("/api/reservations/{reservation_id}/confirm", response_model=ReservationResponse, tags=["Reservations"])
async def confirm_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Confirm reservation"""
    try:
        reservation = await service.confirm_reservation(current_user.hotel_id, reservation_id)
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.post("/api/reservations/{reservation_id}/cancel", response_model=ReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel reservation"""
    try:
        reservation = await service.cancel_reservation(current_user.hotel_id, reservation_id)
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.post("/api/reservations/{reservation_id}/checkout", response_model=ReservationResponse, tags=["Reservations"])
async def check_out_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Manual early checkout"""
    try:
        reservation = await service.check_out_reservation(current_user.hotel_id, reservation_id)
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.delete("/api/reservations/{reservation_id}", status_code=204, tags=["Reservations"])
async def delete_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Delete reservation"""
    deleted = await service.delete_reservation(current_user.hotel_id, reservation_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Reservation not found")

# ============================================================================
# DAY-USE ENDPOINTS
# ============================================================================

@app.post("/api/dayuse", response_model=ReservationResponse, status_code=201, tags=["Day Use"])
async def create_day_use_reservation(
    request: CreateDayUseReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Book an hourly session"""
    try:
        reservation = await service.create_day_use_reservation(
            hotel_id=current_user.hotel_id,
            room_info=request.room_info,
            check_in=request.check_in,
            duration_hours=request.duration_hours,
            site_name=request.site_name,
            external_no=request.external_no,
            customer_name=request.customer_name,
            phone_number=request.phone_number,
            room_number=request.room_number,
            price=request.price,
        )
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

@app.patch("/api/dayuse/{reservation_id}", response_model=ReservationResponse, tags=["Day Use"])
async def update_day_use_reservation(
    reservation_id: str,
    request: UpdateDayUseReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Change start, duration or room of an hourly session"""
    try:
        reservation = await service.update_day_use_reservation(
            current_user.hotel_id, reservation_id, request.model_dump(exclude_unset=True)
        )
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise _to_http_error(e)

# ============================================================================
# CONFLICT & AVAILABILITY ENDPOINTS
# ============================================================================

@app.post("/api/conflicts/check", response_model=ConflictResponse, tags=["Availability"])
async def check_conflict(
    request: ConflictCheckRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Would a booking in this room for these dates collide with an existing one?"""
    try:
        result = await service.check_conflict(
            current_user.hotel_id, request.room_number, request.check_in, request.check_out,
            reservation_type=request.type, exclude_id=request.exclude_id
        )
    except ValueError as e:
        raise _to_http_error(e)
    blocking = result.with_reservation
    return ConflictResponse(
        conflict=result.conflict,
        room_number=request.room_number,
        conflicting_reservation_id=blocking.reservation_id if blocking else None,
        conflicting_customer_name=blocking.customer_name if blocking else None,
        conflicting_check_in=blocking.check_in if blocking else None,
        conflicting_check_out=blocking.check_out if blocking else None,
    )

@app.get("/api/availability", response_model=Dict[str, Dict[str, RoomAvailabilityResponse]], tags=["Availability"])
async def get_availability(
    from_date: str = Query(..., alias="fromDate"),
    to_date: str = Query(..., alias="toDate"),
    service: AvailabilityService = Depends(get_availability_service),
    current_user: User = Depends(get_current_active_user)
):
    """Remaining rooms per date and room type, toDate exclusive"""
    try:
        availability = await service.get_availability(current_user.hotel_id, from_date, to_date)
    except ValueError as e:
        raise _to_http_error(e)
    return {
        day: {key: RoomAvailabilityResponse(**room.model_dump()) for key, room in types.items()}
        for day, types in availability.items()
    }

@app.get("/api/availability/summary", response_model=List[AvailabilitySummaryResponse], tags=["Availability"])
async def get_availability_summary(
    from_date: str = Query(..., alias="fromDate"),
    to_date: str = Query(..., alias="toDate"),
    service: AvailabilityService = Depends(get_availability_service),
    current_user: User = Depends(get_current_active_user)
):
    """Rooms bookable for every night of the range, per room type"""
    try:
        summary = await service.get_summary(current_user.hotel_id, from_date, to_date)
    except ValueError as e:
        raise _to_http_error(e)
    return [AvailabilitySummaryResponse(**item) for item in summary]

# ============================================================================
# REAL-TIME UPDATES
# ============================================================================

@app.websocket("/ws/{hotel_id}")
async def reservation_updates(websocket: WebSocket, hotel_id: str, token: str = ""):
    """Stream reservation events of one hotel"""
    try:
        payload = decode_access_token(token)
    except JWTError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    if payload.get("hotel_id") != hotel_id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue = event_hub.subscribe(hotel_id)

    async def forward():
        while True:
            await websocket.send_json(await queue.get())

    forwarder = asyncio.create_task(forward())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Subscriber disconnected", hotel_id=hotel_id)
    finally:
        forwarder.cancel()
        event_hub.unsubscribe(hotel_id, queue)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
