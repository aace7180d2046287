import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Type, TypeVar

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from clasificados.api.deps import get_current_identity, get_listing_service, get_optional_identity
from clasificados.core.errors import InvalidInput
from clasificados.models.listing import ListingCategory, ListingScope
from clasificados.schemas.common import Page, SuccessResponse
from clasificados.schemas.listing import (
    Listing as ListingSchema, ListingCreate, ListingFilters, ListingStatusUpdate, ListingUpdate,
)
from clasificados.schemas.user import AdminCheck, TelegramIdentity
from clasificados.services.listings import ListingService
from clasificados.utils.photo_store import PhotoUpload


router = APIRouter(prefix="/listings", tags=["Listings"])

FieldsT = TypeVar("FieldsT", bound=BaseModel)


# ---------------------------------------------------------------------------
# Multipart form handling
# ---------------------------------------------------------------------------


@dataclass
class ListingForm:
    fields: dict = field(default_factory=dict)
    photos: List[PhotoUpload] = field(default_factory=list)
    delete_photos: List[str] = field(default_factory=list)


def _delete_entries(value: str) -> List[str]:
    """A `delete_photos` value is one id/URL or a JSON list of them."""
    value = value.strip()
    if value.startswith("["):
        try:
            entries = json.loads(value)
        except ValueError:
            raise InvalidInput("delete_photos is not a valid JSON list")
        if not isinstance(entries, list):
            raise InvalidInput("delete_photos is not a valid JSON list")
        return [str(entry) for entry in entries]
    return [value] if value else []


async def listing_form(request: Request) -> ListingForm:
    """Reads a multipart listing form; photo bytes are held in memory."""
    form = await request.form()
    parsed = ListingForm()
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key == "photos" and value.filename:
                content = await value.read()
                parsed.photos.append(PhotoUpload(value.filename, content, value.content_type))
            await value.close()
        elif key == "delete_photos" or key.startswith("delete_photos["):
            parsed.delete_photos.extend(_delete_entries(value))
        else:
            parsed.fields[key] = value
    return parsed


def _parse_fields(model: Type[FieldsT], data: dict) -> FieldsT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise InvalidInput(f"Invalid value for {location}: {first['msg']}", detail=str(e))


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/", response_model=Page[ListingSchema])
def list_listings(
    category: Optional[ListingCategory] = None,
    city: Optional[str] = None,
    neighborhood: Optional[str] = None,
    scope: Optional[ListingScope] = None,
    min_price: Optional[Decimal] = Query(None, alias="minPrice"),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice"),
    search: Optional[str] = None,
    listing_status: str = Query("active", alias="status"),
    my: bool = False,
    has_rent_period: Optional[bool] = None,
    rooms: Optional[str] = None,
    total_area: Optional[Decimal] = Query(None, alias="totalArea"),
    living_area: Optional[Decimal] = Query(None, alias="livingArea"),
    floor: Optional[int] = None,
    floor_from: Optional[int] = Query(None, alias="floorFrom"),
    renovation: Optional[str] = None,
    furniture: Optional[str] = None,
    appliances: Optional[str] = None,
    internet: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    identity: Optional[TelegramIdentity] = Depends(get_optional_identity),
    service: ListingService = Depends(get_listing_service),
):
    filters = ListingFilters(
        category=category,
        city=city,
        neighborhood=neighborhood,
        scope=scope,
        min_price=min_price,
        max_price=max_price,
        search=search,
        status=listing_status,
        my=my,
        has_rent_period=has_rent_period,
        rooms=rooms,
        total_area=total_area,
        living_area=living_area,
        floor=floor,
        floor_from=floor_from,
        renovation=renovation,
        furniture=furniture,
        appliances=appliances,
        internet=internet,
        limit=limit,
        offset=offset,
    )
    total, listings = service.list(filters, identity)
    return Page[ListingSchema](
        listings=[ListingSchema.from_model(listing) for listing in listings],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/check-admin", response_model=AdminCheck)
def check_admin(
    identity: Optional[TelegramIdentity] = Depends(get_optional_identity),
    service: ListingService = Depends(get_listing_service),
):
    return AdminCheck(isAdmin=service.is_admin(identity))


@router.get("/{listing_id}", response_model=ListingSchema)
def get_listing(listing_id: int, service: ListingService = Depends(get_listing_service)):
    return ListingSchema.from_model(service.read(listing_id))


@router.post("/", response_model=ListingSchema, status_code=status.HTTP_201_CREATED)
def create_listing(
    form: ListingForm = Depends(listing_form),
    identity: TelegramIdentity = Depends(get_current_identity),
    service: ListingService = Depends(get_listing_service),
):
    """Publish a listing. Multipart: listing fields plus 1-5 `photos` files."""
    fields = _parse_fields(ListingCreate, form.fields)
    listing = service.create(identity, fields, form.photos)
    return ListingSchema.from_model(listing)


@router.put("/{listing_id}", response_model=ListingSchema)
def update_listing(
    listing_id: int,
    form: ListingForm = Depends(listing_form),
    identity: TelegramIdentity = Depends(get_current_identity),
    service: ListingService = Depends(get_listing_service),
):
    """
    Edit a listing. Omitted fields keep their value; `photos` are appended
    after the kept ones and `delete_photos` (photo ids or URLs) are removed.
    """
    fields = _parse_fields(ListingUpdate, form.fields)
    listing = service.update(listing_id, identity, fields, form.photos, form.delete_photos)
    return ListingSchema.from_model(listing)


@router.patch("/{listing_id}/status", response_model=SuccessResponse)
def update_listing_status(
    listing_id: int,
    data: ListingStatusUpdate,
    identity: TelegramIdentity = Depends(get_current_identity),
    service: ListingService = Depends(get_listing_service),
):
    service.set_status(listing_id, identity, data.status)
    return SuccessResponse()


@router.delete("/{listing_id}", response_model=SuccessResponse)
def delete_listing(
    listing_id: int,
    identity: TelegramIdentity = Depends(get_current_identity),
    service: ListingService = Depends(get_listing_service),
):
    service.delete(listing_id, identity)
    return SuccessResponse()
