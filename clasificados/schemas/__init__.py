
from clasificados.schemas.common import Page, ErrorResponse, SuccessResponse
from clasificados.schemas.user import TelegramIdentity, AdminCheck
from clasificados.schemas.listing import (
    ListingFields, ListingCreate, ListingUpdate, ListingStatusUpdate,
    ListingFilters, Listing,
)
from clasificados.schemas.subscription import SubscriptionCheck, SubscriptionStatus
