
from clasificados.models.user import User
from clasificados.models.listing import (
    Listing, ListingPhoto,
    ListingCategory, ListingScope, ListingStatus, Currency,
    RentType, RentPeriod, ItemSubcategory, ItemCondition, DeliveryType,
    ServiceSubcategory, ServiceFormat,
)
