
from clasificados.db.session import Base
from clasificados.models.user import User
from clasificados.models.listing import Listing, ListingPhoto
