from datetime import datetime, timezone

from fastapi import APIRouter

from clasificados.api.v1.public.cities import router as cities_router
from clasificados.api.v1.public.listings import router as listings_router
from clasificados.api.v1.public.subscription import router as subscription_router

api_router = APIRouter()

# --- Public: catalogue ---
api_router.include_router(cities_router)

# --- Public: Mini App gate ---
api_router.include_router(subscription_router)

# --- Listings ---
api_router.include_router(listings_router)


@api_router.get("/health", tags=["Health"])
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
