
import hashlib
import logging
from typing import Iterable, List

from clasificados.core.errors import QuotaExceeded
from clasificados.services.repository import ListingRepository
from clasificados.utils.photo_store import PhotoStore

logger = logging.getLogger(__name__)

DEFAULT_ACTIVE_LISTING_CAP = 10


def photo_hash(content: bytes) -> str:
    return hashlib.md5(content).hexdigest()


class DuplicateGuard:
    """
    Rejects resubmissions of a listing the same owner already has active:
    same title and description, or the same set of photos.

    The photo check re-reads and hashes every stored photo of the owner's
    active listings on each call.
    """

    def __init__(self, repository: ListingRepository, photo_store: PhotoStore,
                 cap: int = DEFAULT_ACTIVE_LISTING_CAP):
        self.repository = repository
        self.photo_store = photo_store
        self.cap = cap

    def enforce_active_listing_cap(self, owner_telegram_id: int) -> None:
        active_count = self.repository.count_active_for_owner(owner_telegram_id)
        if active_count >= self.cap:
            logger.info("Owner %s hit the active listing cap (%d)", owner_telegram_id, active_count)
            raise QuotaExceeded(
                f"You have reached the limit of {self.cap} active listings. "
                "Please complete or delete some listings before publishing new ones."
            )

    def check_text_duplicate(self, owner_telegram_id: int, title: str, description: str) -> bool:
        duplicate_id = self.repository.find_text_duplicate(owner_telegram_id, title, description)
        if duplicate_id is not None:
            logger.info("Text duplicate of listing %s for owner %s", duplicate_id, owner_telegram_id)
            return True
        return False

    def _stored_hashes(self, photo_urls: Iterable[str]) -> List[str]:
        hashes = []
        for url in photo_urls:
            content = self.photo_store.read(url)
            if content is None:
                logger.warning("Photo file missing for %s, skipping it in duplicate check", url)
                continue
            hashes.append(photo_hash(content))
        return hashes

    def check_photo_duplicate(self, owner_telegram_id: int, new_photos: List[bytes]) -> bool:
        if not new_photos:
            return False
        new_hashes = sorted(photo_hash(content) for content in new_photos)

        for listing_id, urls in self.repository.active_photo_urls_by_listing(owner_telegram_id).items():
            # Only files that could be read take part in the comparison
            existing_hashes = self._stored_hashes(urls)
            if not existing_hashes or len(existing_hashes) != len(new_hashes):
                continue
            # Order is irrelevant: compare as sorted lists
            if sorted(existing_hashes) == new_hashes:
                logger.info("Photo duplicate of listing %s for owner %s", listing_id, owner_telegram_id)
                return True
        return False
