
import logging
import os
import random
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_ABSOLUTE_URL = re.compile(r"^https?://[^/]+", re.IGNORECASE)


@dataclass
class PhotoUpload:
    """An uploaded image held in memory until the listing is written."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename or "")[1].lower()


def normalize_photo_url(url: str) -> str:
    """Strip scheme and host so absolute and relative references compare equal."""
    return _ABSOLUTE_URL.sub("", url.strip())


def unique_photo_name(original_filename: str) -> str:
    """Generate 'listing-<ms>-<random>.<ext>', unique per upload."""
    ext = os.path.splitext(original_filename or "")[1].lower()
    return f"listing-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


class PhotoStore:
    """
    Flat directory of uploaded photos. Files are referenced by their public
    relative path, e.g. '/uploads/listing-1700000000000-42.jpg'.
    """

    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root).resolve()
        self.url_prefix = "/" + url_prefix.strip("/")

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _full_path(self, relative_path: str) -> Optional[Path]:
        path = normalize_photo_url(relative_path)
        if path.startswith(self.url_prefix + "/"):
            path = path[len(self.url_prefix) + 1:]
        name = path.lstrip("/")
        if not name:
            return None
        full = (self.root / name).resolve()
        if self.root not in full.parents:
            logger.warning("Refusing photo path outside upload dir: %s", relative_path)
            return None
        return full

    def save(self, content: bytes, suggested_name: str) -> str:
        self.ensure_root()
        name = os.path.basename(suggested_name)
        # 'xb' never overwrites an existing upload
        with open(self.root / name, "xb") as f:
            f.write(content)
        return f"{self.url_prefix}/{name}"

    def read(self, relative_path: str) -> Optional[bytes]:
        full = self._full_path(relative_path)
        if full is None:
            return None
        try:
            return full.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Could not read photo file %s: %s", full, e)
            return None

    def delete(self, relative_path: str) -> bool:
        """Remove a stored photo. Returns False if it was already gone."""
        full = self._full_path(relative_path)
        if full is None:
            return False
        try:
            full.unlink()
            return True
        except FileNotFoundError:
            return False
