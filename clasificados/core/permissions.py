
import logging
from typing import Iterable, Optional, Union

from clasificados.core.config import Settings

logger = logging.getLogger(__name__)

ExternalId = Union[int, str]


def _normalize(external_id: Optional[ExternalId]) -> str:
    if external_id is None:
        return ""
    return str(external_id).strip()


class AdminPolicy:
    """
    Decides who may mutate a listing: its owner, or anyone in the configured
    admin set. Adminship comes from configuration only.
    """

    def __init__(self, admin_ids: Iterable[ExternalId] = ()):
        self.admin_ids = frozenset(
            normalized for normalized in (_normalize(i) for i in admin_ids) if normalized
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdminPolicy":
        return cls(settings.admin_ids)

    def is_admin(self, external_id: Optional[ExternalId]) -> bool:
        normalized = _normalize(external_id)
        return bool(normalized) and normalized in self.admin_ids

    def is_owner(self, acting_id: Optional[ExternalId], owner_id: Optional[ExternalId]) -> bool:
        acting = _normalize(acting_id)
        return bool(acting) and acting == _normalize(owner_id)

    def can_mutate(self, acting_id: Optional[ExternalId], owner_id: Optional[ExternalId]) -> bool:
        return self.is_owner(acting_id, owner_id) or self.is_admin(acting_id)
