from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import QrLink


class QrLinkRepository(Protocol):
    def list_for_owner(self, owner_id: int) -> Sequence[QrLink]:
        """Newest first."""

        raise NotImplementedError

    def get_by_id(self, link_id: int) -> Optional[QrLink]:
        raise NotImplementedError

    def get_by_url_id(self, url_id: str) -> Optional[QrLink]:
        raise NotImplementedError

    def create(self, *, owner_id: int, name: str, url_id: str, expires_at: Optional[int]) -> int:
        raise NotImplementedError

    def regenerate(self, link_id: int, *, url_id: str) -> bool:
        """Replace url_id and reactivate the link."""

        raise NotImplementedError

    def set_active(self, link_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def delete(self, link_id: int) -> bool:
        raise NotImplementedError
