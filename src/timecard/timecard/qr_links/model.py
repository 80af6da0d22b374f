from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class QrLink:
    """Shareable kiosk link; `url_id` is the public path segment."""

    link_id: int
    owner_id: int
    name: str
    url_id: str
    is_active: bool = True
    expires_at: Optional[int] = None

    def is_usable(self, now: int) -> bool:
        if not self.is_active:
            return False
        return self.expires_at is None or now < self.expires_at
