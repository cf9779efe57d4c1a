from __future__ import annotations

from uuid import uuid4

from ..core.config import settings
from ..models.entities import CurrentCustomer


class IdentityProvider:
    """Acting customer for a tracker; falls back to a guest when nobody is signed in."""

    def __init__(self, current_user: CurrentCustomer | None = None, guest_name: str | None = None) -> None:
        self.current_user = current_user
        self.guest_name = guest_name or settings.GUEST_NAME

    def resolve(self) -> CurrentCustomer:
        if self.current_user is not None:
            return self.current_user
        # each guest booking gets its own customer id
        return CurrentCustomer(id=uuid4(), first_name=self.guest_name, membership_tier=None)
