"""
Home registration intake

Append-only requests, reviewed out of band. Not gated by a session.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from ..clock import Clock, SystemClock
from ..domain import HomeRegistration, RegistrationStatus
from ..errors import StoreWriteError, ValidationFailed
from ..store import HOME_REGISTRATIONS, SERVER_TIMESTAMP, DocumentStore


logger = logging.getLogger(__name__)


class RegistrationService:

    def __init__(self, store: DocumentStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or SystemClock()

    async def register_home(
        self,
        owner_name: str,
        owner_email: str,
        home_name: str,
        preferred_home_id: str = "",
        description: str = "",
    ) -> HomeRegistration:
        name = (owner_name or "").strip()
        email = (owner_email or "").strip().lower()
        home = (home_name or "").strip()
        if not name or not email or not home:
            raise ValidationFailed("Name, email, and home name are required.", title="Missing info")

        home_id = (preferred_home_id or "").strip()
        if not home_id:
            home_id = f"home-{int(self.clock.now().timestamp() * 1000)}"

        try:
            request = HomeRegistration(
                owner_name=name,
                owner_email=email,
                home_name=home,
                preferred_home_id=home_id,
                description=(description or "").strip(),
            )
        except ValidationError as e:
            raise ValidationFailed(f"'{email}' is not a valid email address.", title="Missing info") from e

        try:
            registration_id = await self.store.add(HOME_REGISTRATIONS, {
                **request.model_dump(mode="json", exclude={"id", "created_at"}),
                "status": RegistrationStatus.PENDING.value,
                "created_at": SERVER_TIMESTAMP,
            })
        except Exception as e:
            raise StoreWriteError(str(e), title="Registration failed", cause=e) from e

        logger.info("[REGISTER] Pending registration %s for %s (%s)", registration_id, home, home_id)
        snapshot = await self.store.get(HOME_REGISTRATIONS, registration_id)
        return HomeRegistration.from_snapshot(snapshot)
