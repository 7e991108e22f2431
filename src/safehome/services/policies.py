"""
Per-home policy & model configuration

Both are singleton documents keyed by home id and written with merge
upserts. Threshold mappings are validated against the closed detection
catalog before anything is written.
"""

import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ..domain import HomeModelConfig, HomePolicy, Role
from ..errors import StoreWriteError, ValidationFailed
from ..store import HOME_MODELS, HOME_POLICIES, SERVER_TIMESTAMP, DocumentStore
from .notices import NoticeBoard


logger = logging.getLogger(__name__)


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    location = ".".join(str(part) for part in err.get("loc", ()))
    return f"{location}: {err.get('msg')}" if location else str(err.get("msg"))


class PolicyService:

    def __init__(self, store: DocumentStore, notices: NoticeBoard):
        self.store = store
        self.notices = notices

    # =========================================================================
    # Quiet hours
    # =========================================================================

    async def get_quiet_hours(self, home_id: str) -> HomePolicy:
        snapshot = await self.store.get(HOME_POLICIES, home_id)
        if not snapshot.exists:
            return HomePolicy(home_id=home_id)
        return HomePolicy.from_snapshot(snapshot)

    async def save_quiet_hours(self, home_id: str, enabled: bool, start: str, end: str) -> HomePolicy:
        try:
            policy = HomePolicy(home_id=home_id, enabled=enabled, start=start, end=end)
        except ValidationError as e:
            raise ValidationFailed(_first_error(e), title="Invalid quiet hours") from e

        try:
            await self.store.set(HOME_POLICIES, home_id, {
                "home_id": home_id,
                "enabled": policy.enabled,
                "start": policy.start,
                "end": policy.end,
                "updated_at": SERVER_TIMESTAMP,
            }, merge=True)
        except Exception as e:
            self.notices.error(home_id, "Quiet hours failed", str(e))
            raise StoreWriteError(str(e), title="Quiet hours failed", cause=e) from e

        logger.info("[POLICY] %s quiet hours enabled=%s %s-%s", home_id, policy.enabled, policy.start, policy.end)
        self.notices.success(home_id, "Quiet hours updated", "Policy synced for this home")
        return await self.get_quiet_hours(home_id)

    # =========================================================================
    # Model thresholds
    # =========================================================================

    async def get_model_config(self, home_id: str) -> HomeModelConfig:
        snapshot = await self.store.get(HOME_MODELS, home_id)
        if not snapshot.exists:
            return HomeModelConfig(home_id=home_id)
        return HomeModelConfig.from_snapshot(snapshot)

    @staticmethod
    def build_model_config(
        home_id: str,
        thresholds: Mapping[str, Any],
        editor: Optional[Role] = None,
    ) -> HomeModelConfig:
        """Validate a {alert_type: threshold} mapping.

        Values may be bare numbers or {"threshold": x}. The editor's role is
        stamped as last_editor on every class.
        """
        classes: dict[str, Any] = {}
        for alert_type, raw in thresholds.items():
            value = raw.get("threshold") if isinstance(raw, Mapping) else raw
            classes[alert_type] = {"threshold": value, "last_editor": editor}
        try:
            return HomeModelConfig(home_id=home_id, classes=classes)
        except ValidationError as e:
            raise ValidationFailed(_first_error(e), title="Invalid thresholds") from e

    async def save_model_config(
        self,
        home_id: str,
        thresholds: Mapping[str, Any],
        editor: Optional[Role] = None,
    ) -> HomeModelConfig:
        """Replace the home's threshold mapping wholesale."""
        config = self.build_model_config(home_id, thresholds, editor)
        classes = {
            alert_type.value: entry.model_dump(mode="json")
            for alert_type, entry in config.classes.items()
        }
        try:
            await self.store.set(HOME_MODELS, home_id, {
                "home_id": home_id,
                "classes": classes,
                "updated_at": SERVER_TIMESTAMP,
            }, merge=True)
        except Exception as e:
            self.notices.error(home_id, "Save failed", str(e))
            raise StoreWriteError(str(e), title="Save failed", cause=e) from e

        logger.info("[MODEL] %s thresholds saved for %d class(es)", home_id, len(classes))
        self.notices.success(home_id, "Model thresholds saved", "Future alerts will use new tuning")
        return await self.get_model_config(home_id)
