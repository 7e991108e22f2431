"""
Ingestion / Inference Simulator

Two-phase stand-in for upload → queue → classifier worker → alert:

1. send_test_clip() writes an IngestionEvent immediately (fabricated storage key)
2. a DeferredTask writes the derived Alert after `delay_sec`

The phases are independent: a failed alert write does not remove the
ingestion record and nothing is retried. Pending alert writes live only in
memory; shutdown() cancels them.
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional, Sequence

from ..domain import ALERT_CATALOG, AlertStatus, CatalogEntry, Device, Severity
from ..errors import StoreWriteError
from ..store import ALERTS, EVENTS, SERVER_TIMESTAMP, DocumentStore
from .busy import BusyTracker
from .deferred import DeferredScheduler, DeferredTask
from .notices import NoticeBoard


logger = logging.getLogger(__name__)

CLIP_ACTION = "clip"
DEFAULT_INFERENCE_DELAY_SEC = 3.0


@dataclass
class ClipSubmission:
    """Handle for one simulated upload."""
    home_id: str
    device_id: str
    event_id: str
    storage_key: str
    entry: CatalogEntry
    severity: Severity
    task: Optional[DeferredTask] = None
    alert_id: Optional[str] = None
    error: Optional[str] = None

    async def wait(self) -> Optional[str]:
        """Wait for the inference phase; returns the alert id (None on failure/cancel)."""
        if self.task is not None:
            await self.task.wait()
        return self.alert_id


class IngestionSimulator:
    """Fabricates ingestion records and, later, classification alerts."""

    def __init__(
        self,
        store: DocumentStore,
        scheduler: DeferredScheduler,
        notices: NoticeBoard,
        busy: BusyTracker,
        rng: Optional[random.Random] = None,
        delay_sec: float = DEFAULT_INFERENCE_DELAY_SEC,
        catalog: Sequence[CatalogEntry] = ALERT_CATALOG,
    ):
        self.store = store
        self.scheduler = scheduler
        self.notices = notices
        self.busy = busy
        self.rng = rng or random.Random()
        self.delay_sec = delay_sec
        self.catalog = tuple(catalog)

    def classify(self) -> tuple[CatalogEntry, Severity]:
        """Mock inference: uniform over catalog, then uniform over severity pool."""
        entry = self.rng.choice(self.catalog)
        severity = self.rng.choice(entry.severity_pool)
        return entry, severity

    def storage_key_for(self, device: Device) -> str:
        epoch_ms = int(self.scheduler.clock.now().timestamp() * 1000)
        return f"audio/{device.id}/{epoch_ms}.wav"

    async def send_test_clip(self, home_id: str, device: Device) -> ClipSubmission:
        """Simulate one audio upload from `device`.

        Raises:
            OperationInProgress: a clip for this device is still being submitted
            StoreWriteError: the ingestion record could not be written
        """
        async with self.busy.hold(CLIP_ACTION, device.id):
            storage_key = self.storage_key_for(device)
            try:
                event_id = await self.store.add(EVENTS, {
                    "home_id": home_id,
                    "device_id": device.id,
                    "device_name": device.name,
                    "timestamp": SERVER_TIMESTAMP,
                    "storage_key": storage_key,
                })
            except Exception as e:
                self.notices.error(home_id, "Clip upload failed", str(e))
                raise StoreWriteError(str(e), title="Clip upload failed", cause=e) from e

            entry, severity = self.classify()
            logger.info("[INGEST] %s uploaded %s (event %s); inference due in %.1fs",
                        device.name, storage_key, event_id, self.delay_sec)

            submission = ClipSubmission(
                home_id=home_id,
                device_id=device.id,
                event_id=event_id,
                storage_key=storage_key,
                entry=entry,
                severity=severity,
            )
            submission.task = self.scheduler.schedule(
                self.delay_sec,
                lambda: self._write_alert(submission, device),
                name=f"inference_{event_id}",
            )

            self.notices.success(home_id, "Test clip sent", f"{device.name} uploaded sample audio")
            return submission

    async def _write_alert(self, submission: ClipSubmission, device: Device) -> None:
        entry = submission.entry
        try:
            alert_id = await self.store.add(ALERTS, {
                "home_id": submission.home_id,
                "device_id": device.id,
                "device_name": device.name,
                "type": entry.type.value,
                "type_label": entry.label,
                "severity": submission.severity.value,
                "status": AlertStatus.OPEN.value,
                "created_at": SERVER_TIMESTAMP,
                "event_id": submission.event_id,
            })
        except Exception as e:
            # ingestion record stays; no compensation, no retry
            submission.error = str(e)
            logger.error("[INGEST] Alert write for event %s failed: %s", submission.event_id, e)
            self.notices.error(submission.home_id, "Alert fan-out failed", str(e))
            return

        submission.alert_id = alert_id
        logger.info("[INGEST] Event %s classified as %s (%s) -> alert %s",
                    submission.event_id, entry.type.value, submission.severity.value, alert_id)
        self.notices.info(submission.home_id, "Inference complete", f"{entry.label} classified")

    @property
    def pending(self) -> list[DeferredTask]:
        return self.scheduler.pending

    async def shutdown(self) -> int:
        """Cancel pending inference writes. Returns the number cancelled."""
        return await self.scheduler.cancel_all()
