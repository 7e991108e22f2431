"""
Devices API

Device registry for the session's home: list, register, edit, heartbeat
and the simulated test-clip upload.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..client import SafeHomeClient
from ..domain import DEVICE_TYPE_LABELS, DeviceType
from ..services import Session
from .deps import get_client, get_session


devices_router = APIRouter(prefix="/api/devices", tags=["devices"])


class DeviceRequest(BaseModel):
    name: str = Field(default="", description="Friendly name")
    type: DeviceType = Field(default=DeviceType.AUDIO_SENSOR)


def _device_row(device) -> dict:
    row = device.to_dict()
    row["type_label"] = DEVICE_TYPE_LABELS[device.type]
    return row


@devices_router.get("")
async def list_devices(
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    devices = await client.devices.list_devices(session.home_id)
    return {"devices": [_device_row(d) for d in devices]}


@devices_router.post("", status_code=201)
async def register_device(
    request: DeviceRequest,
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    device = await client.devices.register(session.home_id, request.name, request.type)
    return _device_row(device)


@devices_router.patch("/{device_id}")
async def edit_device(
    device_id: str,
    request: DeviceRequest,
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    device = await client.devices.edit(session.home_id, device_id, request.name, request.type)
    return _device_row(device)


@devices_router.post("/{device_id}/heartbeat")
async def heartbeat(
    device_id: str,
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    device = await client.devices.heartbeat(session.home_id, device_id)
    return _device_row(device)


@devices_router.post("/{device_id}/test-clip", status_code=202)
async def send_test_clip(
    device_id: str,
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    """Write an ingestion record now; the alert follows after the inference delay."""
    device = await client.devices.load(session.home_id, device_id)
    submission = await client.ingestion.send_test_clip(session.home_id, device)
    return {
        "event_id": submission.event_id,
        "storage_key": submission.storage_key,
        "alert_due_in_sec": client.ingestion.delay_sec,
    }
