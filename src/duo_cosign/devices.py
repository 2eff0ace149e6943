"""Duo device schema and device-list JSON encoding."""

from __future__ import annotations

import json
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from duo_cosign.errors import DeviceSerializationError


class Device(BaseModel):
    model_config = ConfigDict(extra="ignore")

    device: str
    type: str
    display_name: Optional[str] = None
    name: Optional[str] = None
    number: Optional[str] = None
    capabilities: List[str] = Field(default_factory=list)
    sms_nextcode: Optional[str] = None


def serialize_device_list(devices: Sequence[Device]) -> str:
    """Encode devices as a single-line JSON array."""
    try:
        payload = [device.model_dump(exclude_none=True) for device in devices]
        return json.dumps(payload, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError, AttributeError) as exc:
        raise DeviceSerializationError(f"failed to JSON serialize device list: {exc}") from exc
