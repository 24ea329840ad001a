# devcom/Schemas/gps_event.py

"""
GPSEvent: the canonical, protocol independent fix produced by every decoder.

Optional fields are sparse: `has(name)` is True only when a decoder (or the
shared post-processing) explicitly assigned the field, so "reported as 0" and
"never reported" stay distinguishable all the way to storage, where unset
fields are written as NULL.

An event is sealed by the Event Sink when it is committed; any later
assignment raises EventSealedError.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from devcom.Core.exceptions import EventSealedError
from devcom.Core.geo import is_valid_geopoint
from devcom.Core.status_codes import STATUS_LOCATION, status_name

OPTIONAL_FIELDS = (
    "latitude",
    "longitude",
    "speed_kph",
    "heading",
    "altitude",
    "odometer_km",
    "input_mask",
    "battery_level",
    "satellite_count",
    "gps_age",
    "fuel_level",
    "sequence_number",
    "status_flags",
    "sensor_samples",
    "raw_data",
)


class GPSEvent(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    # ========================================
    # Identity
    # ========================================
    account_id: str = Field("", description="Account of the resolved device")
    device_id: str = Field("", description="Device of the resolved device")
    mobile_id: str = Field("", description="Identifier reported on the wire, before resolution")
    fixtime: int = Field(0, description="UTC epoch seconds of the fix")
    status_code: int = Field(STATUS_LOCATION, ge=0, le=0xFFFF)

    # ========================================
    # Sparse telemetry
    # ========================================
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    speed_kph: Optional[float] = None
    heading: Optional[float] = Field(None, description="Degrees, 0-360")
    altitude: Optional[float] = Field(None, description="Meters")
    odometer_km: Optional[float] = None
    input_mask: Optional[int] = Field(None, description="Digital input bitfield")
    battery_level: Optional[float] = None
    satellite_count: Optional[int] = None
    gps_age: Optional[int] = Field(None, description="Seconds since the fix was acquired")
    fuel_level: Optional[float] = None
    sequence_number: Optional[int] = None
    status_flags: Optional[List[int]] = Field(None, description="Four 8-bit status groups")
    sensor_samples: Optional[List[int]] = None
    raw_data: Optional[str] = None

    _sealed: bool = PrivateAttr(default=False)

    def __setattr__(self, name: str, value: Any):
        private = getattr(self, "__pydantic_private__", None)
        if private and private.get("_sealed"):
            raise EventSealedError(f"GPSEvent is sealed, cannot set '{name}'")
        super().__setattr__(name, value)

    # ========================================
    # Sparse field helpers
    # ========================================

    def has(self, name: str) -> bool:
        """True iff `name` was explicitly set on this event."""
        if name not in type(self).model_fields:
            raise AttributeError(f"GPSEvent has no field '{name}'")
        return name in self.model_fields_set

    def fields(self) -> Dict[str, Any]:
        """Explicitly set optional fields, by name."""
        return {name: getattr(self, name) for name in OPTIONAL_FIELDS if name in self.model_fields_set}

    def is_valid_geopoint(self) -> bool:
        return self.has("latitude") and self.has("longitude") and is_valid_geopoint(self.latitude, self.longitude)

    # ========================================
    # Sealing
    # ========================================

    def seal(self) -> "GPSEvent":
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def copy_for_status(self, status_code: int) -> "GPSEvent":
        """Unsealed copy of this fix carrying a different status code."""
        data = self.model_dump(include={"account_id", "device_id", "mobile_id", "fixtime"} | set(self.fields()))
        data["status_code"] = status_code
        return GPSEvent(**data)

    def log_fields(self) -> Dict[str, Any]:
        """Named values for structured logging."""
        out: Dict[str, Any] = {
            "mobile_id": self.mobile_id,
            "account_id": self.account_id,
            "device_id": self.device_id,
            "fixtime": self.fixtime,
            "status": status_name(self.status_code),
        }
        out.update({k: v for k, v in self.fields().items() if k != "raw_data"})
        return out
