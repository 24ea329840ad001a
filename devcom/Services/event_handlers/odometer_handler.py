# devcom/Services/event_handlers/odometer_handler.py
"""
Odometer policy.

estimate_if_missing (default)
    a reported odometer > 0 is clamped monotonically against the device's
    last odometer; a missing one is estimated from the last valid position
    when estimate_odometer is on and the fix is valid, otherwise the last
    odometer is carried forward.

always_estimate
    the reported value is ignored; valid fixes get last odometer + the
    great-circle distance from the last valid position, invalid fixes carry
    the last odometer forward.
"""

from devcom.Models.device import Device
from devcom.Schemas.gps_event import GPSEvent
from devcom.Schemas.protocol_config import DecoderConfig


def apply_odometer_policy(device: Device, event: GPSEvent, config: DecoderConfig) -> float:
    """Set event.odometer_km according to `config` and return it."""
    valid = event.is_valid_geopoint()

    if config.odometer_policy == "always_estimate":
        odometer = (
            device.estimate_next_odometer_km(event.latitude, event.longitude)
            if valid
            else device.last_odometer_km()
        )
    else:
        reported = event.odometer_km if event.has("odometer_km") and event.odometer_km is not None else 0.0
        if reported <= 0.0:
            odometer = (
                device.estimate_next_odometer_km(event.latitude, event.longitude)
                if config.estimate_odometer and valid
                else device.last_odometer_km()
            )
        else:
            odometer = device.adjust_odometer_km(reported)

    event.odometer_km = odometer
    return odometer
