# devcom/Services/event_handlers/input_handler.py
"""
Simulated digital input events.

When a fix reports an input mask, every bit selected by `simulate_mask` that
differs from the device's last input state produces an extra event at the
same fixtime: INPUT_ON_nn when the bit is now set, INPUT_OFF_nn otherwise.
The device's last input state itself is updated by the EventSink once the
fix is committed.
"""

from typing import List

from devcom.Core.status_codes import MAX_SIMULATED_INPUTS, input_status_code
from devcom.Models.device import Device
from devcom.Schemas.gps_event import GPSEvent


def simulate_input_events(device: Device, event: GPSEvent, simulate_mask: int) -> List[GPSEvent]:
    if not simulate_mask or not event.has("input_mask") or event.input_mask is None or event.input_mask < 0:
        return []

    gpio = event.input_mask
    changed = ((device.LastInputState or 0) ^ gpio) & simulate_mask

    events = []
    for bit in range(MAX_SIMULATED_INPUTS):
        m = 1 << bit
        if changed & m:
            events.append(event.copy_for_status(input_status_code(bit, bool(gpio & m))))
    return events
