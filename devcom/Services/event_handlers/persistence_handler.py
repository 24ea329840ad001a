# devcom/Services/event_handlers/persistence_handler.py
"""
Event Sink
==========
Commits finished fixes and device bookkeeping.

insert_event() order of operations:
1. Seal the event (no further mutation)
2. Stage the EventData row (unset fields stay NULL)
3. Update the device's rolling state from the fix
4. Commit (row + rolling state + any staged connection metadata)
5. Log the result

Error philosophy:
- Exactly one commit attempt per fix; failures are rolled back and surfaced
  as StorageError, the fix is NOT re-queued
- Duplicates (same account/device/timestamp/status) are expected when a
  device retransmits: reported as StorageError(duplicate=True) and logged
  quietly on the console only
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from devcom.Core import log_ws
from devcom.Core.exceptions import StorageError
from devcom.Models.device import Device
from devcom.Models.event_data import EventData
from devcom.Repositories.event_data import create_event_data
from devcom.Schemas.gps_event import GPSEvent


class EventSink:

    def __init__(self, db: Session):
        self.db = db

    def insert_event(self, device: Device, event: GPSEvent) -> EventData:
        """
        Commit one fix for a resolved device.

        Returns:
            EventData: the committed row

        Raises:
            StorageError: the device is missing or the commit failed
        """
        if device is None:
            raise StorageError("insert_event requires a resolved device")

        label = f"{device.AccountID}/{device.DeviceID}"
        if not event.sealed:
            if not event.account_id:
                event.account_id = device.AccountID
                event.device_id = device.DeviceID
            event.seal()

        if (event.account_id, event.device_id) != (device.AccountID, device.DeviceID):
            raise StorageError(f"Event for {event.account_id}/{event.device_id} does not belong to {label}")

        try:
            # ========================================
            # PASO 1: STAGE ROW
            # ========================================
            row = create_event_data(self.db, event)

            # ========================================
            # PASO 2: ROLLING DEVICE STATE
            # ========================================
            self._update_rolling_state(device, event)

            # ========================================
            # PASO 3: COMMIT
            # ========================================
            self.db.commit()

        except IntegrityError as ie:
            self.db.rollback()
            error_str = str(ie).lower()
            if "unique" in error_str or "duplicate key" in error_str:
                print(f"[PERSISTENCE] Device '{label}': Duplicate event ({event.fixtime}, 0x{event.status_code:04X}) - skipped")
                raise StorageError(f"Duplicate event for {label}", duplicate=True) from ie

            log_ws.log_from_thread(f"[PERSISTENCE] DB integrity error for device '{label}': {ie}", "error")
            raise StorageError(f"Integrity error for {label}: {ie}") from ie

        except SQLAlchemyError as e:
            self.db.rollback()
            log_ws.log_from_thread(f"[PERSISTENCE] Unexpected DB error for device '{label}': {e}", "error")
            raise StorageError(f"Commit failed for {label}: {e}") from e

        except Exception as e:
            # driver conversion errors (integer overflow) are not wrapped by SQLAlchemy
            self.db.rollback()
            log_ws.log_from_thread(f"[PERSISTENCE] Unexpected error storing event for device '{label}': {e}", "error")
            raise StorageError(f"Unexpected error for {label}: {e}") from e

        log_ws.log_from_thread(
            f"[PERSISTENCE] Device '{label}': event {row.id} inserted",
            "log",
            **event.log_fields(),
        )
        return row

    def commit_device_changes(self, device: Device) -> None:
        """Flush staged connection metadata / rolling state for `device`."""
        label = f"{device.AccountID}/{device.DeviceID}"
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log_ws.log_from_thread(f"[PERSISTENCE] Device '{label}' update failed: {e}", "error")
            raise StorageError(f"Device update failed for {label}: {e}") from e

    @staticmethod
    def _update_rolling_state(device: Device, event: GPSEvent) -> None:
        if event.is_valid_geopoint():
            device.LastValidLatitude = event.latitude
            device.LastValidLongitude = event.longitude
            device.LastGPSTimestamp = event.fixtime

        if event.has("odometer_km") and event.odometer_km is not None and event.odometer_km > 0.0:
            device.LastOdometerKM = event.odometer_km

        if event.has("battery_level") and event.battery_level is not None and event.battery_level > 0.0:
            device.LastBatteryLevel = event.battery_level

        if event.has("input_mask") and event.input_mask is not None and event.input_mask >= 0:
            device.LastInputState = event.input_mask & 0xFFFF
