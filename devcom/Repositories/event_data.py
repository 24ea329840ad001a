# devcom/Repositories/event_data.py

from typing import List, Optional

from sqlalchemy.orm import Session

from devcom.Models.event_data import EventData
from devcom.Schemas.gps_event import GPSEvent

# GPSEvent field -> EventData column
COLUMN_MAP = {
    "latitude": "Latitude",
    "longitude": "Longitude",
    "speed_kph": "SpeedKPH",
    "heading": "Heading",
    "altitude": "Altitude",
    "odometer_km": "OdometerKM",
    "input_mask": "InputMask",
    "battery_level": "BatteryLevel",
    "satellite_count": "SatelliteCount",
    "gps_age": "GpsAge",
    "fuel_level": "FuelLevel",
    "sequence_number": "SequenceNumber",
    "status_flags": "StatusFlags",
    "sensor_samples": "SensorSamples",
    "raw_data": "RawData",
}


def create_event_data(db: Session, event: GPSEvent) -> EventData:
    """
    Stage one EventData row for `event` and flush it.

    Only explicitly set fields are copied, every other column stays NULL.
    The caller commits (or rolls back).
    """
    row = EventData(
        AccountID=event.account_id,
        DeviceID=event.device_id,
        Timestamp=event.fixtime,
        StatusCode=event.status_code,
        MobileID=event.mobile_id or None,
    )
    for name, value in event.fields().items():
        setattr(row, COLUMN_MAP[name], value)

    db.add(row)
    db.flush()
    return row


def get_events_by_device(
    db: Session,
    account_id: str,
    device_id: str,
    limit: Optional[int] = None,
) -> List[EventData]:
    """
    Get the stored events of one device, oldest fix first.

    Args:
        db: SQLAlchemy session
        account_id: Owning account
        device_id: Device identifier inside the account
        limit: Optional maximum number of rows

    Returns:
        List of EventData ordered by Timestamp, then insertion order
    """
    query = (
        db.query(EventData)
        .filter(EventData.AccountID == account_id, EventData.DeviceID == device_id)
        .order_by(EventData.Timestamp.asc(), EventData.id.asc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def count_events(db: Session) -> int:
    """Total number of stored events."""
    return db.query(EventData).count()
