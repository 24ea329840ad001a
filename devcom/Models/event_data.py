"""
devcom/Models/event_data.py

EventData: one committed fix.

Optional telemetry columns are nullable and stay NULL when the decoder did
not report the value. (AccountID, DeviceID, Timestamp, StatusCode) is unique,
so a retransmitted fix is rejected as a duplicate.
"""

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

from devcom.DB.base_class import Base


class EventData(Base):

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "event_data"

    id = Column(Integer, primary_key=True, autoincrement=True)

    AccountID = Column(String(32), nullable=False)
    DeviceID = Column(String(32), nullable=False)
    Timestamp = Column(BigInteger, nullable=False, doc="Fix time, UTC epoch seconds")
    StatusCode = Column(Integer, nullable=False)
    MobileID = Column(String(64), nullable=True, doc="Identifier as reported on the wire")

    # ========================================
    # Sparse telemetry (NULL = not reported)
    # ========================================
    Latitude = Column(Float, nullable=True)
    Longitude = Column(Float, nullable=True)
    SpeedKPH = Column(Float, nullable=True)
    Heading = Column(Float, nullable=True)
    Altitude = Column(Float, nullable=True)
    OdometerKM = Column(Float, nullable=True)
    InputMask = Column(Integer, nullable=True)
    BatteryLevel = Column(Float, nullable=True)
    SatelliteCount = Column(Integer, nullable=True)
    GpsAge = Column(Integer, nullable=True)
    FuelLevel = Column(Float, nullable=True)
    SequenceNumber = Column(Integer, nullable=True)
    StatusFlags = Column(JSON, nullable=True)
    SensorSamples = Column(JSON, nullable=True)
    RawData = Column(Text, nullable=True)

    CreatedAt = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index(
            "unique_device_timestamp_status",
            "AccountID", "DeviceID", "Timestamp", "StatusCode",
            unique=True,
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<EventData(id={self.id}, AccountID='{self.AccountID}', DeviceID='{self.DeviceID}', "
            f"Timestamp={self.Timestamp}, StatusCode=0x{self.StatusCode:04X})>"
        )
