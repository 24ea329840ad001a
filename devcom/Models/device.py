"""
devcom/Models/device.py
=======================
Device registry model.

A Device is addressed two ways by the ingestion pipeline:
    - UniqueID: the hardware identifier (IMEI, modem id) optionally carrying a
      server-specific prefix, e.g. "imei_123456789012345"
    - AccountID/DeviceID (or AccountID/TransportID): self-reported identity

Besides identity the row carries the source allow-lists, the rolling
connection metadata staged by the DeviceResolver, and the rolling fix state
(last valid position, last odometer, last input state, last battery level)
maintained by the EventSink after each successful commit.
"""

import ipaddress
from typing import Optional, Tuple

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

from devcom.Core.geo import (
    KILOMETERS_PER_MILE,
    calculate_haversine_km,
    is_valid_geopoint,
)
from devcom.DB.base_class import Base

MAX_ODOMETER_KM = 1000000.0 * KILOMETERS_PER_MILE
"""Odometer values at or above one million miles are treated as corrupt."""


class Device(Base):
    """
    SQLAlchemy model representing a registered tracking device.

    Schema:
    - AccountID, DeviceID (composite PK)
    - UniqueID: unique hardware identifier used by protocols that only report an IMEI
    - TransportID: alternate id used by account/device protocols
    - IsActive: whether the device may report
    - IpAddressValid / AllowedPorts: source allow-lists (blank = any)
    - IpAddressCurrent, RemotePortCurrent, DeviceCode, LastTotalConnectTime:
      connection metadata
    - LastValidLatitude/Longitude, LastGPSTimestamp, LastOdometerKM,
      LastInputState, LastBatteryLevel: rolling fix state
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Fixed table name for the device registry"""
        return "devices"

    # ============================================================
    # Identity
    # ============================================================

    AccountID = Column(
        String(32),
        ForeignKey("accounts.AccountID", ondelete="CASCADE"),
        primary_key=True,
    )

    DeviceID = Column(
        String(32),
        primary_key=True,
        doc="Device identifier inside the account (e.g. 'truck01')"
    )

    UniqueID = Column(
        String(64),
        unique=True,
        nullable=True,
        index=True,
        doc="Globally unique hardware identifier, including any server prefix"
    )

    TransportID = Column(
        String(32),
        nullable=True,
        doc="Alternate device id reported by account/device protocols"
    )

    Description = Column(String(128), nullable=True)

    IsActive = Column(Boolean, default=True, nullable=False)

    # ============================================================
    # Source allow-lists
    # ============================================================

    IpAddressValid = Column(
        String(256),
        nullable=True,
        doc="Comma separated addresses or CIDR blocks (blank allows any source)"
    )

    AllowedPorts = Column(
        String(128),
        nullable=True,
        doc="Comma separated ports or ranges like '5000-5010' (blank allows any)"
    )

    # ============================================================
    # Connection metadata
    # ============================================================

    IpAddressCurrent = Column(String(45), nullable=True)
    RemotePortCurrent = Column(Integer, nullable=True)
    DeviceCode = Column(String(32), nullable=True, doc="Server/protocol that last handled the device")
    LastTotalConnectTime = Column(BigInteger, nullable=True, doc="UTC epoch seconds")

    # ============================================================
    # Rolling fix state
    # ============================================================

    LastValidLatitude = Column(Float, nullable=True)
    LastValidLongitude = Column(Float, nullable=True)
    LastGPSTimestamp = Column(BigInteger, nullable=True)
    LastOdometerKM = Column(Float, nullable=True)
    LastInputState = Column(Integer, nullable=True)
    LastBatteryLevel = Column(Float, nullable=True)

    CreatedAt = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # ============================================================
    # Source validation
    # ============================================================

    def is_valid_ip_address(self, ip: Optional[str]) -> bool:
        """
        True when `ip` is inside the allow-list.

        A blank allow-list accepts everything, and so does an unknown source
        address (None). Entries that are not valid addresses/networks are
        skipped.
        """
        allowed = (self.IpAddressValid or "").strip()
        if not allowed or not ip:
            return True

        try:
            address = ipaddress.ip_address(ip.strip())
        except ValueError:
            return False

        for entry in allowed.split(","):
            entry = entry.strip()
            if not entry:
                continue
            try:
                if address in ipaddress.ip_network(entry, strict=False):
                    return True
            except ValueError:
                print(f"[DEVICE] {self.AccountID}/{self.DeviceID}: invalid allow-list entry '{entry}'")
        return False

    def is_valid_port(self, port: Optional[int]) -> bool:
        allowed = (self.AllowedPorts or "").strip()
        if not allowed or port is None:
            return True

        for entry in allowed.split(","):
            entry = entry.strip()
            try:
                if "-" in entry:
                    low, high = entry.split("-", 1)
                    if int(low) <= port <= int(high):
                        return True
                elif entry and int(entry) == port:
                    return True
            except ValueError:
                print(f"[DEVICE] {self.AccountID}/{self.DeviceID}: invalid port entry '{entry}'")
        return False

    # ============================================================
    # Connection metadata setters (staged by the resolver)
    # ============================================================

    def set_current_ip(self, ip: Optional[str]):
        if ip:
            self.IpAddressCurrent = ip

    def set_current_port(self, port: Optional[int]):
        if port is not None and port > 0:
            self.RemotePortCurrent = port

    def set_device_code(self, code: Optional[str]):
        if code:
            self.DeviceCode = code

    def set_last_connect_time(self, epoch: int):
        self.LastTotalConnectTime = epoch

    # ============================================================
    # Odometer
    # ============================================================

    def last_odometer_km(self) -> float:
        return self.LastOdometerKM or 0.0

    def adjust_odometer_km(self, value: float) -> float:
        """
        Clamp a reported odometer monotonically.

        Values below the last known odometer, or at/above MAX_ODOMETER_KM,
        are replaced by the last known odometer.
        """
        last = self.last_odometer_km()
        if value < last or value >= MAX_ODOMETER_KM:
            return last
        return value

    def last_valid_location(self) -> Optional[Tuple[float, float]]:
        if is_valid_geopoint(self.LastValidLatitude, self.LastValidLongitude):
            return self.LastValidLatitude, self.LastValidLongitude
        return None

    def estimate_next_odometer_km(self, latitude: Optional[float], longitude: Optional[float]) -> float:
        """
        Last odometer plus the great-circle distance from the last valid
        location to (latitude, longitude).

        Without a valid point, or without a previous valid location, the last
        odometer is returned unchanged.
        """
        last = self.last_odometer_km()
        if not is_valid_geopoint(latitude, longitude):
            return last
        previous = self.last_valid_location()
        if previous is None:
            return last
        return last + calculate_haversine_km(previous[0], previous[1], latitude, longitude)

    def __repr__(self) -> str:
        return (
            f"<Device(AccountID='{self.AccountID}', DeviceID='{self.DeviceID}', "
            f"UniqueID='{self.UniqueID}', IsActive={self.IsActive})>"
        )
