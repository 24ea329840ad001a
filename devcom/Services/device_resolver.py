# devcom/Services/device_resolver.py
"""
Device Resolver
===============
Maps the identity a decoder reported to a registered Device and checks the
session's source address against the device's allow-lists.

Two lookups:
- resolve_by_unique_id(): tries each configured prefix + identifier against
  Device.UniqueID ("imei_" + "123456789012345", then "123456789012345", ...)
- resolve_by_account_device(): account + transport id (TransportID, falling
  back to DeviceID) for protocols that self-report structured identity

Inactive accounts and inactive devices resolve to None, exactly like unknown
identifiers.

authorize() raises AuthenticationError on an allow-list mismatch. On success
it only STAGES the connection metadata (current IP/port, device code, last
connect time) on the ORM object; the Event Sink flushes it.

Results are cached per identifier for the lifetime of the resolver, which is
one ClientSession.
"""

import time
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from devcom.Core import log_ws
from devcom.Core.exceptions import AuthenticationError
from devcom.Models.device import Device
from devcom.Repositories.account import get_account_by_id
from devcom.Repositories.device import get_device_by_transport_id, get_device_by_unique_id
from devcom.Schemas.gps_event import GPSEvent


class DeviceResolver:

    def __init__(
        self,
        db: Session,
        unique_prefixes: Optional[List[str]] = None,
        device_code: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.db = db
        self.unique_prefixes = list(unique_prefixes) if unique_prefixes else [""]
        self.device_code = device_code
        self.clock = clock
        self._cache: Dict[Tuple[str, ...], Optional[Device]] = {}

    # ==========================================================
    # LOOKUPS
    # ==========================================================

    def resolve_by_unique_id(self, identifier: str) -> Optional[Device]:
        key = ("uid", identifier)
        if key in self._cache:
            return self._cache[key]

        device = None
        for prefix in self.unique_prefixes:
            unique_id = f"{prefix}{identifier}"
            candidate = get_device_by_unique_id(self.db, unique_id)
            if candidate is not None:
                device = candidate if self._is_enabled(candidate, unique_id) else None
                break
        else:
            print(f"[RESOLVER] UniqueID not found: {identifier} (prefixes: {self.unique_prefixes})")

        self._cache[key] = device
        return device

    def resolve_by_account_device(self, account_id: str, transport_id: str) -> Optional[Device]:
        key = ("acct", account_id, transport_id)
        if key in self._cache:
            return self._cache[key]

        device = get_device_by_transport_id(self.db, account_id, transport_id)
        if device is None:
            print(f"[RESOLVER] Device not found: {account_id}/{transport_id}")
        elif not self._is_enabled(device, f"{account_id}/{transport_id}"):
            device = None

        self._cache[key] = device
        return device

    def resolve(self, event: GPSEvent) -> Optional[Device]:
        """Lookup by account/device when the event carries one, else by unique id."""
        if event.account_id:
            return self.resolve_by_account_device(event.account_id, event.device_id)
        if event.mobile_id:
            return self.resolve_by_unique_id(event.mobile_id)
        return None

    def _is_enabled(self, device: Device, label: str) -> bool:
        if not device.IsActive:
            log_ws.log_from_thread(
                f"[RESOLVER] SECURITY: Rejected data from inactive device '{label}'",
                "error",
                account_id=device.AccountID,
                device_id=device.DeviceID,
            )
            return False

        account = get_account_by_id(self.db, device.AccountID)
        if account is None or not account.IsActive:
            log_ws.log_from_thread(
                f"[RESOLVER] SECURITY: Rejected data for inactive account '{device.AccountID}'",
                "error",
                account_id=device.AccountID,
                device_id=device.DeviceID,
            )
            return False

        return True

    # ==========================================================
    # AUTHORIZATION
    # ==========================================================

    def authorize(self, device: Device, remote_ip: Optional[str], remote_port: Optional[int]) -> Device:
        """
        Check the allow-lists and stage the connection metadata.

        Raises:
            AuthenticationError: source IP or port is not allowed
        """
        label = f"{device.AccountID}/{device.DeviceID}"

        # PASO 1: source address
        if not device.is_valid_ip_address(remote_ip):
            log_ws.log_from_thread(
                f"[RESOLVER] SECURITY: Invalid IP address for device '{label}'",
                "error",
                remote_ip=remote_ip,
                allowed=device.IpAddressValid,
            )
            raise AuthenticationError(f"Invalid IP address {remote_ip} for device {label}", identifier=label)

        # PASO 2: source port
        if not device.is_valid_port(remote_port):
            log_ws.log_from_thread(
                f"[RESOLVER] SECURITY: Invalid port for device '{label}'",
                "error",
                remote_port=remote_port,
                allowed=device.AllowedPorts,
            )
            raise AuthenticationError(f"Invalid port {remote_port} for device {label}", identifier=label)

        # PASO 3: stage connection metadata (flushed by the sink)
        device.set_current_ip(remote_ip)
        device.set_current_port(remote_port)
        device.set_device_code(self.device_code)
        device.set_last_connect_time(int(self.clock()))
        return device

    def resolve_and_authorize(
        self,
        event: GPSEvent,
        remote_ip: Optional[str],
        remote_port: Optional[int],
    ) -> Device:
        """
        resolve() + authorize(); also fills the event's account/device ids.

        Raises:
            AuthenticationError: unknown/disabled identifier or disallowed source
        """
        device = self.resolve(event)
        if device is None:
            identifier = event.mobile_id or f"{event.account_id}/{event.device_id}"
            log_ws.log_from_thread(
                f"[RESOLVER] SECURITY: Rejected data from unregistered device '{identifier}'",
                "error",
                remote_ip=remote_ip,
                remote_port=remote_port,
            )
            raise AuthenticationError(f"Unknown device '{identifier}'", identifier=identifier)

        self.authorize(device, remote_ip, remote_port)
        event.account_id = device.AccountID
        event.device_id = device.DeviceID
        return device
