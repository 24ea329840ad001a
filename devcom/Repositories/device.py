# devcom/Repositories/device.py

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from devcom.Models.device import Device


# ==========================================================
# 📌 LOOKUPS
# ==========================================================

def get_device_by_unique_id(db: Session, unique_id: str) -> Optional[Device]:
    """
    Get a device by the identifier it reports on the wire.

    Args:
        db: SQLAlchemy session
        unique_id: UniqueID including its protocol prefix (e.g., "imei_555")

    Returns:
        Device object or None if not found

    Example:
        device = get_device_by_unique_id(db, "123456789012345")
    """
    return db.query(Device).filter(Device.UniqueID == unique_id).first()


def get_device_by_account_device(db: Session, account_id: str, device_id: str) -> Optional[Device]:
    """
    Get a device by its (AccountID, DeviceID) primary key.

    Args:
        db: SQLAlchemy session
        account_id: Owning account
        device_id: Device identifier inside the account

    Returns:
        Device object or None if not found
    """
    return (
        db.query(Device)
        .filter(Device.AccountID == account_id, Device.DeviceID == device_id)
        .first()
    )


def get_device_by_transport_id(db: Session, account_id: str, transport_id: str) -> Optional[Device]:
    """Match TransportID first, then DeviceID, inside one account."""
    candidates = (
        db.query(Device)
        .filter(
            Device.AccountID == account_id,
            or_(Device.TransportID == transport_id, Device.DeviceID == transport_id),
        )
        .all()
    )
    for device in candidates:
        if device.TransportID == transport_id:
            return device
    return candidates[0] if candidates else None


def get_devices_by_account(db: Session, account_id: str, only_active: bool = False) -> List[Device]:
    """
    List the devices of an account.

    Args:
        db: SQLAlchemy session
        account_id: Owning account
        only_active: Skip devices with IsActive = False

    Returns:
        List of Device objects (possibly empty)
    """
    query = db.query(Device).filter(Device.AccountID == account_id)
    if only_active:
        query = query.filter(Device.IsActive == True)  # noqa: E712
    return query.all()


# ==========================================================
# 📌 CREATION
# ==========================================================

def create_device(
    db: Session,
    account_id: str,
    device_id: str,
    unique_id: Optional[str] = None,
    **columns,
) -> Device:
    """
    Create and commit a new device.

    Args:
        db: SQLAlchemy session
        account_id: Owning account (must exist)
        device_id: Device identifier inside the account
        unique_id: Wire identifier, unique across all accounts
        **columns: Any other Device column (TransportID, IpAddressValid, ...)

    Returns:
        Device: the refreshed row

    Example:
        create_device(db, "acme", "van02", unique_id="imei_555", IpAddressValid="10.0.0.0/24")
    """
    new_device = Device(AccountID=account_id, DeviceID=device_id, UniqueID=unique_id, **columns)
    db.add(new_device)
    db.commit()
    db.refresh(new_device)
    return new_device
