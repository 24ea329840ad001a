"""Shared pytest configuration and fixtures for the devcom test suite."""

import os

# Must be set before devcom.Core.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from devcom.DB.base import Base
from devcom.Models.account import Account
from devcom.Models.device import Device
from devcom.Schemas.protocol_config import get_preset


# =============================================================================
# Constants
# =============================================================================

# 1994-03-23 12:35:19 UTC
E2E_FIXTIME = 764426119

# one hour after the E2E fix
FIXED_NOW = E2E_FIXTIME + 3600

E2E_LINE = b"imei:123456789012345,GPRMC,123519,A,4807.038,N,01131.000,E,022.4,084.4,230394,,"


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def seeded(db):
    """
    Registry used across tests:

        acme/truck01   UniqueID 123456789012345 (no allow-list)
        acme/van02     UniqueID imei_555, allowed from 10.0.0.0/24 port 5000-5010
        acme/gtx01     TransportID unit7
        acme/old01     UniqueID 999, inactive
        gone/ghost     UniqueID 777, account inactive
    """
    db.add_all([
        Account(AccountID="acme", IsActive=True),
        Account(AccountID="gone", IsActive=False),
    ])
    db.add_all([
        Device(AccountID="acme", DeviceID="truck01", UniqueID="123456789012345"),
        Device(
            AccountID="acme",
            DeviceID="van02",
            UniqueID="imei_555",
            IpAddressValid="10.0.0.0/24",
            AllowedPorts="5000-5010",
        ),
        Device(AccountID="acme", DeviceID="gtx01", TransportID="unit7"),
        Device(AccountID="acme", DeviceID="old01", UniqueID="999", IsActive=False),
        Device(AccountID="gone", DeviceID="ghost", UniqueID="777"),
    ])
    db.commit()
    return db


# =============================================================================
# Clock / config
# =============================================================================

@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def sipgear_config():
    return get_preset("sipgear")
