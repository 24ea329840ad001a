"""
devcom/Models/account.py
Account model: owner of a group of devices.

An inactive account disables every device it owns for ingestion.
"""

from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

from devcom.DB.base_class import Base


class Account(Base):

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "accounts"

    AccountID = Column(
        String(32),
        primary_key=True,
        doc="Account identifier (lowercase, e.g. 'acme')"
    )

    Description = Column(String(128), nullable=True)

    IsActive = Column(
        Boolean,
        default=True,
        nullable=False,
        doc="Inactive accounts reject data from all of their devices"
    )

    CreatedAt = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Account(AccountID='{self.AccountID}', IsActive={self.IsActive})>"
