"""
devcom/DB/base_class.py
=======================
Declarative base shared by every SQLAlchemy model.

Table names default to the lowercase class name; models may override
__tablename__ (see Models/device.py).
"""

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models in the application."""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()
