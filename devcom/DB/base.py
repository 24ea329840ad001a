# devcom/DB/base.py

"""
Model registry.

Importing this module registers every table on Base.metadata, which is what
init_db() and the test fixtures create.
"""

from devcom.DB.base_class import Base

# ============================================================
# MODEL IMPORTS - DO NOT REMOVE
# ============================================================
from devcom.Models.account import Account  # noqa: F401
from devcom.Models.device import Device  # noqa: F401
from devcom.Models.event_data import EventData  # noqa: F401
