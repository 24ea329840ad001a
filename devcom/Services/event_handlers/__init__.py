# devcom/Services/event_handlers/__init__.py
"""
Event Handlers Module
=====================
Per-fix processing between the resolver and storage.

Components:
- odometer_handler: odometer policy (estimate_if_missing / always_estimate)
- input_handler: simulated digital input ON/OFF events
- persistence_handler: EventSink, commits events and device bookkeeping

Handlers receive explicit inputs; only the EventSink writes to the database.
"""

from .odometer_handler import apply_odometer_policy
from .input_handler import simulate_input_events
from .persistence_handler import EventSink

__all__ = [
    'apply_odometer_policy',
    'simulate_input_events',
    'EventSink',
]
