"""Background monitor for Zendesk ticket-search endpoints.

Heavy wiring lives in :mod:`ticket_monitor.monitor`; import from there:
    from ticket_monitor.monitor import TicketMonitor, create_default_monitor
"""

__version__ = "3.3.0"

from ticket_monitor.models import Endpoint, Settings, SnoozeState, SnoozeStatus

__all__ = [
    "Endpoint",
    "Settings",
    "SnoozeState",
    "SnoozeStatus",
    "__version__",
]
