"""Unified exception hierarchy for ticket-monitor."""


class TicketMonitorError(Exception):
    """Base exception for all ticket-monitor errors."""


# Storage
class StorageError(TicketMonitorError):
    """Base exception for persistence tier operations."""


class StorageUnavailable(StorageError):
    """A persistence tier could not be read or written."""


# Host facilities
class HostFacilityError(TicketMonitorError):
    """Base exception for platform facility failures."""


class SchedulerError(HostFacilityError):
    """Failed to create or cancel a scheduled callback."""


class NotificationError(HostFacilityError):
    """Failed to show or dismiss an OS notification."""


class BadgeError(HostFacilityError):
    """Failed to render the badge."""


class CookieError(HostFacilityError):
    """Failed to read ambient cookies."""


class AudioError(HostFacilityError):
    """Failed to play a sound."""


class TabOpenError(HostFacilityError):
    """Failed to open a browser tab."""


# Endpoint checks
class EndpointCheckError(TicketMonitorError):
    """Base exception for a single endpoint check."""


class EndpointHTTPError(EndpointCheckError):
    """Endpoint answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500


class EndpointNetworkError(EndpointCheckError):
    """Request failed before an HTTP response arrived."""


class EndpointTimeoutError(EndpointCheckError):
    """Endpoint did not answer within the request timeout."""


class MalformedResponseError(EndpointCheckError):
    """Endpoint answered with a body that is not a JSON object."""


# Endpoint management
class ValidationError(TicketMonitorError):
    """Endpoint failed validation."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class ImportFileError(TicketMonitorError):
    """Import file could not be parsed."""
