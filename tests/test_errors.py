"""Tests for exception hierarchy."""

from ticket_monitor.exceptions import (
    AudioError,
    BadgeError,
    CookieError,
    EndpointCheckError,
    EndpointHTTPError,
    EndpointNetworkError,
    EndpointTimeoutError,
    HostFacilityError,
    ImportFileError,
    MalformedResponseError,
    NotificationError,
    SchedulerError,
    StorageError,
    StorageUnavailable,
    TabOpenError,
    TicketMonitorError,
    ValidationError,
)


def test_all_inherit_from_base():
    for exc_class in [
        StorageError, StorageUnavailable,
        HostFacilityError, SchedulerError, NotificationError, BadgeError,
        CookieError, AudioError, TabOpenError,
        EndpointCheckError, EndpointHTTPError, EndpointNetworkError,
        EndpointTimeoutError, MalformedResponseError,
        ValidationError, ImportFileError,
    ]:
        assert issubclass(exc_class, TicketMonitorError)


def test_host_hierarchy():
    for exc_class in [SchedulerError, NotificationError, BadgeError, CookieError, AudioError, TabOpenError]:
        assert issubclass(exc_class, HostFacilityError)


def test_endpoint_hierarchy():
    for exc_class in [EndpointHTTPError, EndpointNetworkError, EndpointTimeoutError, MalformedResponseError]:
        assert issubclass(exc_class, EndpointCheckError)


def test_http_error_retryable():
    assert EndpointHTTPError("boom", 503).retryable
    assert not EndpointHTTPError("nope", 404).retryable
    assert EndpointHTTPError("nope", 401).status_code == 401


def test_validation_error_message():
    e = ValidationError(["a", "b"])
    assert str(e) == "a; b"
    assert e.errors == ["a", "b"]
