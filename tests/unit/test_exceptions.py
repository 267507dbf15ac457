"""Tests for exception hierarchy."""

import pytest


def test_exception_hierarchy():
    """All exceptions inherit from InterviewerError."""
    from interviewer.core.exceptions import (
        ConfigurationError,
        DuplicateProtocolError,
        ExportError,
        InstallationCancelledError,
        InterviewerError,
        ProtocolConflictError,
        ProtocolError,
        ProtocolNotFoundError,
        ProtocolSchemaError,
        SessionError,
        SessionNotFoundError,
        StorageError,
        StoreDisposedError,
    )

    assert issubclass(ConfigurationError, InterviewerError)
    assert issubclass(SessionError, InterviewerError)
    assert issubclass(SessionNotFoundError, SessionError)
    assert issubclass(StoreDisposedError, InterviewerError)
    assert issubclass(ProtocolError, InterviewerError)
    for error in (
        ProtocolNotFoundError,
        ProtocolSchemaError,
        ProtocolConflictError,
        DuplicateProtocolError,
    ):
        assert issubclass(error, ProtocolError)
    assert issubclass(InstallationCancelledError, InterviewerError)
    assert not issubclass(InstallationCancelledError, ProtocolError)
    assert issubclass(StorageError, InterviewerError)
    assert issubclass(ExportError, InterviewerError)


def test_exceptions_can_be_raised():
    """Exceptions can be raised and caught."""
    from interviewer.core.exceptions import InterviewerError, SessionNotFoundError

    with pytest.raises(InterviewerError) as exc_info:
        raise SessionNotFoundError("Session s1-a not found")

    assert exc_info.value.message == "Session s1-a not found"
    assert str(exc_info.value) == "Session s1-a not found"
