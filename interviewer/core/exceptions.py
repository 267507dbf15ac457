"""
Custom exception hierarchy for the interviewer store.

All application exceptions inherit from InterviewerError.

Integrity violations on the network (dangling edges, updates to nodes
that no longer exist, actions for removed sessions) are not errors: the
reducers resolve them as no-ops.
"""


class InterviewerError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(InterviewerError):
    """Invalid or missing configuration."""

    pass


# =============================================================================
# Session Errors
# =============================================================================


class SessionError(InterviewerError):
    """Session-related error."""

    pass


class SessionNotFoundError(SessionError):
    """Session does not exist."""

    pass


class StoreDisposedError(InterviewerError):
    """Action dispatched to a store that has been disposed."""

    pass


# =============================================================================
# Protocol Errors
# =============================================================================


class ProtocolError(InterviewerError):
    """Protocol-related error."""

    pass


class ProtocolNotFoundError(ProtocolError):
    """Protocol is not installed."""

    pass


class ProtocolSchemaError(ProtocolError):
    """Protocol definition is malformed or references an unknown type."""

    pass


class ProtocolConflictError(ProtocolError):
    """Installation collides with sessions that must not be discarded."""

    pass


class DuplicateProtocolError(ProtocolError):
    """More than one installed protocol shares the same name."""

    pass


class InstallationCancelledError(InterviewerError):
    """User declined a confirmation dialog during protocol installation.

    Callers treat this as a clean abort, not as a failure to report.
    """

    pass


# =============================================================================
# Storage / Export Errors
# =============================================================================


class StorageError(InterviewerError):
    """Protocol asset storage operation failed."""

    pass


class ExportError(InterviewerError):
    """Failed to export a session."""

    pass
