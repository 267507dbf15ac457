"""
Service protocol definitions (interfaces).

Defines the collaborators the store and reconciler consume, using
Python's typing.Protocol for structural subtyping.
"""

from typing import Protocol

from interviewer.services.dialogs import DialogSpec


class IDialogService(Protocol):
    """
    Protocol for dialog services.

    Presents a dialog to the user and waits for their decision.
    """

    async def open_dialog(self, spec: DialogSpec) -> bool:
        """
        Open a dialog and wait for the user.

        Args:
            spec: What to show

        Returns:
            True if the user confirmed, False if they declined

        Raises:
            InstallationCancelledError: If the dialog was dismissed
        """
        ...


class IProtocolStorage(Protocol):
    """
    Protocol for protocol asset storage.

    Each installed protocol owns one directory, addressed by storage key.
    """

    async def exists(self, key: str) -> bool:
        """Whether an asset directory is stored under key."""
        ...

    async def remove_directory(self, key: str) -> None:
        """Remove the asset directory for key (missing directory is not an error)."""
        ...

    async def rename(self, from_key: str, to_key: str) -> None:
        """Move the asset directory for from_key to to_key."""
        ...


class ISessionIdGenerator(Protocol):
    """Produces ``segment-segment`` alphanumeric session identifiers."""

    def __call__(self) -> str:
        ...
