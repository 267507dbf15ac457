"""
Dialog specifications and simple dialog services.

The store never renders anything; it describes the dialog it needs and
hands it to an IDialogService.
"""

from typing import List, Literal, Optional

import structlog
from pydantic import BaseModel, ConfigDict

log = structlog.get_logger(__name__)


class DialogSpec(BaseModel):
    """What a dialog shows and what its confirm button says."""

    model_config = ConfigDict(frozen=True)

    type: Literal["Confirm", "Warning", "Error", "Notice"]
    title: str
    message: str
    confirm_label: Optional[str] = None


CONFIRM_DELETE_DIALOG = DialogSpec(
    type="Confirm",
    title="Are you sure?",
    message="Are you sure you want to delete this protocol?",
    confirm_label="Delete protocol",
)

NON_EXPORTED_SESSION_DIALOG = DialogSpec(
    type="Warning",
    title="Interviews using protocol have not been exported",
    message=(
        "There are interview sessions on this device using this protocol that "
        "have not yet been exported. Deleting this protocol will also delete "
        "these sessions."
    ),
    confirm_label="Delete protocol and sessions",
)

HAS_SESSION_DIALOG = DialogSpec(
    type="Confirm",
    title="Interviews using this protocol",
    message=(
        "There are interview sessions on this device that use this protocol. "
        "Deleting this protocol will also delete these sessions."
    ),
    confirm_label="Delete protocol and sessions",
)

REINSTALL_NON_EXPORTED_DIALOG = DialogSpec(
    type="Warning",
    title="Interviews using protocol have not been exported",
    message=(
        "This protocol is already installed. In progress sessions for a previous "
        "version of this protocol have not yet been exported. Export them before "
        "overwriting the protocol, or delete the protocol and these sessions."
    ),
    confirm_label="Delete protocol and sessions",
)

OVERWRITE_PROTOCOL_DIALOG = DialogSpec(
    type="Confirm",
    title="Delete protocol and sessions?",
    message=(
        "This protocol is already installed; all in progress sessions have been "
        "exported. Overwriting the previous installation of this protocol may "
        "limit access to previously created sessions."
    ),
    confirm_label="Overwrite protocol",
)


def error_dialog(error: Exception) -> DialogSpec:
    """Describe an Error dialog for a failure shown to the user."""
    message = getattr(error, "message", None) or str(error) or type(error).__name__
    return DialogSpec(type="Error", title="Something went wrong", message=message)


class PresetDialogService:
    """Answers every dialog with a fixed decision.

    Used where the decision is known up front, e.g. an HTTP request that
    carries an explicit confirm flag. Every dialog asked is kept in
    ``opened`` so callers can report what would have been shown.
    """

    def __init__(self, answer: bool = False):
        self.answer = answer
        self.opened: List[DialogSpec] = []

    async def open_dialog(self, spec: DialogSpec) -> bool:
        self.opened.append(spec)
        log.info("dialog_answered", dialog_type=spec.type, title=spec.title, answer=self.answer)
        return self.answer
