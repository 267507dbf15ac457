"""
Protocol installation service.

Entry point for the import pipeline: loads an extracted protocol, runs
it through the reconciler, and tells the user when installation failed.
Cancellations are not failures and are not reported.
"""

from pathlib import Path
from typing import Union

import structlog

from interviewer.core.exceptions import InstallationCancelledError
from interviewer.core.protocol_loader import load_protocol
from interviewer.domain.models.protocol import Protocol
from interviewer.services.dialogs import error_dialog
from interviewer.services.protocol_reconciler import InstallOutcome, ProtocolReconciler
from interviewer.services.protocols import IDialogService

log = structlog.get_logger(__name__)


class ProtocolInstallationService:
    def __init__(self, reconciler: ProtocolReconciler, dialogs: IDialogService):
        self.reconciler = reconciler
        self.dialogs = dialogs

    async def install(self, source: Union[Protocol, Path]) -> InstallOutcome:
        """
        Install a protocol from a Protocol or its extracted asset directory.

        Raises:
            InstallationCancelledError: The user cancelled (no error dialog)
            InterviewerError: Any failure, after an Error dialog was shown
        """
        try:
            protocol = source if isinstance(source, Protocol) else load_protocol(Path(source))
            return await self.reconciler.install_protocol(protocol)
        except InstallationCancelledError:
            raise
        except Exception as e:
            log.error("protocol_install_failed", error=str(e), error_type=type(e).__name__)
            await self.dialogs.open_dialog(error_dialog(e))
            raise
