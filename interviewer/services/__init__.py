# noqa
from interviewer.services.session_store import SessionStore
from interviewer.services.protocol_reconciler import ProtocolReconciler, InstallState
from interviewer.services.export_service import ExportService

__all__ = ["SessionStore", "ProtocolReconciler", "InstallState", "ExportService"]
