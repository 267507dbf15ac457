"""Dependency injection for API routes.

The store, protocol storage and install lock live on ``app.state``; they
are created by the application lifespan, or handed to create_app().
"""

from typing import Annotated

from fastapi import Depends, Query, Request

from interviewer.persistence.protocol_storage import FilesystemProtocolStorage
from interviewer.services.dialogs import PresetDialogService
from interviewer.services.export_service import ExportService
from interviewer.services.protocol_reconciler import ProtocolReconciler
from interviewer.services.session_store import SessionStore


def get_store(request: Request) -> SessionStore:
    """The application's single SessionStore."""
    return request.app.state.store


def get_storage(request: Request) -> FilesystemProtocolStorage:
    return request.app.state.storage


StoreDep = Annotated[SessionStore, Depends(get_store)]
StorageDep = Annotated[FilesystemProtocolStorage, Depends(get_storage)]


def get_dialogs(
    confirm: bool = Query(False, description="Answer every confirmation dialog with yes"),
) -> PresetDialogService:
    """Request-scoped dialog service answering with the confirm flag."""
    return PresetDialogService(answer=confirm)


DialogsDep = Annotated[PresetDialogService, Depends(get_dialogs)]


def get_reconciler(
    request: Request, store: StoreDep, storage: StorageDep, dialogs: DialogsDep
) -> ProtocolReconciler:
    """Reconciler bound to this request's dialog answers.

    All reconcilers share the application's install lock, so imports are
    still handled one at a time.
    """
    return ProtocolReconciler(
        store=store,
        storage=storage,
        dialogs=dialogs,
        lock=request.app.state.install_lock,
    )


ReconcilerDep = Annotated[ProtocolReconciler, Depends(get_reconciler)]


def get_export_service(store: StoreDep) -> ExportService:
    return ExportService(store)


ExportServiceDep = Annotated[ExportService, Depends(get_export_service)]
