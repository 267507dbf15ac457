"""
Protocol API routes.

Installing and deleting protocols may need the user's confirmation. Over
HTTP the decision travels with the request: ``?confirm=true`` answers yes
to every dialog, otherwise every dialog is declined and the request ends
with a 409 naming InstallationCancelledError.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body
import structlog

from interviewer.api.dependencies import DialogsDep, ReconcilerDep, StoreDep
from interviewer.api.schemas import (
    DeleteProtocolResponse,
    InstallResponse,
    InstalledProtocolSummary,
    ProtocolListResponse,
)
from interviewer.core.exceptions import ProtocolSchemaError
from interviewer.domain.models.protocol import Protocol
from interviewer.services.protocol_reconciler import session_usage

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/protocols", tags=["protocols"])


@router.get("", response_model=ProtocolListResponse)
async def list_protocols(store: StoreDep):
    state = store.state
    protocols = [
        InstalledProtocolSummary(
            key=key,
            name=protocol.name,
            description=protocol.description,
            installation_date=protocol.installation_date,
            session_count=len(session_usage(state, key).session_ids),
        )
        for key, protocol in state.installed_protocols.items()
    ]
    return ProtocolListResponse(protocols=protocols, total=len(protocols))


@router.post("", response_model=InstallResponse)
async def install_protocol(
    reconciler: ReconcilerDep,
    dialogs: DialogsDep,
    protocol_data: Dict[str, Any] = Body(...),
):
    """
    Install an imported protocol whose assets already sit in storage
    under its ``uid``.
    """
    try:
        protocol = Protocol.model_validate(protocol_data)
    except ValueError as e:
        raise ProtocolSchemaError(f"Invalid protocol: {e}") from e

    outcome = await reconciler.install_protocol(protocol)
    return InstallResponse(
        state=outcome.state.value,
        installed=outcome.installed,
        key=outcome.key,
        removed_session_ids=outcome.removed_session_ids,
        dialogs=[d.title for d in dialogs.opened],
    )


@router.delete("/{protocol_uid}", response_model=DeleteProtocolResponse)
async def delete_protocol(protocol_uid: str, reconciler: ReconcilerDep, dialogs: DialogsDep):
    """Delete a protocol and its sessions once confirmed."""
    deleted = await reconciler.delete_protocol(protocol_uid)
    return DeleteProtocolResponse(deleted=deleted, dialogs=[d.title for d in dialogs.opened])
