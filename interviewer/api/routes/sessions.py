"""
Session API routes.

Endpoints for the session lifecycle and network mutations. The store
itself treats actions for unknown sessions as no-ops; over HTTP such
requests get a 404 instead, checked before dispatching.
"""

from fastapi import APIRouter, Query, status
from fastapi.responses import Response
import structlog

from interviewer.api.dependencies import ExportServiceDep, StoreDep
from interviewer.api.schemas import (
    ActiveSessionUpdate,
    AddEdgeRequest,
    AddEdgeResponse,
    AddNodesRequest,
    AddNodesResponse,
    NetworkResponse,
    PromptUpdate,
    SessionCreate,
    SessionListResponse,
    SessionResponse,
    SessionUpdate,
    SetEgoRequest,
    StageUpdate,
    ToggleAttributesRequest,
    UpdateNodeRequest,
)
from interviewer.core.exceptions import SessionNotFoundError
from interviewer.domain.models.network import EdgeMatch, NodePatch
from interviewer.domain.models.session import Session
from interviewer.services.session_store import SessionStore

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])

EXPORT_MEDIA_TYPES = {
    "graphml": "application/graphml+xml",
    "json": "application/json",
}


def _require_session(store: SessionStore, session_id: str) -> Session:
    session = store.get_session(session_id)
    if session is None:
        raise SessionNotFoundError(f"Session {session_id} not found")
    return session


# ============ SESSION CRUD ============


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(request: SessionCreate, store: StoreDep):
    """Create a session with an empty network and return it."""
    session_id = store.add_session(
        path=request.path, protocol_uid=request.protocol_uid, case_id=request.case_id
    )
    return SessionResponse.from_session(_require_session(store, session_id))


@router.get("", response_model=SessionListResponse)
async def list_sessions(store: StoreDep):
    state = store.state
    sessions = [SessionResponse.from_session(s) for s in state.sessions.values()]
    return SessionListResponse(
        sessions=sessions, total=len(sessions), active_session_id=state.active_session_id
    )


@router.put("/active", response_model=SessionListResponse)
async def set_active_session(request: ActiveSessionUpdate, store: StoreDep):
    """Choose the session interfaces act on (null clears it)."""
    if request.session_id is not None:
        _require_session(store, request.session_id)
    store.set_active_session(request.session_id)
    return await list_sessions(store)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, store: StoreDep):
    return SessionResponse.from_session(_require_session(store, session_id))


@router.patch("/{session_id}", response_model=SessionResponse)
async def update_session(session_id: str, request: SessionUpdate, store: StoreDep):
    _require_session(store, session_id)
    store.update_session(session_id, request.path)
    return SessionResponse.from_session(_require_session(store, session_id))


@router.put("/{session_id}/prompt", response_model=SessionResponse)
async def update_prompt(session_id: str, request: PromptUpdate, store: StoreDep):
    _require_session(store, session_id)
    store.update_prompt(request.prompt_index, session_id=session_id)
    return SessionResponse.from_session(_require_session(store, session_id))


@router.put("/{session_id}/stage", response_model=SessionResponse)
async def update_stage(session_id: str, request: StageUpdate, store: StoreDep):
    _require_session(store, session_id)
    store.update_stage(request.stage_index, session_id=session_id)
    return SessionResponse.from_session(_require_session(store, session_id))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, store: StoreDep):
    """Remove a session. Removing an unknown session is not an error."""
    store.remove_session(session_id)
    log.info("session_removed", session_id=session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============ NETWORK ============


@router.get("/{session_id}/network", response_model=NetworkResponse)
async def get_network(session_id: str, store: StoreDep):
    session = _require_session(store, session_id)
    return NetworkResponse(**session.network.as_dict())


@router.post(
    "/{session_id}/nodes",
    response_model=AddNodesResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_nodes(session_id: str, request: AddNodesRequest, store: StoreDep):
    _require_session(store, session_id)
    uids = store.add_nodes(
        request.nodes,
        additional_attributes=request.additional_attributes,
        prompt_id=request.prompt_id,
        stage_id=request.stage_id,
        session_id=session_id,
    )
    return AddNodesResponse(uids=uids)


@router.patch("/{session_id}/nodes/{uid}", response_model=NetworkResponse)
async def update_node(session_id: str, uid: str, request: UpdateNodeRequest, store: StoreDep):
    _require_session(store, session_id)
    patch = NodePatch(uid=uid, **request.model_dump(exclude={"full"}))
    store.update_node(patch, full=request.full, session_id=session_id)
    return await get_network(session_id, store)


@router.post("/{session_id}/nodes/{uid}/toggle", response_model=NetworkResponse)
async def toggle_node_attributes(
    session_id: str, uid: str, request: ToggleAttributesRequest, store: StoreDep
):
    _require_session(store, session_id)
    store.toggle_node_attributes(uid, request.attributes, session_id=session_id)
    return await get_network(session_id, store)


@router.delete("/{session_id}/nodes/{uid}", response_model=NetworkResponse)
async def remove_node(session_id: str, uid: str, store: StoreDep):
    """Remove a node together with every edge touching it."""
    _require_session(store, session_id)
    store.remove_node(uid, session_id=session_id)
    return await get_network(session_id, store)


@router.post(
    "/{session_id}/edges",
    response_model=AddEdgeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_edge(session_id: str, request: AddEdgeRequest, store: StoreDep):
    """Add an edge; uid is null when an endpoint is missing or it already exists."""
    _require_session(store, session_id)
    return AddEdgeResponse(uid=store.add_edge(request, session_id=session_id))


@router.post("/{session_id}/edges/remove", response_model=NetworkResponse)
async def remove_edge(session_id: str, request: EdgeMatch, store: StoreDep):
    _require_session(store, session_id)
    store.remove_edge(request, session_id=session_id)
    return await get_network(session_id, store)


@router.put("/{session_id}/ego", response_model=NetworkResponse)
async def set_ego(session_id: str, request: SetEgoRequest, store: StoreDep):
    _require_session(store, session_id)
    store.set_ego(request.attributes, merge=request.merge, session_id=session_id)
    return await get_network(session_id, store)


# ============ EXPORT ============


@router.post("/{session_id}/export", response_class=Response)
async def export_session(
    session_id: str,
    service: ExportServiceDep,
    format: str = Query("graphml", pattern="^(graphml|json)$"),
) -> Response:
    """Export the session network and mark the session exported."""
    data = service.export_session(session_id, format)
    return Response(
        content=data,
        media_type=EXPORT_MEDIA_TYPES[format],
        headers={
            "Content-Disposition": f'attachment; filename="session_{session_id}.{format}"'
        },
    )
