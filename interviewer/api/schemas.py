"""
API request/response schemas.

Pydantic models for API validation and serialization.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from interviewer.domain.models.network import EdgeDraft, NodeDraft
from interviewer.domain.models.session import Session


# ============ SESSION SCHEMAS ============


class SessionCreate(BaseModel):
    """Request to create a new session."""

    path: Optional[str] = Field(default=None, description="Storage path (default from template)")
    protocol_uid: Optional[str] = None
    case_id: Optional[str] = None


class SessionUpdate(BaseModel):
    path: str = Field(..., min_length=1)


class PromptUpdate(BaseModel):
    prompt_index: int = Field(..., ge=0)


class StageUpdate(BaseModel):
    stage_index: int = Field(..., ge=0)


class ActiveSessionUpdate(BaseModel):
    session_id: Optional[str] = None


class SessionResponse(BaseModel):
    """Session details response (network summarized as counts)."""

    session_id: str
    path: str
    protocol_uid: Optional[str] = None
    case_id: Optional[str] = None
    prompt_index: int = 0
    stage_index: int = 0
    node_count: int = 0
    edge_count: int = 0
    created_at: datetime
    updated_at: datetime
    last_exported_at: Optional[datetime] = None

    @classmethod
    def from_session(cls, session: Session) -> "SessionResponse":
        return cls(
            session_id=session.session_id,
            path=session.path,
            protocol_uid=session.protocol_uid,
            case_id=session.case_id,
            prompt_index=session.prompt_index,
            stage_index=session.stage_index,
            node_count=len(session.network.nodes),
            edge_count=len(session.network.edges),
            created_at=session.created_at,
            updated_at=session.updated_at,
            last_exported_at=session.last_exported_at,
        )


class SessionListResponse(BaseModel):
    sessions: List[SessionResponse]
    total: int
    active_session_id: Optional[str] = None


# ============ NETWORK SCHEMAS ============


class NetworkResponse(BaseModel):
    ego: Dict[str, Any]
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]]


class AddNodesRequest(BaseModel):
    nodes: List[NodeDraft] = Field(..., min_length=1)
    additional_attributes: Dict[str, Any] = Field(default_factory=dict)
    prompt_id: Optional[str] = None
    stage_id: Optional[str] = None


class AddNodesResponse(BaseModel):
    uids: List[str]


class UpdateNodeRequest(BaseModel):
    type: Optional[str] = None
    attributes: Optional[Dict[str, Any]] = None
    prompt_ids: Optional[List[str]] = None
    stage_id: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    full: bool = False


class ToggleAttributesRequest(BaseModel):
    attributes: Dict[str, Any]


class AddEdgeRequest(EdgeDraft):
    pass


class AddEdgeResponse(BaseModel):
    uid: Optional[str] = Field(description="New edge uid, null when the edge was not added")


class SetEgoRequest(BaseModel):
    attributes: Dict[str, Any]
    merge: bool = False


# ============ PROTOCOL SCHEMAS ============


class InstalledProtocolSummary(BaseModel):
    key: str
    name: str
    description: str = ""
    installation_date: datetime
    session_count: int = 0


class ProtocolListResponse(BaseModel):
    protocols: List[InstalledProtocolSummary]
    total: int


class InstallResponse(BaseModel):
    state: str
    installed: bool
    key: Optional[str] = None
    removed_session_ids: List[str] = Field(default_factory=list)
    dialogs: List[str] = Field(
        default_factory=list, description="Titles of the dialogs that were answered"
    )


class DeleteProtocolResponse(BaseModel):
    deleted: bool
    dialogs: List[str] = Field(default_factory=list)
