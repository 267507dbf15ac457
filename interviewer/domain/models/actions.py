"""Store actions.

Every mutation of a SessionStore is one of the action models below. The
set is closed: Action is a discriminated union on the ``type`` tag and
the reducers match it exhaustively.

Identifiers for new sessions, nodes and edges are allocated when the
action is created, so that reducing an action is deterministic.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from interviewer.domain.models.network import EdgeDraft, EdgeMatch, NodeDraft, NodePatch
from interviewer.domain.models.protocol import Protocol


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class _SessionAction(_Action):
    session_id: str


# =============================================================================
# Session lifecycle
# =============================================================================


class AddSession(_SessionAction):
    type: Literal["ADD_SESSION"] = "ADD_SESSION"
    path: str
    protocol_uid: Optional[str] = None
    case_id: Optional[str] = None


class UpdateSession(_SessionAction):
    type: Literal["UPDATE_SESSION"] = "UPDATE_SESSION"
    path: str


class UpdatePrompt(_SessionAction):
    type: Literal["UPDATE_PROMPT"] = "UPDATE_PROMPT"
    prompt_index: int = Field(ge=0)


class UpdateStage(_SessionAction):
    type: Literal["UPDATE_STAGE"] = "UPDATE_STAGE"
    stage_index: int = Field(ge=0)


class RemoveSession(_SessionAction):
    type: Literal["REMOVE_SESSION"] = "REMOVE_SESSION"


class SessionExported(_SessionAction):
    type: Literal["SESSION_EXPORTED"] = "SESSION_EXPORTED"
    exported_at: datetime


class SetActiveSession(_Action):
    type: Literal["SET_ACTIVE_SESSION"] = "SET_ACTIVE_SESSION"
    session_id: Optional[str] = None


# =============================================================================
# Network
# =============================================================================


class AddNodes(_SessionAction):
    type: Literal["ADD_NODES"] = "ADD_NODES"
    nodes: List[NodeDraft]
    uids: List[str]
    additional_attributes: Dict[str, Any] = Field(default_factory=dict)
    prompt_id: Optional[str] = None
    stage_id: Optional[str] = None

    @model_validator(mode="after")
    def one_uid_per_node(self) -> "AddNodes":
        if len(self.uids) != len(self.nodes):
            raise ValueError("AddNodes needs exactly one uid per node")
        return self


class UpdateNode(_SessionAction):
    type: Literal["UPDATE_NODE"] = "UPDATE_NODE"
    node: NodePatch
    full: bool = False


class ToggleNodeAttributes(_SessionAction):
    type: Literal["TOGGLE_NODE_ATTRIBUTES"] = "TOGGLE_NODE_ATTRIBUTES"
    uid: str
    attributes: Dict[str, Any]


class RemoveNode(_SessionAction):
    type: Literal["REMOVE_NODE"] = "REMOVE_NODE"
    uid: str


class AddEdge(_SessionAction):
    type: Literal["ADD_EDGE"] = "ADD_EDGE"
    edge: EdgeDraft
    uid: str


class RemoveEdge(_SessionAction):
    type: Literal["REMOVE_EDGE"] = "REMOVE_EDGE"
    edge: EdgeMatch


class SetEgo(_SessionAction):
    type: Literal["SET_EGO"] = "SET_EGO"
    attributes: Dict[str, Any]
    merge: bool = False


# =============================================================================
# Installed protocols
# =============================================================================


class InstallProtocolComplete(_Action):
    type: Literal["IMPORT_PROTOCOL_COMPLETE"] = "IMPORT_PROTOCOL_COMPLETE"
    protocol: Protocol
    key: str  # Storage key the record is written under
    installed_at: datetime


class DeleteProtocol(_Action):
    type: Literal["DELETE_PROTOCOL"] = "DELETE_PROTOCOL"
    protocol_uid: str


NetworkAction = Union[
    AddNodes,
    UpdateNode,
    ToggleNodeAttributes,
    RemoveNode,
    AddEdge,
    RemoveEdge,
    SetEgo,
]

NETWORK_ACTIONS = (
    AddNodes,
    UpdateNode,
    ToggleNodeAttributes,
    RemoveNode,
    AddEdge,
    RemoveEdge,
    SetEgo,
)

Action = Annotated[
    Union[
        AddSession,
        UpdateSession,
        UpdatePrompt,
        UpdateStage,
        RemoveSession,
        SessionExported,
        SetActiveSession,
        AddNodes,
        UpdateNode,
        ToggleNodeAttributes,
        RemoveNode,
        AddEdge,
        RemoveEdge,
        SetEgo,
        InstallProtocolComplete,
        DeleteProtocol,
    ],
    Field(discriminator="type"),
]

ACTION_TYPES = NETWORK_ACTIONS + (
    AddSession,
    UpdateSession,
    UpdatePrompt,
    UpdateStage,
    RemoveSession,
    SessionExported,
    SetActiveSession,
    InstallProtocolComplete,
    DeleteProtocol,
)
