"""Domain models for the per-session interview network.

A network holds the respondent (ego), the people they name (nodes) and
the relationships between them (edges). Every edge endpoint must name a
node of the same network; the reducers in
interviewer.services.reducers.network keep it that way.

Models are frozen: reducers produce new instances with model_copy().
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Node(BaseModel):
    """A person or entity named during the interview."""

    model_config = ConfigDict(frozen=True)

    uid: str
    type: str  # Key into the protocol codebook's node registry
    attributes: Dict[str, Any] = Field(default_factory=dict)
    prompt_ids: List[str] = Field(
        default_factory=list,
        description="Prompts that contributed to or may edit this node",
    )
    stage_id: Optional[str] = None
    meta: Dict[str, Any] = Field(
        default_factory=dict, description="Positional/display metadata"
    )


class Edge(BaseModel):
    """A typed relationship between two nodes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uid: str
    type: str
    from_: str = Field(alias="from")
    to: str
    attributes: Dict[str, Any] = Field(default_factory=dict)


class Network(BaseModel):
    """Ego, nodes and edges for exactly one session.

    The revision counters change only when their part of the network
    changes; selectors use them as cache keys.
    """

    model_config = ConfigDict(frozen=True)

    ego: Dict[str, Any] = Field(default_factory=dict)
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)
    node_revision: int = Field(default=0, ge=0)
    edge_revision: int = Field(default=0, ge=0)
    ego_revision: int = Field(default=0, ge=0)

    def get_node(self, uid: str) -> Optional[Node]:
        for node in self.nodes:
            if node.uid == uid:
                return node
        return None

    def has_node(self, uid: str) -> bool:
        return self.get_node(uid) is not None

    def as_dict(self) -> Dict[str, Any]:
        """Plain ego/nodes/edges mapping, without revision counters."""
        return {
            "ego": dict(self.ego),
            "nodes": [n.model_dump() for n in self.nodes],
            "edges": [e.model_dump(by_alias=True) for e in self.edges],
        }


# =============================================================================
# Mutation payloads
# =============================================================================


class NodeDraft(BaseModel):
    """A node as submitted by an interface, before it has an identifier."""

    type: str
    attributes: Dict[str, Any] = Field(default_factory=dict)
    meta: Dict[str, Any] = Field(default_factory=dict)


class NodePatch(BaseModel):
    """Partial node used by update_node.

    Fields left as None are kept from the existing node on a merge, and
    reset to their defaults on a full replace (type is always kept).
    """

    uid: str
    type: Optional[str] = None
    attributes: Optional[Dict[str, Any]] = None
    prompt_ids: Optional[List[str]] = None
    stage_id: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None


class EdgeDraft(BaseModel):
    """An edge as submitted by an interface, before it has an identifier."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    from_: str = Field(alias="from")
    to: str
    attributes: Dict[str, Any] = Field(default_factory=dict)


class EdgeMatch(BaseModel):
    """Selects edges to remove: by uid, or by exact {from, to, type}."""

    model_config = ConfigDict(populate_by_name=True)

    uid: Optional[str] = None
    type: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None

    @model_validator(mode="after")
    def require_uid_or_endpoints(self) -> "EdgeMatch":
        if self.uid is None and None in (self.type, self.from_, self.to):
            raise ValueError("EdgeMatch needs a uid or all of from, to and type")
        return self

    def matches(self, edge: Edge) -> bool:
        if self.uid is not None:
            return edge.uid == self.uid
        return (
            edge.from_ == self.from_
            and edge.to == self.to
            and edge.type == self.type
        )
