"""
Export service for converting a session network to portable formats.

Supports export to:
- GraphML: the network as a directed multigraph (via networkx)
- JSON: ego, nodes and edges with session metadata

A successful export stamps the session's last_exported_at, which is what
allows its protocol to be reinstalled later without a rejection.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import networkx as nx
import structlog

from interviewer.core.config import ExportConfig, store_config
from interviewer.core.exceptions import ExportError, SessionNotFoundError
from interviewer.domain.models.session import Session
from interviewer.services.session_store import SessionStore

log = structlog.get_logger(__name__)

SUPPORTED_FORMATS = ("graphml", "json")


def _graphml_value(value: Any) -> Any:
    """GraphML data must be scalar; containers are written as JSON text."""
    if isinstance(value, (bool, int, float, str)):
        return value
    return json.dumps(value, sort_keys=True, default=str)


def _scalar_attributes(attributes: Dict[str, Any]) -> Dict[str, Any]:
    return {k: _graphml_value(v) for k, v in attributes.items() if v is not None}


def session_to_graph(session: Session, include_ego: bool = True) -> nx.MultiDiGraph:
    """Build a networkx graph from a session's network.

    node_type and edge_type always carry the entity types, taking
    precedence over attributes of the same name.
    """
    graph = nx.MultiDiGraph()
    graph.graph["session_id"] = session.session_id
    if session.protocol_uid:
        graph.graph["protocol_uid"] = session.protocol_uid
    if include_ego:
        for key, value in _scalar_attributes(session.network.ego).items():
            graph.graph[f"ego_{key}"] = value

    # Attribute names are arbitrary protocol variables, never keyword arguments
    for node in session.network.nodes:
        graph.add_node(node.uid)
        graph.nodes[node.uid].update(
            {**_scalar_attributes(node.attributes), "node_type": node.type}
        )

    for edge in session.network.edges:
        graph.add_edge(edge.from_, edge.to, key=edge.uid)
        graph.edges[edge.from_, edge.to, edge.uid].update(
            {**_scalar_attributes(edge.attributes), "edge_type": edge.type}
        )
    return graph


class ExportService:
    """
    Service for exporting sessions held in a SessionStore.

    Usage:
        service = ExportService(store)
        graphml = service.export_session(session_id, "graphml")
    """

    def __init__(self, store: SessionStore, config: Optional[ExportConfig] = None):
        self.store = store
        self.config = config or store_config.export

    def export_session(self, session_id: str, fmt: str = "graphml") -> str:
        """
        Export one session and mark it exported.

        Args:
            session_id: Session to export
            fmt: "graphml" or "json"

        Returns:
            The serialized document

        Raises:
            SessionNotFoundError: Session does not exist
            ExportError: Unsupported format or serialization failed
        """
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        if fmt not in SUPPORTED_FORMATS:
            raise ExportError(
                f"Unsupported export format '{fmt}'. Supported: {', '.join(SUPPORTED_FORMATS)}"
            )

        try:
            if fmt == "graphml":
                document = self._to_graphml(session)
            else:
                document = self._to_json(session)
        except (nx.NetworkXError, TypeError, ValueError) as e:
            log.error("session_export_failed", session_id=session_id, error=str(e))
            raise ExportError(f"Failed to export session {session_id}: {e}") from e

        exported_at = datetime.now(timezone.utc)
        self.store.mark_exported(session_id, exported_at)
        log.info(
            "session_exported",
            session_id=session_id,
            format=fmt,
            nodes=len(session.network.nodes),
            edges=len(session.network.edges),
        )
        return document

    def _to_graphml(self, session: Session) -> str:
        graph = session_to_graph(session, include_ego=self.config.include_ego)
        return "\n".join(nx.generate_graphml(graph, prettyprint=self.config.prettyprint))

    def _to_json(self, session: Session) -> str:
        network = session.network.as_dict()
        if not self.config.include_ego:
            network.pop("ego")
        data = {
            "session_id": session.session_id,
            "protocol_uid": session.protocol_uid,
            "case_id": session.case_id,
            "network": network,
        }
        return json.dumps(data, indent=2 if self.config.prettyprint else None, default=str)
