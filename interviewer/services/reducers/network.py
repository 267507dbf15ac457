"""
Network reducer.

Pure transitions over one session's Network. Given a network and an
action, each function returns a new network, or the very same object
when the action is a no-op.

Integrity rules:
- Every edge endpoint names a node of the same network. Removing a node
  removes its edges; adding an edge with a missing endpoint is a no-op.
- Updates and toggles addressed to a node that no longer exists are
  no-ops: the interface may still dispatch for a node it just deleted.
"""

from typing import Any, Dict, List

import structlog

from interviewer.domain.models.actions import (
    AddEdge,
    AddNodes,
    NetworkAction,
    RemoveEdge,
    RemoveNode,
    SetEgo,
    ToggleNodeAttributes,
    UpdateNode,
)
from interviewer.domain.models.network import Edge, Network, Node, NodePatch

log = structlog.get_logger(__name__)


def add_nodes(network: Network, action: AddNodes) -> Network:
    """Append each drafted node with its allocated uid.

    additional_attributes (prompt/stage defaults) are laid over the
    node's own attributes. A batch reusing a uid already in the network,
    or repeating one, is a no-op.
    """
    if not action.nodes:
        return network

    if len(set(action.uids)) != len(action.uids) or any(
        network.has_node(uid) for uid in action.uids
    ):
        log.debug("add_nodes_uid_in_use", node_uids=action.uids)
        return network

    prompt_ids = [action.prompt_id] if action.prompt_id else []
    new_nodes = [
        Node(
            uid=uid,
            type=draft.type,
            attributes={**draft.attributes, **action.additional_attributes},
            prompt_ids=list(prompt_ids),
            stage_id=action.stage_id,
            meta=dict(draft.meta),
        )
        for uid, draft in zip(action.uids, action.nodes)
    ]
    return network.model_copy(
        update={
            "nodes": network.nodes + new_nodes,
            "node_revision": network.node_revision + 1,
        }
    )


def _merge_node(node: Node, patch: NodePatch) -> Node:
    update: Dict[str, Any] = {}
    if patch.type is not None:
        update["type"] = patch.type
    if patch.attributes is not None:
        update["attributes"] = {**node.attributes, **patch.attributes}
    if patch.prompt_ids is not None:
        merged = list(node.prompt_ids)
        merged.extend(pid for pid in patch.prompt_ids if pid not in merged)
        update["prompt_ids"] = merged
    if patch.stage_id is not None:
        update["stage_id"] = patch.stage_id
    if patch.meta is not None:
        update["meta"] = {**node.meta, **patch.meta}
    return node.model_copy(update=update)


def _replace_node(node: Node, patch: NodePatch) -> Node:
    return Node(
        uid=node.uid,
        type=patch.type if patch.type is not None else node.type,
        attributes=dict(patch.attributes or {}),
        prompt_ids=list(patch.prompt_ids or []),
        stage_id=patch.stage_id,
        meta=dict(patch.meta or {}),
    )


def update_node(network: Network, action: UpdateNode) -> Network:
    patch = action.node
    if not network.has_node(patch.uid):
        log.debug("update_node_missing", node_uid=patch.uid)
        return network

    node = network.get_node(patch.uid)
    updated = (_replace_node if action.full else _merge_node)(node, patch)
    if updated == node:
        return network

    nodes = [updated if n.uid == patch.uid else n for n in network.nodes]
    return network.model_copy(
        update={"nodes": nodes, "node_revision": network.node_revision + 1}
    )


def toggle_node_attributes(network: Network, action: ToggleNodeAttributes) -> Network:
    """Set each given attribute, or clear it when it already holds that value.

    Applying the same toggle twice restores the original value when the
    attribute started out unset.
    """
    node = network.get_node(action.uid)
    if node is None:
        log.debug("toggle_node_missing", node_uid=action.uid)
        return network

    attributes = dict(node.attributes)
    for key, value in action.attributes.items():
        attributes[key] = None if attributes.get(key) == value else value
    if attributes == node.attributes:
        return network

    toggled = node.model_copy(update={"attributes": attributes})
    nodes = [toggled if n.uid == action.uid else n for n in network.nodes]
    return network.model_copy(
        update={"nodes": nodes, "node_revision": network.node_revision + 1}
    )


def remove_node(network: Network, action: RemoveNode) -> Network:
    """Remove a node and every edge touching it."""
    if not network.has_node(action.uid):
        return network

    nodes = [n for n in network.nodes if n.uid != action.uid]
    edges = [e for e in network.edges if action.uid not in (e.from_, e.to)]
    update: Dict[str, Any] = {
        "nodes": nodes,
        "node_revision": network.node_revision + 1,
    }
    if len(edges) != len(network.edges):
        update["edges"] = edges
        update["edge_revision"] = network.edge_revision + 1
        log.debug(
            "edges_cascaded",
            node_uid=action.uid,
            removed=len(network.edges) - len(edges),
        )
    return network.model_copy(update=update)


def add_edge(network: Network, action: AddEdge) -> Network:
    draft = action.edge
    if not (network.has_node(draft.from_) and network.has_node(draft.to)):
        log.debug("dangling_edge_ignored", edge_from=draft.from_, edge_to=draft.to)
        return network

    for existing in network.edges:
        if existing.uid == action.uid:
            log.debug("add_edge_uid_in_use", edge_uid=action.uid)
            return network
        if (existing.from_, existing.to, existing.type) == (draft.from_, draft.to, draft.type):
            return network

    edge = Edge(
        uid=action.uid,
        type=draft.type,
        from_=draft.from_,
        to=draft.to,
        attributes=dict(draft.attributes),
    )
    return network.model_copy(
        update={
            "edges": network.edges + [edge],
            "edge_revision": network.edge_revision + 1,
        }
    )


def remove_edge(network: Network, action: RemoveEdge) -> Network:
    edges: List[Edge] = [e for e in network.edges if not action.edge.matches(e)]
    if len(edges) == len(network.edges):
        return network
    return network.model_copy(
        update={"edges": edges, "edge_revision": network.edge_revision + 1}
    )


def set_ego(network: Network, action: SetEgo) -> Network:
    ego = {**network.ego, **action.attributes} if action.merge else dict(action.attributes)
    if ego == network.ego:
        return network
    return network.model_copy(
        update={"ego": ego, "ego_revision": network.ego_revision + 1}
    )


_HANDLERS = {
    AddNodes: add_nodes,
    UpdateNode: update_node,
    ToggleNodeAttributes: toggle_node_attributes,
    RemoveNode: remove_node,
    AddEdge: add_edge,
    RemoveEdge: remove_edge,
    SetEgo: set_ego,
}


def network_reducer(network: Network, action: NetworkAction) -> Network:
    """Apply one network action."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Not a network action: {type(action).__name__}")
    return handler(network, action)
