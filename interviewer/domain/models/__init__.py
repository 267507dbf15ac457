"""Domain models package."""

from .network import Node, Edge, Network, NodeDraft, NodePatch, EdgeDraft, EdgeMatch
from .protocol import (
    Codebook,
    EntityDefinition,
    InstalledProtocol,
    Prompt,
    Protocol,
    Stage,
    Subject,
    Variable,
)
from .session import Session, StoreState

__all__ = [
    "Node",
    "Edge",
    "Network",
    "NodeDraft",
    "NodePatch",
    "EdgeDraft",
    "EdgeMatch",
    "Codebook",
    "EntityDefinition",
    "InstalledProtocol",
    "Prompt",
    "Protocol",
    "Stage",
    "Subject",
    "Variable",
    "Session",
    "StoreState",
]
