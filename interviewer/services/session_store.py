"""
Session store.

The single mutable owner of every interview session, its network, and
the installed protocol records. All changes arrive as actions through
dispatch() and are applied one at a time by pure reducers; readers get
immutable StoreState snapshots.

A store is constructed explicitly (SessionStore.create()) and handed to
whatever needs it; dispose() ends its lifecycle.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import structlog

from interviewer.core.config import store_config
from interviewer.core.exceptions import StoreDisposedError
from interviewer.domain.models.actions import (
    ACTION_TYPES,
    AddEdge,
    AddNodes,
    AddSession,
    DeleteProtocol,
    RemoveEdge,
    RemoveNode,
    RemoveSession,
    SessionExported,
    SetActiveSession,
    SetEgo,
    ToggleNodeAttributes,
    UpdateNode,
    UpdatePrompt,
    UpdateSession,
    UpdateStage,
)
from interviewer.domain.models.network import EdgeDraft, EdgeMatch, NodeDraft, NodePatch
from interviewer.domain.models.session import Session, StoreState
from interviewer.services.identifiers import generate_session_id, generate_uid
from interviewer.services.protocols import ISessionIdGenerator
from interviewer.services.reducers import installed_protocols_reducer, sessions_reducer

log = structlog.get_logger(__name__)

Listener = Callable[[StoreState], None]


def _active_session_id(state: StoreState, action, sessions: Dict[str, Session]) -> Optional[str]:
    if isinstance(action, SetActiveSession):
        if action.session_id is None or action.session_id in sessions:
            return action.session_id
        return state.active_session_id
    if state.active_session_id is not None and state.active_session_id not in sessions:
        return None
    return state.active_session_id


def root_reducer(state: StoreState, action) -> StoreState:
    """Apply one action to the whole store state.

    Returns the same StoreState object when nothing changed.
    """
    sessions = sessions_reducer(state.sessions, action)
    protocols = installed_protocols_reducer(state.installed_protocols, action)
    active = _active_session_id(state, action, sessions)

    if (
        sessions is state.sessions
        and protocols is state.installed_protocols
        and active == state.active_session_id
    ):
        return state

    return StoreState(
        sessions=sessions,
        installed_protocols=protocols,
        active_session_id=active,
        version=state.version + 1,
    )


class SessionStore:
    """Owns session/network state and serializes its mutation.

    Usage:
        store = SessionStore.create()
        session_id = store.add_session("a/b")
        store.set_active_session(session_id)
        store.add_nodes({"type": "person", "attributes": {"name": "Ana"}})
        store.dispose()
    """

    def __init__(
        self,
        initial_state: Optional[StoreState] = None,
        id_generator: ISessionIdGenerator = generate_session_id,
        uid_generator: Callable[[], str] = generate_uid,
        path_template: str = store_config.session.path_template,
    ):
        self._state = initial_state or StoreState()
        self._id_generator = id_generator
        self._uid_generator = uid_generator
        self._path_template = path_template
        self._listeners: List[Listener] = []
        self._disposed = False

    @classmethod
    def create(cls, **kwargs) -> "SessionStore":
        store = cls(**kwargs)
        log.info("session_store_created", sessions=len(store.state.sessions))
        return store

    def dispose(self) -> None:
        """End the store's lifecycle; later dispatches raise StoreDisposedError."""
        if self._disposed:
            return
        self._disposed = True
        self._listeners.clear()
        log.info("session_store_disposed", version=self._state.version)

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def state(self) -> StoreState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with the new state after every changing dispatch."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action) -> StoreState:
        if self._disposed:
            raise StoreDisposedError("Cannot dispatch to a disposed session store")
        if not isinstance(action, ACTION_TYPES):
            raise TypeError(f"Unknown action: {action!r}")

        previous = self._state
        self._state = root_reducer(previous, action)

        if self._state is previous:
            log.debug("action_noop", action_type=action.type)
            return self._state

        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    # ==========================================================================
    # Reads
    # ==========================================================================

    def get_session(self, session_id: str) -> Optional[Session]:
        return self._state.sessions.get(session_id)

    @property
    def active_session_id(self) -> Optional[str]:
        return self._state.active_session_id

    def _resolve(self, session_id: Optional[str]) -> Optional[str]:
        resolved = session_id if session_id is not None else self._state.active_session_id
        if resolved is None:
            log.debug("no_active_session")
        return resolved

    # ==========================================================================
    # Session lifecycle
    # ==========================================================================

    def add_session(
        self,
        path: Optional[str] = None,
        protocol_uid: Optional[str] = None,
        case_id: Optional[str] = None,
    ) -> str:
        """Create a session with an empty network and return its id."""
        session_id = self._id_generator()
        if path is None:
            path = self._path_template.format(session_id=session_id)
        self.dispatch(
            AddSession(
                session_id=session_id,
                path=path,
                protocol_uid=protocol_uid,
                case_id=case_id,
            )
        )
        log.info("session_added", session_id=session_id, protocol_uid=protocol_uid)
        return session_id

    def update_session(self, session_id: str, path: str) -> StoreState:
        return self.dispatch(UpdateSession(session_id=session_id, path=path))

    def update_prompt(self, prompt_index: int, session_id: Optional[str] = None) -> StoreState:
        session_id = self._resolve(session_id)
        if session_id is None:
            return self._state
        return self.dispatch(UpdatePrompt(session_id=session_id, prompt_index=prompt_index))

    def update_stage(self, stage_index: int, session_id: Optional[str] = None) -> StoreState:
        session_id = self._resolve(session_id)
        if session_id is None:
            return self._state
        return self.dispatch(UpdateStage(session_id=session_id, stage_index=stage_index))

    def _step_prompt(self, step: int, prompt_count: int, session_id: Optional[str]) -> StoreState:
        session_id = self._resolve(session_id)
        session = self.get_session(session_id) if session_id else None
        if session is None or prompt_count < 1:
            return self._state
        index = (session.prompt_index + step) % prompt_count
        return self.dispatch(UpdatePrompt(session_id=session_id, prompt_index=index))

    def next_prompt(self, prompt_count: int, session_id: Optional[str] = None) -> StoreState:
        """Advance to the next prompt of the stage, wrapping to the first."""
        return self._step_prompt(1, prompt_count, session_id)

    def previous_prompt(self, prompt_count: int, session_id: Optional[str] = None) -> StoreState:
        """Go back one prompt, wrapping to the last."""
        return self._step_prompt(-1, prompt_count, session_id)

    def remove_session(self, session_id: str) -> StoreState:
        return self.dispatch(RemoveSession(session_id=session_id))

    def set_active_session(self, session_id: Optional[str]) -> StoreState:
        return self.dispatch(SetActiveSession(session_id=session_id))

    def mark_exported(
        self, session_id: str, exported_at: Optional[datetime] = None
    ) -> StoreState:
        return self.dispatch(
            SessionExported(
                session_id=session_id,
                exported_at=exported_at or datetime.now(timezone.utc),
            )
        )

    def delete_protocol(self, protocol_uid: str) -> StoreState:
        """Remove a protocol record and every session recorded against it."""
        return self.dispatch(DeleteProtocol(protocol_uid=protocol_uid))

    # ==========================================================================
    # Network
    # ==========================================================================

    def add_nodes(
        self,
        nodes: Union[Dict[str, Any], NodeDraft, Sequence[Union[Dict[str, Any], NodeDraft]]],
        additional_attributes: Optional[Dict[str, Any]] = None,
        prompt_id: Optional[str] = None,
        stage_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> List[str]:
        """Add one node or a batch; returns the allocated uids in order."""
        session_id = self._resolve(session_id)
        if session_id is None:
            return []
        batch = [nodes] if isinstance(nodes, (dict, NodeDraft)) else list(nodes)
        drafts = [n if isinstance(n, NodeDraft) else NodeDraft(**n) for n in batch]
        uids = [self._uid_generator() for _ in drafts]
        self.dispatch(
            AddNodes(
                session_id=session_id,
                nodes=drafts,
                uids=uids,
                additional_attributes=additional_attributes or {},
                prompt_id=prompt_id,
                stage_id=stage_id,
            )
        )
        return uids

    def update_node(
        self,
        node: Union[Dict[str, Any], NodePatch],
        full: bool = False,
        session_id: Optional[str] = None,
    ) -> StoreState:
        session_id = self._resolve(session_id)
        if session_id is None:
            return self._state
        patch = node if isinstance(node, NodePatch) else NodePatch(**node)
        return self.dispatch(UpdateNode(session_id=session_id, node=patch, full=full))

    def toggle_node_attributes(
        self, uid: str, attributes: Dict[str, Any], session_id: Optional[str] = None
    ) -> StoreState:
        session_id = self._resolve(session_id)
        if session_id is None:
            return self._state
        return self.dispatch(
            ToggleNodeAttributes(session_id=session_id, uid=uid, attributes=attributes)
        )

    def remove_node(self, uid: str, session_id: Optional[str] = None) -> StoreState:
        session_id = self._resolve(session_id)
        if session_id is None:
            return self._state
        return self.dispatch(RemoveNode(session_id=session_id, uid=uid))

    def add_edge(
        self, edge: Union[Dict[str, Any], EdgeDraft], session_id: Optional[str] = None
    ) -> Optional[str]:
        """Add an edge; returns its uid, or None when it was not added."""
        session_id = self._resolve(session_id)
        if session_id is None:
            return None
        draft = edge if isinstance(edge, EdgeDraft) else EdgeDraft(**edge)
        uid = self._uid_generator()
        state = self.dispatch(AddEdge(session_id=session_id, edge=draft, uid=uid))
        session = state.sessions.get(session_id)
        if session is None or not any(e.uid == uid for e in session.network.edges):
            return None
        return uid

    def remove_edge(
        self, edge: Union[Dict[str, Any], EdgeMatch], session_id: Optional[str] = None
    ) -> StoreState:
        session_id = self._resolve(session_id)
        if session_id is None:
            return self._state
        match = edge if isinstance(edge, EdgeMatch) else EdgeMatch(**edge)
        return self.dispatch(RemoveEdge(session_id=session_id, edge=match))

    def set_ego(
        self,
        attributes: Dict[str, Any],
        merge: bool = False,
        session_id: Optional[str] = None,
    ) -> StoreState:
        session_id = self._resolve(session_id)
        if session_id is None:
            return self._state
        return self.dispatch(SetEgo(session_id=session_id, attributes=attributes, merge=merge))
