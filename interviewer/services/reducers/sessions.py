"""
Sessions reducer.

Owns the mapping from session id to Session and routes network actions
to the addressed session's network. Actions naming a session that does
not exist leave the mapping untouched: removal and late updates can race
when the interface tears a session down.
"""

from datetime import datetime, timezone
from typing import Callable, Dict

import structlog

from interviewer.domain.models.actions import (
    NETWORK_ACTIONS,
    AddSession,
    DeleteProtocol,
    RemoveSession,
    SessionExported,
    UpdatePrompt,
    UpdateSession,
    UpdateStage,
)
from interviewer.domain.models.network import Network
from interviewer.domain.models.session import Session
from interviewer.services.reducers.network import network_reducer

log = structlog.get_logger(__name__)

Sessions = Dict[str, Session]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _with_session(sessions: Sessions, session_id: str, update: Callable[[Session], Session]) -> Sessions:
    session = sessions.get(session_id)
    if session is None:
        log.debug("session_missing", session_id=session_id)
        return sessions
    updated = update(session)
    if updated is session:
        return sessions
    return {**sessions, session_id: updated}


def _touch(session: Session, **fields) -> Session:
    return session.model_copy(update={**fields, "updated_at": _now()})


def _route_network_action(sessions: Sessions, action) -> Sessions:
    def apply(session: Session) -> Session:
        network = network_reducer(session.network, action)
        if network is session.network:
            return session
        return _touch(session, network=network)

    return _with_session(sessions, action.session_id, apply)


def sessions_reducer(sessions: Sessions, action) -> Sessions:
    """Apply one action to the sessions mapping.

    Returns the same mapping object when nothing changed.
    """
    if isinstance(action, NETWORK_ACTIONS):
        return _route_network_action(sessions, action)

    if isinstance(action, AddSession):
        if action.session_id in sessions:
            log.debug("session_id_in_use", session_id=action.session_id)
            return sessions
        session = Session(
            session_id=action.session_id,
            path=action.path,
            network=Network(),
            protocol_uid=action.protocol_uid,
            case_id=action.case_id,
        )
        return {**sessions, action.session_id: session}

    if isinstance(action, UpdateSession):
        return _with_session(
            sessions, action.session_id, lambda s: _touch(s, path=action.path)
        )

    if isinstance(action, UpdatePrompt):
        return _with_session(
            sessions,
            action.session_id,
            lambda s: _touch(s, prompt_index=action.prompt_index),
        )

    if isinstance(action, UpdateStage):
        return _with_session(
            sessions,
            action.session_id,
            lambda s: _touch(s, stage_index=action.stage_index, prompt_index=0),
        )

    if isinstance(action, SessionExported):
        return _with_session(
            sessions,
            action.session_id,
            lambda s: _touch(s, last_exported_at=action.exported_at),
        )

    if isinstance(action, RemoveSession):
        if action.session_id not in sessions:
            return sessions
        return {k: v for k, v in sessions.items() if k != action.session_id}

    if isinstance(action, DeleteProtocol):
        # Sessions cannot outlive the protocol they were recorded against
        remaining = {
            k: v for k, v in sessions.items() if v.protocol_uid != action.protocol_uid
        }
        if len(remaining) == len(sessions):
            return sessions
        log.info(
            "sessions_removed_with_protocol",
            protocol_uid=action.protocol_uid,
            removed=len(sessions) - len(remaining),
        )
        return remaining

    return sessions
