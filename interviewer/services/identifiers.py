"""Identifier generation for sessions, nodes and edges."""

import uuid

from interviewer.core.config import store_config


def generate_session_id(
    head_length: int = store_config.session.id_head_length,
    tail_length: int = store_config.session.id_tail_length,
) -> str:
    """Return a session id of the form ``<head>-<tail>``.

    Both segments are lowercase hex drawn from a uuid4, so ids match
    ``^[A-Za-z0-9]+-[A-Za-z0-9]*$``.
    """
    token = uuid.uuid4().hex + uuid.uuid4().hex
    return f"{token[:head_length]}-{token[head_length:head_length + tail_length]}"


def generate_uid() -> str:
    """Return a fresh node/edge identifier."""
    return str(uuid.uuid4())
