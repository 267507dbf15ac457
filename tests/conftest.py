"""
Shared test fixtures.

Stores are created per test with deterministic id generators so that
session and node ids can be asserted on.
"""

import itertools
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from interviewer.domain.models.protocol import Protocol
from interviewer.services.dialogs import PresetDialogService
from interviewer.services.session_store import SessionStore


def _counter(prefix: str):
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


@pytest.fixture
def store():
    """Store with predictable session ids (s1-a, s2-a, ...) and node uids (n1, n2, ...)."""
    session_ids = itertools.count(1)
    store = SessionStore.create(
        id_generator=lambda: f"s{next(session_ids)}-a",
        uid_generator=_counter("n"),
    )
    yield store
    store.dispose()


@pytest.fixture
def active_session(store):
    """Id of an active session with an empty network."""
    session_id = store.add_session("path/to/session")
    store.set_active_session(session_id)
    return session_id


@pytest.fixture
def protocol_data():
    """Raw protocol definition as found in a protocol.json file."""
    return {
        "name": "Friendship study",
        "description": "Who are your friends?",
        "codebook": {
            "node": {
                "person": {
                    "name": "Person",
                    "variables": {
                        "name": {"type": "text"},
                        "close_friend": {
                            "type": "categorical",
                            "options": [{"label": "Yes", "value": "yes"}, {"label": "No", "value": "no"}],
                        },
                    },
                },
                "place": {"name": "Place", "variables": {}},
            },
            "edge": {"friend": {"name": "Friend", "variables": {}}},
        },
        "forms": {"person": {"fields": [{"variable": "name"}]}},
        "stages": [
            {
                "id": "stage-1",
                "type": "NameGenerator",
                "label": "Friends",
                "subject": {"entity": "node", "type": "person"},
                "form": "person",
                "prompts": [
                    {
                        "id": "prompt-1",
                        "text": "Name your close friends",
                        "additionalAttributes": {"close_friend": True},
                        "variable": "close_friend",
                        "otherVariable": "other_friend",
                        "otherVariableLabel": "Other",
                    },
                    {"id": "prompt-2", "text": "Name your coworkers"},
                ],
            }
        ],
    }


@pytest.fixture
def protocol(protocol_data):
    return Protocol.model_validate({**protocol_data, "uid": "proto-new"})


@pytest.fixture
def storage():
    """Protocol asset storage double."""
    storage = AsyncMock()
    storage.exists = AsyncMock(return_value=True)
    storage.remove_directory = AsyncMock(return_value=None)
    storage.rename = AsyncMock(return_value=None)
    return storage


@pytest.fixture
def confirm_dialogs():
    return PresetDialogService(answer=True)


@pytest.fixture
def decline_dialogs():
    return PresetDialogService(answer=False)


@pytest.fixture
def fixed_clock():
    moment = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    return lambda: moment
