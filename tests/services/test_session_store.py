"""Tests for SessionStore and the sessions reducer."""

import re
from datetime import datetime, timezone

import pytest

from interviewer.core.exceptions import StoreDisposedError
from interviewer.domain.models.actions import (
    AddNodes,
    AddSession,
    DeleteProtocol,
    RemoveSession,
    UpdatePrompt,
    UpdateSession,
)
from interviewer.domain.models.network import NodeDraft
from interviewer.services.identifiers import generate_session_id
from interviewer.services.session_store import SessionStore

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+-[A-Za-z0-9]*$")


class TestSessionLifecycle:
    def test_initial_state_is_empty(self, store):
        assert store.state.sessions == {}
        assert store.state.active_session_id is None
        assert store.state.version == 0

    def test_add_session(self):
        store = SessionStore.create()

        session_id = store.add_session("a/b")

        assert SESSION_ID_PATTERN.match(session_id)
        assert list(store.state.sessions) == [session_id]
        session = store.get_session(session_id)
        assert session.path == "a/b"
        assert session.prompt_index == 0
        assert session.network.as_dict() == {"ego": {}, "nodes": [], "edges": []}
        assert session.last_exported_at is None

    def test_add_session_default_path(self, store):
        session_id = store.add_session()

        assert store.get_session(session_id).path == f"/session/{session_id}"

    def test_add_session_with_existing_id_keeps_session(self, store, active_session):
        store.add_nodes({"type": "person"})
        before = store.state

        store.dispatch(AddSession(session_id=active_session, path="elsewhere"))

        assert store.state is before
        assert len(store.get_session(active_session).network.nodes) == 1

    def test_add_session_records_protocol(self, store):
        session_id = store.add_session("p", protocol_uid="proto-1", case_id="case 7")

        session = store.get_session(session_id)
        assert session.protocol_uid == "proto-1"
        assert session.case_id == "case 7"

    def test_update_session(self, store):
        session_id = store.add_session("path/to/session")

        store.update_session(session_id, "new/path/to/session")

        assert store.get_session(session_id).path == "new/path/to/session"

    def test_update_missing_session_is_noop(self, store):
        store.add_session("p")
        before = store.state

        after = store.dispatch(UpdateSession(session_id="missing", path="x"))

        assert after is before

    def test_update_prompt(self, store):
        session_id = store.add_session("p")

        store.update_prompt(2, session_id=session_id)

        assert store.get_session(session_id).prompt_index == 2

    def test_update_stage_resets_prompt(self, store):
        session_id = store.add_session("p")
        store.update_prompt(2, session_id=session_id)

        store.update_stage(3, session_id=session_id)

        session = store.get_session(session_id)
        assert (session.stage_index, session.prompt_index) == (3, 0)

    def test_remove_session(self, store):
        session_id = store.add_session("p")

        store.remove_session(session_id)

        assert store.get_session(session_id) is None

    def test_remove_missing_session_leaves_store_unchanged(self, store):
        store.add_session("p")
        before = store.state

        after = store.remove_session("x")

        assert after is before

    def test_removing_active_session_clears_pointer(self, store, active_session):
        store.remove_session(active_session)

        assert store.state.active_session_id is None

    def test_set_active_to_unknown_session_is_noop(self, store):
        before = store.state

        assert store.set_active_session("missing") is before

    def test_mark_exported(self, store):
        session_id = store.add_session("p")
        moment = datetime(2024, 1, 1, tzinfo=timezone.utc)

        store.mark_exported(session_id, moment)

        assert store.get_session(session_id).last_exported_at == moment

    def test_delete_protocol_removes_its_sessions(self, store):
        keep = store.add_session("p", protocol_uid="other")
        drop = store.add_session("p", protocol_uid="proto-1")

        store.dispatch(DeleteProtocol(protocol_uid="proto-1"))

        assert set(store.state.sessions) == {keep}
        assert store.get_session(drop) is None


class TestPromptNavigation:
    def test_next_prompt_wraps(self, store, active_session):
        store.next_prompt(prompt_count=3)
        assert store.get_session(active_session).prompt_index == 1

        store.next_prompt(prompt_count=3)
        store.next_prompt(prompt_count=3)
        assert store.get_session(active_session).prompt_index == 0

    def test_previous_prompt_wraps(self, store, active_session):
        store.previous_prompt(prompt_count=2)

        assert store.get_session(active_session).prompt_index == 1

    def test_without_prompts_is_noop(self, store, active_session):
        before = store.state

        assert store.next_prompt(prompt_count=0) is before


class TestNetworkRouting:
    def test_actions_default_to_active_session(self, store, active_session):
        uids = store.add_nodes({"type": "person", "attributes": {"name": "foo"}})

        network = store.get_session(active_session).network
        assert [n.uid for n in network.nodes] == uids == ["n1"]

    def test_add_nodes_with_uid_in_use_is_noop(self, store, active_session):
        uids = store.add_nodes({"type": "person"})
        before = store.state

        store.dispatch(
            AddNodes(session_id=active_session, nodes=[NodeDraft(type="person")], uids=uids)
        )

        assert store.state is before
        assert [n.uid for n in store.get_session(active_session).network.nodes] == uids

    def test_batch_add_nodes(self, store, active_session):
        uids = store.add_nodes([{"type": "person"}, {"type": "person"}])

        assert uids == ["n1", "n2"]
        assert len(store.get_session(active_session).network.nodes) == 2

    def test_no_active_session_is_noop(self, store):
        before = store.state

        assert store.add_nodes({"type": "person"}) == []
        assert store.remove_node("n1") is before

    def test_action_for_missing_session_is_noop(self, store, active_session):
        before = store.state

        after = store.dispatch(
            AddNodes(session_id="gone", nodes=[NodeDraft(type="person")], uids=["x"])
        )

        assert after is before

    def test_add_edge_returns_uid_or_none(self, store, active_session):
        a, b = store.add_nodes([{"type": "person"}, {"type": "person"}])

        assert store.add_edge({"from": a, "to": b, "type": "friend"}) == "n3"
        assert store.add_edge({"from": a, "to": "missing", "type": "friend"}) is None

    def test_remove_node_cascades_through_store(self, store, active_session):
        a, b = store.add_nodes([{"type": "person"}, {"type": "person"}])
        store.add_edge({"from": a, "to": b, "type": "friend"})

        store.remove_node(a)

        network = store.get_session(active_session).network
        assert [n.uid for n in network.nodes] == [b]
        assert network.edges == []

    def test_toggle_update_and_ego(self, store, active_session):
        (uid,) = store.add_nodes({"type": "person"})

        store.toggle_node_attributes(uid, {"close": True})
        store.update_node({"uid": uid, "attributes": {"name": "Ana"}})
        store.set_ego({"age": 33})

        network = store.get_session(active_session).network
        assert network.get_node(uid).attributes == {"close": True, "name": "Ana"}
        assert network.ego == {"age": 33}

    def test_remove_edge(self, store, active_session):
        a, b = store.add_nodes([{"type": "person"}, {"type": "person"}])
        store.add_edge({"from": a, "to": b, "type": "friend"})

        store.remove_edge({"from": a, "to": b, "type": "friend"})

        assert store.get_session(active_session).network.edges == []

    def test_sessions_are_isolated(self, store):
        first = store.add_session("a")
        second = store.add_session("b")
        store.add_nodes({"type": "person"}, session_id=second)
        untouched = store.get_session(second)

        uids = store.add_nodes([{"type": "person"}, {"type": "person"}], session_id=first)
        store.add_edge({"from": uids[0], "to": uids[1], "type": "friend"}, session_id=first)
        store.set_ego({"name": "A"}, session_id=first)
        store.remove_node(uids[0], session_id=first)

        assert store.get_session(second) is untouched
        assert len(store.get_session(second).network.nodes) == 1


class TestDispatch:
    def test_version_increments_on_change_only(self, store):
        session_id = store.add_session("p")
        assert store.state.version == 1

        store.dispatch(RemoveSession(session_id="missing"))
        assert store.state.version == 1

        store.dispatch(UpdatePrompt(session_id=session_id, prompt_index=1))
        assert store.state.version == 2

    def test_subscribers_notified_on_change(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda state: seen.append(state.version))

        store.add_session("p")
        store.remove_session("missing")
        unsubscribe()
        store.add_session("q")

        assert seen == [1]

    def test_unknown_action_rejected(self, store):
        with pytest.raises(TypeError):
            store.dispatch({"type": "ADD_SESSION", "session_id": "x", "path": "p"})

    def test_dispatch_after_dispose(self):
        store = SessionStore.create()
        store.dispose()

        with pytest.raises(StoreDisposedError):
            store.add_session("p")


def test_generated_session_ids_are_unique():
    ids = {generate_session_id() for _ in range(500)}

    assert len(ids) == 500
    assert all(SESSION_ID_PATTERN.match(i) for i in ids)


def test_generated_session_id_segment_lengths():
    head, tail = generate_session_id(head_length=4, tail_length=6).split("-")

    assert (len(head), len(tail)) == (4, 6)
