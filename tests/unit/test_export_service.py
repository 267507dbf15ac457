"""Tests for session export."""

import json

import networkx as nx
import pytest

from interviewer.core.config import ExportConfig
from interviewer.core.exceptions import ExportError, SessionNotFoundError
from interviewer.services.export_service import ExportService, session_to_graph


@pytest.fixture
def exported_store(store):
    session_id = store.add_session("p", protocol_uid="proto-1", case_id="case-7")
    uids = store.add_nodes(
        [
            {"type": "person", "attributes": {"name": "Ana", "tags": ["a", "b"]}},
            {"type": "person", "attributes": {"name": "Bo", "age": None}},
        ],
        session_id=session_id,
    )
    store.add_edge({"from": uids[0], "to": uids[1], "type": "friend"}, session_id=session_id)
    store.set_ego({"name": "me"}, session_id=session_id)
    return store, session_id


class TestSessionToGraph:
    def test_nodes_edges_and_graph_data(self, exported_store):
        store, session_id = exported_store

        graph = session_to_graph(store.get_session(session_id))

        assert graph.graph["session_id"] == session_id
        assert graph.graph["protocol_uid"] == "proto-1"
        assert graph.graph["ego_name"] == "me"
        assert graph.nodes["n1"] == {"node_type": "person", "name": "Ana", "tags": '["a", "b"]'}
        assert "age" not in graph.nodes["n2"]
        assert graph.edges["n1", "n2", "n3"]["edge_type"] == "friend"

    def test_attributes_named_like_graph_keywords(self, store):
        session_id = store.add_session("p")
        uids = store.add_nodes(
            [
                {"type": "person", "attributes": {"node_type": "x", "name": "Ana"}},
                {"type": "person"},
            ],
            session_id=session_id,
        )
        edge_uid = store.add_edge(
            {"from": uids[0], "to": uids[1], "type": "friend", "attributes": {"key": 1, "edge_type": "y"}},
            session_id=session_id,
        )

        graph = session_to_graph(store.get_session(session_id))

        assert graph.nodes[uids[0]] == {"node_type": "person", "name": "Ana"}
        assert graph.edges[uids[0], uids[1], edge_uid] == {"key": 1, "edge_type": "friend"}

    def test_graphml_export_with_keyword_attributes(self, store):
        session_id = store.add_session("p")
        store.add_nodes({"type": "person", "attributes": {"node_type": "x"}}, session_id=session_id)

        document = ExportService(store).export_session(session_id, "graphml")

        assert "person" in document

    def test_ego_can_be_left_out(self, exported_store):
        store, session_id = exported_store

        graph = session_to_graph(store.get_session(session_id), include_ego=False)

        assert "ego_name" not in graph.graph


class TestExportService:
    def test_graphml_round_trips_through_networkx(self, exported_store):
        store, session_id = exported_store

        document = ExportService(store).export_session(session_id, "graphml")
        graph = nx.parse_graphml(document, force_multigraph=True)

        assert set(graph.nodes) == {"n1", "n2"}
        assert graph.number_of_edges() == 1

    def test_json_export(self, exported_store):
        store, session_id = exported_store
        service = ExportService(store, ExportConfig(include_ego=False, prettyprint=False))

        data = json.loads(service.export_session(session_id, "json"))

        assert data["case_id"] == "case-7"
        assert "ego" not in data["network"]
        assert data["network"]["edges"][0]["from"] == "n1"

    def test_export_marks_session_exported(self, exported_store):
        store, session_id = exported_store
        assert not store.get_session(session_id).is_exported

        ExportService(store).export_session(session_id)

        assert store.get_session(session_id).is_exported

    def test_unknown_session(self, store):
        with pytest.raises(SessionNotFoundError):
            ExportService(store).export_session("missing")

    def test_unknown_format_does_not_mark_exported(self, exported_store):
        store, session_id = exported_store

        with pytest.raises(ExportError):
            ExportService(store).export_session(session_id, "csv")

        assert not store.get_session(session_id).is_exported
