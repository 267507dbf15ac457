"""Integration tests for API endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from interviewer.main import create_app
from interviewer.persistence.protocol_storage import FilesystemProtocolStorage


@pytest.fixture
def protocols_root(tmp_path):
    for key in ("proto-1", "proto-2"):
        (tmp_path / key).mkdir()
    return tmp_path


@pytest.fixture
async def client(store, protocols_root):
    app = create_app(store=store, storage=FilesystemProtocolStorage(protocols_root))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def session_id(client):
    response = await client.post("/sessions", json={"case_id": "case-1"})
    return response.json()["session_id"]


@pytest.mark.asyncio
async def test_root_endpoint(client):
    """Root endpoint returns basic info."""
    response = await client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Interviewer Store"
    assert data["status"] == "running"
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_health_endpoints(client, store):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["components"]["store"]["sessions"] == 0
    assert (await client.get("/health/ready")).status_code == 200

    store.dispose()

    assert (await client.get("/health/ready")).status_code == 503


class TestSessionEndpoints:
    @pytest.mark.asyncio
    async def test_create_session(self, client):
        response = await client.post("/sessions", json={"protocol_uid": "proto-1"})

        assert response.status_code == 201
        data = response.json()
        assert data["session_id"] == "s1-a"
        assert data["path"] == "/session/s1-a"
        assert data["node_count"] == 0

    @pytest.mark.asyncio
    async def test_unknown_session_is_404(self, client):
        response = await client.get("/sessions/missing")

        assert response.status_code == 404
        assert response.json()["error"]["type"] == "SessionNotFoundError"

    @pytest.mark.asyncio
    async def test_set_active_and_list(self, client, session_id):
        response = await client.put("/sessions/active", json={"session_id": session_id})

        assert response.status_code == 200
        assert response.json()["active_session_id"] == session_id
        assert response.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_prompt_and_stage(self, client, session_id):
        await client.put(f"/sessions/{session_id}/prompt", json={"prompt_index": 2})
        response = await client.put(f"/sessions/{session_id}/stage", json={"stage_index": 1})

        assert response.json()["stage_index"] == 1
        assert response.json()["prompt_index"] == 0

    @pytest.mark.asyncio
    async def test_delete_session_is_idempotent(self, client, session_id):
        assert (await client.delete(f"/sessions/{session_id}")).status_code == 204
        assert (await client.delete(f"/sessions/{session_id}")).status_code == 204
        assert (await client.get(f"/sessions/{session_id}")).status_code == 404


class TestNetworkEndpoints:
    @pytest.mark.asyncio
    async def test_build_and_edit_network(self, client, session_id):
        response = await client.post(
            f"/sessions/{session_id}/nodes",
            json={
                "nodes": [
                    {"type": "person", "attributes": {"name": "Ana"}},
                    {"type": "person", "attributes": {"name": "Bo"}},
                ],
                "additional_attributes": {"close_friend": True},
                "prompt_id": "prompt-1",
            },
        )
        assert response.status_code == 201
        first, second = response.json()["uids"]

        response = await client.post(
            f"/sessions/{session_id}/edges", json={"from": first, "to": second, "type": "friend"}
        )
        assert response.json()["uid"] is not None

        response = await client.post(
            f"/sessions/{session_id}/edges", json={"from": first, "to": "ghost", "type": "friend"}
        )
        assert response.json()["uid"] is None

        response = await client.patch(
            f"/sessions/{session_id}/nodes/{first}", json={"attributes": {"name": "Anna"}}
        )
        node = response.json()["nodes"][0]
        assert node["attributes"] == {"name": "Anna", "close_friend": True}
        assert node["prompt_ids"] == ["prompt-1"]

        response = await client.delete(f"/sessions/{session_id}/nodes/{second}")
        network = response.json()
        assert [n["uid"] for n in network["nodes"]] == [first]
        assert network["edges"] == []

    @pytest.mark.asyncio
    async def test_toggle_and_ego(self, client, session_id):
        uids = (
            await client.post(f"/sessions/{session_id}/nodes", json={"nodes": [{"type": "person"}]})
        ).json()["uids"]

        await client.post(f"/sessions/{session_id}/nodes/{uids[0]}/toggle", json={"attributes": {"x": 1}})
        response = await client.post(
            f"/sessions/{session_id}/nodes/{uids[0]}/toggle", json={"attributes": {"x": 1}}
        )
        assert response.json()["nodes"][0]["attributes"] == {"x": None}

        await client.put(f"/sessions/{session_id}/ego", json={"attributes": {"a": 1}})
        response = await client.put(
            f"/sessions/{session_id}/ego", json={"attributes": {"b": 2}, "merge": True}
        )
        assert response.json()["ego"] == {"a": 1, "b": 2}

    @pytest.mark.asyncio
    async def test_remove_edge_by_endpoints(self, client, session_id):
        first, second = (
            await client.post(
                f"/sessions/{session_id}/nodes", json={"nodes": [{"type": "p"}, {"type": "p"}]}
            )
        ).json()["uids"]
        await client.post(f"/sessions/{session_id}/edges", json={"from": first, "to": second, "type": "k"})

        response = await client.post(
            f"/sessions/{session_id}/edges/remove", json={"from": first, "to": second, "type": "k"}
        )

        assert response.json()["edges"] == []

    @pytest.mark.asyncio
    async def test_export_marks_session(self, client, session_id):
        response = await client.post(f"/sessions/{session_id}/export?format=json")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        session = (await client.get(f"/sessions/{session_id}")).json()
        assert session["last_exported_at"] is not None


class TestProtocolEndpoints:
    @pytest.mark.asyncio
    async def test_install_and_list(self, client, protocol_data):
        response = await client.post("/protocols", json={**protocol_data, "uid": "proto-1"})

        assert response.status_code == 200
        assert response.json()["state"] == "proceed"
        assert response.json()["key"] == "proto-1"

        listing = (await client.get("/protocols")).json()
        assert listing["total"] == 1
        assert listing["protocols"][0]["name"] == "Friendship study"

    @pytest.mark.asyncio
    async def test_invalid_protocol_is_400(self, client):
        response = await client.post("/protocols", json={"uid": "proto-1", "name": ""})

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "ProtocolSchemaError"

    @pytest.mark.asyncio
    async def test_reinstall_needs_confirmation(self, client, protocol_data, protocols_root):
        await client.post("/protocols", json={**protocol_data, "uid": "proto-1"})
        session_id = (await client.post("/sessions", json={"protocol_uid": "proto-1"})).json()["session_id"]
        await client.post(f"/sessions/{session_id}/export?format=json")

        declined = await client.post("/protocols", json={**protocol_data, "uid": "proto-2"})
        assert declined.status_code == 409
        assert declined.json()["error"]["type"] == "InstallationCancelledError"

        confirmed = await client.post("/protocols?confirm=true", json={**protocol_data, "uid": "proto-2"})
        assert confirmed.status_code == 200
        assert confirmed.json()["key"] == "proto-1"
        assert confirmed.json()["dialogs"] == ["Delete protocol and sessions?"]
        assert not (protocols_root / "proto-2").exists()
        assert (protocols_root / "proto-1").is_dir()

    @pytest.mark.asyncio
    async def test_delete_protocol(self, client, protocol_data, protocols_root):
        await client.post("/protocols", json={**protocol_data, "uid": "proto-1"})
        session_id = (await client.post("/sessions", json={"protocol_uid": "proto-1"})).json()["session_id"]

        declined = await client.delete("/protocols/proto-1")
        assert declined.json()["deleted"] is False

        response = await client.delete("/protocols/proto-1?confirm=true")
        assert response.json() == {
            "deleted": True,
            "dialogs": ["Interviews using protocol have not been exported"],
        }
        assert (await client.get(f"/sessions/{session_id}")).status_code == 404
        assert not (protocols_root / "proto-1").exists()

    @pytest.mark.asyncio
    async def test_delete_unknown_protocol_is_404(self, client):
        assert (await client.delete("/protocols/missing")).status_code == 404
