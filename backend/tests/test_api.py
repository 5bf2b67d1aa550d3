"""Tests for the HTTP API."""


def _inbound(client, device_id="device-b", device_name="PC-B"):
    resp = client.post("/api/join-requests/inbound", json={"device_id": device_id, "device_name": device_name})
    assert resp.status_code == 201
    return resp.json()


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestDiscoveryRoutes:
    def test_status_reports_device_identity(self, client):
        resp = client.get("/api/discovery/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data == {
            "initialized": True,
            "publishing": False,
            "discovering": False,
            "device_id": "device-admin",
            "device_name": "Mac-A",
            "family_id": None,
        }

    def test_publish_and_stop(self, client, network):
        resp = client.post("/api/discovery/publish", json={"family_id": "fam-1", "family_name": "Smith Family"})
        assert resp.status_code == 202
        assert resp.json()["publishing"] is True
        assert resp.json()["family_id"] == "fam-1"
        assert "Smith Family-fam-1" in network.advertisements

        resp = client.delete("/api/discovery/publish")
        assert resp.status_code == 204
        assert network.advertisements == {}
        assert client.get("/api/discovery/status").json()["publishing"] is False

    def test_publish_requires_names(self, client):
        resp = client.post("/api/discovery/publish", json={"family_id": "", "family_name": "Smith Family"})
        assert resp.status_code == 422

    def test_publish_failure_is_reported_in_flags(self, client, network):
        network.capabilities["Mac-A.local"].publish_error = OSError("multicast unavailable")

        resp = client.post("/api/discovery/publish", json={"family_id": "fam-1", "family_name": "Smith Family"})

        assert resp.status_code == 202
        assert resp.json()["publishing"] is False
        assert client.get("/api/sync/status").json()["error"] == "multicast unavailable"

    def test_browse_and_list_families(self, client, network, foreign):
        resp = client.post("/api/discovery/browse")
        assert resp.status_code == 202
        assert resp.json()["discovering"] is True

        network.announce(foreign(host="pc-j.local", familyId="fam-2", familyName="Jones Family", adminDeviceName="PC-J"))

        families = client.get("/api/discovery/families").json()
        assert len(families) == 1
        assert families[0]["id"] == "fam-2"
        assert families[0]["name"] == "Jones Family"
        assert families[0]["admin_device_name"] == "PC-J"
        assert families[0]["host"] == "pc-j.local"
        assert families[0]["port"] == 45678

        assert client.delete("/api/discovery/browse").status_code == 204
        assert client.get("/api/discovery/families").json() == []


class TestJoinRequestRoutes:
    def test_create_join_request(self, client):
        resp = client.post("/api/join-requests/", json={"family_id": "fam-9"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "pending"
        assert data["family_id"] == "fam-9"
        assert data["device_id"] == "device-admin"

    def test_inbound_and_list_pending(self, client):
        request = _inbound(client)
        assert request["status"] == "pending"

        pending = client.get("/api/join-requests/").json()
        assert [r["id"] for r in pending] == [request["id"]]

    def test_get_join_request(self, client):
        request = _inbound(client)
        resp = client.get(f"/api/join-requests/{request['id']}")
        assert resp.status_code == 200
        assert resp.json()["device_name"] == "PC-B"

    def test_get_unknown_join_request(self, client):
        assert client.get("/api/join-requests/nope").status_code == 404

    def test_approve(self, client):
        request = _inbound(client)

        resp = client.post(f"/api/join-requests/{request['id']}/approve", json={
            "role": "viewer",
            "family_id": "fam-1",
            "family_name": "Smith Family",
        })

        assert resp.status_code == 200
        approval = resp.json()
        assert approval["approved"] is True
        assert approval["role"] == "viewer"
        assert approval["sync_token"]
        stored = client.get(f"/api/join-requests/{request['id']}").json()
        assert stored["status"] == "approved"
        assert stored["assigned_role"] == "viewer"
        assert client.get("/api/join-requests/").json() == []

    def test_approve_defaults_to_member(self, client):
        request = _inbound(client)
        resp = client.post(f"/api/join-requests/{request['id']}/approve", json={
            "family_id": "fam-1",
            "family_name": "Smith Family",
        })
        assert resp.json()["role"] == "member"

    def test_approve_invalid_role(self, client):
        request = _inbound(client)
        resp = client.post(f"/api/join-requests/{request['id']}/approve", json={
            "role": "owner",
            "family_id": "fam-1",
            "family_name": "Smith Family",
        })
        assert resp.status_code == 422

    def test_approve_unknown_is_404(self, client):
        resp = client.post("/api/join-requests/nope/approve", json={"family_id": "fam-1", "family_name": "Smith"})
        assert resp.status_code == 404

    def test_approve_processed_is_400(self, client):
        request = _inbound(client)
        client.post(f"/api/join-requests/{request['id']}/reject")

        resp = client.post(f"/api/join-requests/{request['id']}/approve", json={
            "family_id": "fam-1",
            "family_name": "Smith Family",
        })

        assert resp.status_code == 400
        assert "rejected" in resp.json()["detail"]

    def test_reject(self, client):
        request = _inbound(client)

        resp = client.post(f"/api/join-requests/{request['id']}/reject")

        assert resp.status_code == 200
        assert resp.json() == {"request_id": request["id"], "rejected": True}
        assert client.post(f"/api/join-requests/{request['id']}/reject").status_code == 400
        assert client.post("/api/join-requests/nope/reject").status_code == 404

    def test_delete_join_request(self, client):
        request = _inbound(client)

        assert client.delete(f"/api/join-requests/{request['id']}").status_code == 204
        assert client.get(f"/api/join-requests/{request['id']}").status_code == 404
        # Removing an unknown request is not an error
        assert client.delete(f"/api/join-requests/{request['id']}").status_code == 204

    def test_roles(self, client):
        roles = client.get("/api/join-requests/roles").json()
        assert [r["role"] for r in roles] == ["admin", "member", "viewer"]
        assert roles[2]["label"] == "Viewer"


class TestSyncRoutes:
    def test_status_follows_discovery_activity(self, client):
        assert client.get("/api/sync/status").json()["status"] == "offline"

        client.post("/api/discovery/browse")
        data = client.get("/api/sync/status").json()
        assert data["status"] == "discovering"
        assert data["status_text"] == "Discovering devices..."

        client.delete("/api/discovery/browse")
        assert client.get("/api/sync/status").json()["status"] == "offline"

    def test_set_status(self, client):
        resp = client.put("/api/sync/status", json={"status": "syncing"})
        assert resp.status_code == 200
        assert resp.json()["status_text"] == "Syncing..."
        assert client.put("/api/sync/status", json={"status": "sleeping"}).status_code == 422

    def test_peer_lifecycle(self, client):
        resp = client.post("/api/sync/peers", json={"device_id": "device-b", "device_name": "PC-B"})
        assert resp.status_code == 201
        assert resp.json()["status"] == "connecting"

        summary = client.post("/api/sync/peers/device-b/connection", json={"state": "connected"}).json()
        assert summary["status"] == "connected"
        assert summary["status_text"] == "1 device connected"

        resp = client.patch("/api/sync/peers/device-b", json={"device_name": "PC-B (Office)"})
        assert resp.status_code == 200
        assert resp.json()["device_name"] == "PC-B (Office)"
        assert resp.json()["status"] == "connected"

        summary = client.post("/api/sync/peers/device-b/connection", json={"state": "disconnected"}).json()
        assert summary["status"] == "offline"
        assert summary["peer_count"] == 1

        assert client.delete("/api/sync/peers/device-b").status_code == 204
        assert client.get("/api/sync/peers").json() == []

    def test_unknown_peer(self, client):
        assert client.patch("/api/sync/peers/ghost", json={"status": "connected"}).status_code == 404
        assert client.delete("/api/sync/peers/ghost").status_code == 404
