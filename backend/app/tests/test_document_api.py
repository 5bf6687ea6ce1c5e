"""
API tests for the protocol and sibling document routes.
"""

import json

import pytest

from app.config import settings
from app.routers.documents import VERSION_HEADER
from protocol_viewer import EditController


def upload(client, content: bytes, filename: str = "protocol.json", **params):
    return client.post(
        "/api/protocol/upload",
        params=params,
        files={"file": (filename, content, "application/json")},
    )


class TestServiceRoutes:
    """Tests for liveness and status routes."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "running" in response.text

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy", "version": "1.0.0"}

    def test_status(self, client):
        body = client.get("/status").json()
        assert body["success"] is True
        assert body["databaseStatus"] == "Connected"

    def test_cors_allowed_origin(self, client):
        response = client.options(
            "/api/protocol",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_cors_rejected_origin(self, client):
        response = client.get("/health", headers={"Origin": "https://evil.example"})
        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers


class TestProtocolUpload:
    """Tests for POST /api/protocol/upload."""

    def test_upload_normalizes_embedded_json(self, client):
        content = json.dumps({
            "General": '```json\n{"Phase": "3", "Blinded": "Yes"}\n```',
            "Title": "A Study",
        }).encode()
        response = upload(client, content)
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["version"] == 1
        assert response.json()["sections"] == 2

        stored = client.get("/api/protocol")
        assert stored.json() == {"General": {"Phase": 3, "Blinded": "Yes"}, "Title": "A Study"}
        assert stored.headers[VERSION_HEADER] == "1"

    def test_upload_with_bom(self, client):
        response = upload(client, b"\xef\xbb\xbf" + b'{"a": 1}')
        assert response.status_code == 200
        assert client.get("/api/protocol").json() == {"a": 1}

    @pytest.mark.parametrize("content, detail", [
        (b"", "Empty JSON file"),
        (b"   \n ", "Empty JSON file"),
        (b"{not json", "Invalid JSON format"),
        (b"\xff\xfe\xfa", "File is not valid UTF-8"),
        (b"[1, 2]", "Protocol JSON must be an object"),
        (b'{"General": {"Dose": NaN}}', "Invalid JSON format"),
        (b'{"a": Infinity}', "Invalid JSON format"),
        (b'{"a": -Infinity}', "Invalid JSON format"),
    ])
    def test_rejected_upload_keeps_document(self, client, content, detail):
        upload(client, b'{"kept": true}')
        response = upload(client, content)
        assert response.status_code == 400
        assert response.json()["detail"] == detail
        assert client.get("/api/protocol").json() == {"kept": True}

    def test_missing_file(self, client):
        response = client.post("/api/protocol/upload")
        assert response.status_code == 400
        assert response.json()["detail"] == "No file uploaded"

    def test_too_large(self, client, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", 8)
        response = upload(client, b'{"a": "0123456789"}')
        assert response.status_code == 413
        assert client.get("/api/protocol").status_code == 404


class TestProtocolDocument:
    """Tests for GET/POST/PUT/DELETE /api/protocol."""

    def test_not_found(self, client):
        response = client.get("/api/protocol")
        assert response.status_code == 404
        assert response.json()["detail"] == "No protocol data found"

    @pytest.mark.parametrize("method", ["post", "put"])
    def test_save_stores_body_as_sent(self, client, method):
        body = {"Countries": "[\"US\"]", "General": {"Phase": 3}}
        response = getattr(client, method)("/api/protocol", json=body)
        assert response.status_code == 200
        assert response.json()["version"] == 1
        assert client.get("/api/protocol").json() == body

    def test_save_rejects_non_object(self, client):
        response = client.post("/api/protocol", json=["a"])
        assert response.status_code == 400

    def test_save_rejects_invalid_json(self, client):
        response = client.post(
            "/api/protocol", content=b"{oops", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid JSON format"

    @pytest.mark.parametrize("content", [b'{"a": Infinity}', b'{"a": [NaN]}'])
    def test_save_rejects_non_json_numbers(self, client, content):
        client.post("/api/protocol", json={"kept": True})
        response = client.post("/api/protocol", content=content, headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid JSON format"
        assert client.get("/api/protocol").json() == {"kept": True}

    def test_clear(self, client):
        client.post("/api/protocol", json={"a": 1})
        response = client.delete("/api/protocol")
        assert response.status_code == 200
        assert response.json()["version"] == 2
        assert client.get("/api/protocol").json() == {}

    def test_last_write_wins_by_default(self, client):
        client.post("/api/protocol", json={"a": 1})
        client.post("/api/protocol", json={"a": 2})
        assert client.get("/api/protocol").json() == {"a": 2}

    def test_expected_version(self, client):
        client.post("/api/protocol", json={"a": 1})
        ok = client.put("/api/protocol", params={"expected_version": 1}, json={"a": 2})
        assert ok.status_code == 200
        stale = client.put("/api/protocol", params={"expected_version": 1}, json={"a": 3})
        assert stale.status_code == 409
        assert client.get("/api/protocol").json() == {"a": 2}

    def test_section_edit_round_trip(self, client):
        """Upload, edit one section, save, re-fetch: the edited document comes back."""
        upload(client, json.dumps({
            "General": {"Protocol": "ABC-1", "Blinded": "Yes"},
            "Visit Schedule": [{"Visit": "V1", "KitType": "A"}],
            "Schema": {"version": 2},
        }).encode())
        document = client.get("/api/protocol").json()

        controller = EditController()
        controller.begin("General", document["General"]).toggle("Blinded")
        edited = controller.save(document)

        assert client.put("/api/protocol", json=edited).status_code == 200
        refetched = client.get("/api/protocol").json()
        assert refetched == edited
        assert refetched["Visit Schedule"] == document["Visit Schedule"]
        assert refetched["General"]["Blinded"] == "No"


class TestSiblingDocuments:
    """Tests for the fixed-shape document routes."""

    @pytest.mark.parametrize("path, detail", [
        ("/api/rtsm-info", "No RTSM info found"),
        ("/api/roles-access", "No roles found"),
        ("/api/inventory-defaults", "No inventory found"),
        ("/api/drug-ordering-resupply", "No drug ordering resupply data found"),
    ])
    def test_not_found(self, client, path, detail):
        response = client.get(path)
        assert response.status_code == 404
        assert response.json()["detail"] == detail

    def test_rtsm_info_round_trip(self, client):
        body = {
            "protocolNumber": "ABC-123",
            "protocolDescription": "A Phase 3 Study",
            "builtOn": "Elosity",
            "formData": {"Sites": {"count": 12}},
        }
        response = client.post("/api/rtsm-info", json=body)
        assert response.status_code == 200
        assert response.json()["data"] == body
        assert client.get("/api/rtsm-info").json() == body

    def test_rtsm_info_single_latest(self, client):
        client.post("/api/rtsm-info", json={"protocolNumber": "A"})
        client.post("/api/rtsm-info", json={"protocolNumber": "B"})
        stored = client.get("/api/rtsm-info")
        assert stored.json()["protocolNumber"] == "B"
        assert stored.headers[VERSION_HEADER] == "2"

    def test_invalid_built_on(self, client):
        response = client.post("/api/rtsm-info", json={"builtOn": "Other"})
        assert response.status_code == 422
        assert response.json()["detail"][0]["loc"] == ["builtOn"]

    def test_unknown_fields_dropped(self, client):
        client.put("/api/roles-access", json={
            "systemRoles": [{"roleType": "QA", "permissionLevel": "CW", "blindedStatus": "Blinded"}],
            "roleMatrix": [{"addingUser": "Study Manager", "allowedRoles": ["QA"]}],
            "_id": "abc",
        })
        stored = client.get("/api/roles-access").json()
        assert "_id" not in stored
        assert stored["systemRoles"][0]["blindedStatus"] == "Blinded"
        assert stored["systemRoles"][0]["prmRole"] == ""

    def test_inventory_round_trip(self, client):
        body = {
            "studyRows": [{"data": "Lookout Days", "default": "21", "limit": "N/A"}],
            "siteRows": [],
            "invRows": [{"data": "Do Not Ship", "default": "See req."}],
            "supplyRows": [],
            "returnRows": [{"depotId": "98", "location": "US", "shipsCountries": "US", "address": "Durham"}],
        }
        assert client.put("/api/inventory-defaults", json=body).status_code == 200
        assert client.get("/api/inventory-defaults").json() == body

    def test_drug_ordering_partial_body(self, client):
        response = client.post("/api/drug-ordering-resupply", json={"manualLotsToDisplay": "100"})
        data = response.json()["data"]
        assert data["manualLotsToDisplay"] == "100"
        assert data["kitStatusInExpiry"]["qOnSite"] is False

    def test_sibling_conflict(self, client):
        client.post("/api/roles-access", json={})
        response = client.post("/api/roles-access", params={"expected_version": 5}, json={})
        assert response.status_code == 409

    def test_sibling_rejects_non_object(self, client):
        assert client.post("/api/inventory-defaults", json=[1]).status_code == 400

    def test_sibling_rejects_non_json_numbers(self, client):
        response = client.post(
            "/api/rtsm-info", content=b'{"formData": {"dose": NaN}}', headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert client.get("/api/rtsm-info").status_code == 404


class TestDefaultsRoutes:
    """Tests for seed defaults."""

    def test_roles_defaults(self, client):
        response = client.get("/api/defaults/roles-access")
        assert response.status_code == 200
        assert len(response.json()["systemRoles"]) == 10

    def test_protocol_has_none(self, client):
        assert client.get("/api/defaults/protocol").status_code == 404

    def test_unknown_kind(self, client):
        response = client.get("/api/defaults/patients")
        assert response.status_code == 404
        assert response.json()["detail"] == "Unknown document kind: patients"

    def test_known_roles(self, client):
        assert len(client.get("/api/known-roles").json()["roles"]) == 10
