"""
System endpoint tests: health, device id, token validation, response
headers and the dashboard fallback.
"""

import httpx
import pytest
from sqlalchemy import text as sql_text


class TestHealth:

    def test_healthy(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "ok"
        assert data["deviceId"] == "test-device-0001"
        assert data["timestamp"].endswith("Z")
        assert data["checks"]["database"]["status"] == "healthy"

    def test_database_down(self, client, monkeypatch):
        from weighbridge.routes import system

        monkeypatch.setattr(system, "text", lambda _: sql_text("SELECT * FROM missing_table"))
        resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.get_json()["status"] == "unhealthy"


class TestDeviceId:

    def test_device_id(self, client):
        resp = client.get("/device-id")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["deviceId"] == "test-device-0001"
        assert "register" in data["message"]


class TestValidateToken:

    def test_valid(self, client, identity_responses):
        identity_responses.append((200, {"valid": True, "user_id": "u-7"}))
        resp = client.get("/api/validate-token?token=abc")
        assert resp.status_code == 200
        assert resp.get_json() == {"valid": True, "user_id": "u-7"}

    def test_invalid(self, client, identity_responses):
        identity_responses.append((200, {"valid": False}))
        resp = client.get("/api/validate-token?token=abc")
        assert resp.status_code == 401
        assert resp.get_json()["valid"] is False

    def test_missing_token(self, client):
        resp = client.get("/api/validate-token")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Token is required"

    def test_unreachable(self, client, identity_responses):
        identity_responses.append(httpx.ConnectTimeout("timed out"))
        resp = client.get("/api/validate-token?token=abc")
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "Failed to validate token"

    def test_garbage_body(self, client, app, monkeypatch):
        from weighbridge.services.identity_service import IdentityClient

        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))
        monkeypatch.setitem(
            app.extensions,
            "identity_client",
            IdentityClient("https://identity.test", "k", transport=transport),
        )
        assert client.get("/api/validate-token?token=abc").status_code == 500


class TestCors:

    def test_allowed_origin(self, client):
        resp = client.get("/health", headers={"Origin": "http://localhost:3000"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

    def test_other_origin(self, client):
        resp = client.get("/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestSecurityHeaders:

    @pytest.mark.parametrize("path", ["/health", "/api/weigh-tickets", "/api/weigh-tickets/424242"])
    def test_headers_on_every_response(self, client, path):
        resp = client.get(path)
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert resp.headers["Referrer-Policy"] == "no-referrer"


class TestFrontendFallback:

    @pytest.fixture
    def build_dir(self, app, tmp_path, monkeypatch):
        (tmp_path / "index.html").write_text("<div id=\"root\"></div>")
        (tmp_path / "static").mkdir()
        (tmp_path / "static" / "main.js").write_text("console.log(\"weighbridge\");")
        monkeypatch.setitem(app.config, "FRONTEND_BUILD_DIR", str(tmp_path))
        return tmp_path

    def test_no_build_dir(self, client):
        assert client.get("/tickets/12").status_code == 404

    def test_asset_served(self, client, build_dir):
        resp = client.get("/static/main.js")
        assert resp.status_code == 200
        assert b"weighbridge" in resp.data
        resp.close()

    def test_client_route_falls_back_to_index(self, client, build_dir):
        resp = client.get("/tickets/12")
        assert resp.status_code == 200
        assert b"root" in resp.data
        resp.close()

    def test_root_serves_index(self, client, build_dir):
        resp = client.get("/")
        assert resp.status_code == 200
        assert b"root" in resp.data
        resp.close()

    def test_unknown_api_path_is_not_index(self, client, build_dir):
        assert client.get("/api/nope").status_code == 404
