"""
tests/test_health.py -- Integration tests for GET /health.

Covers:
  - 200 response with status and version
  - No authentication required
  - Unknown paths use the error envelope
"""

from __future__ import annotations

from api.main import VERSION


def test_health_returns_200(api_client):
    client, _ = api_client
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": VERSION}


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _ = api_client
    resp = client.get("/health", headers={})
    assert resp.status_code == 200


def test_unknown_path_uses_error_envelope(api_client):
    client, _ = api_client
    resp = client.get("/no-such-route")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"
