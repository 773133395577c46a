"""Tests for main application."""

from fastapi.testclient import TestClient

from app.main import app, create_app
from app.security import origin_allowed

client = TestClient(app)


def test_root_endpoint():
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "ai-portfolio-service"
    assert set(data["env"]) == {
        "OPEN_AI_KEY", "FINNHUB_API_KEY", "AI_SERVICE_KEY", "ALLOWED_ORIGINS", "node_env"
    }


def test_analyze_endpoint_registered():
    """Test that the analysis endpoint is registered."""
    registered = create_app()
    assert registered.url_path_for("analyze_portfolio") == "/analyze-portfolio"
    assert registered.url_path_for("health_check") == "/"
    assert "/analyze-portfolio" in registered.openapi()["paths"]


def test_origin_allowed():
    assert origin_allowed(None, ["https://good.example"])
    assert origin_allowed("https://evil.example", [])
    assert origin_allowed("https://good.example", ["https://good.example"])
    assert not origin_allowed("https://evil.example", ["https://good.example"])
