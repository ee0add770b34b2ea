"""Smoke tests for the FastAPI application."""


def test_health_endpoint(client) -> None:
    """Health endpoint should report the API and database as up."""

    response = client.get("/api/v1/health/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}


def test_unknown_route_is_404(client) -> None:
    response = client.get("/api/v1/nope")
    assert response.status_code == 404
