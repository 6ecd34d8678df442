"""
应用入口测试
"""
from fastapi.testclient import TestClient

from privacy_rules.main import app


def test_health_check():
    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_router_registered():
    paths = app.openapi()["paths"]
    assert "/api/projects/{project_id}/data-privacy-rules" in paths
    assert "/api/projects/{project_id}/data-privacy-rules/save" in paths
    assert "post" in paths["/api/projects/{project_id}/data-privacy-rules/cancel"]
