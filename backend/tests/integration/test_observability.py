"""Integration tests for health, readiness and metrics endpoints"""

from factories import make_pdf


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["components"]["database"]["status"] == "healthy"
    assert body["components"]["attachment_storage"]["status"] == "healthy"


def test_health_reports_broken_storage(app, client):
    from paperflow.papers.dependencies import get_storage

    class BrokenStorage:
        def exists(self, storage_key):
            raise OSError("mount gone")

    app.dependency_overrides[get_storage] = lambda: BrokenStorage()

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["components"]["attachment_storage"]["status"] == "unhealthy"


def test_ready(client):
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_metrics_exposes_workflow_counters(client, auth_headers):
    client.post(
        "/api/v1/papers",
        data={"course_code": "CS101", "course_name": "Intro", "year": "2026", "semester": "1", "paper_type": "final"},
        files={"pdf": ("exam.pdf", make_pdf("A"), "application/pdf")},
        headers=auth_headers["lecturer"],
    )

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "paperflow_realtime_subscribers" in response.text
    assert 'paperflow_transitions_total{action="create",result="success"}' in response.text
