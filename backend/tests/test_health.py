from onnibox import __version__

from .conftest import API


def test_health_needs_no_token(client):
    response = client.get(f"{API}/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["version"] == __version__
    assert body["uptime"] >= 0
