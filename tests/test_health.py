from unittest.mock import patch


def test_health_reports_services(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert "timeStamp" in body
    assert body["services"]["database"]["status"] == "healthy"
    assert body["services"]["database"]["details"]["isConnected"] is True
    assert body["services"]["server"]["uptime"] >= 0
    assert body["services"]["server"]["memoryUsage"]["maxRss"] > 0


def test_health_is_503_when_database_is_down(client, database):
    with patch.object(database, "ping", return_value=False):
        response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["services"]["database"]["status"] == "unhealthy"


def test_root(client):
    body = client.get("/").json()

    assert body["app_name"] == "Learnify"
    assert body["environment"] == "development"
