"""Tests for API key authentication and application lifecycle."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from taximeter.api.app import create_app

PROTECTED = [
    ("get", "/ride"),
    ("post", "/ride/start"),
    ("post", "/ride/stop"),
    ("get", "/rides"),
    ("delete", "/rides/1"),
    ("get", "/rates"),
]


@pytest.mark.unit
class TestAuthentication:
    @pytest.mark.parametrize("method, path", PROTECTED)
    def test_missing_key_rejected(self, test_client, method, path):
        response = getattr(test_client, method)(path)
        assert response.status_code == 422

    @pytest.mark.parametrize("method, path", PROTECTED)
    def test_wrong_key_rejected(self, test_client, method, path):
        response = getattr(test_client, method)(path, headers={"X-API-Key": "wrong"})
        assert response.status_code == 401

    def test_health_is_public(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "ride_active": True}

    def test_key_passed_to_app_takes_precedence(self, mock_meter_service):
        with patch.dict("os.environ", {"API_KEY": "env-key"}):
            client = TestClient(create_app(mock_meter_service, api_key="app-key"))

            assert client.get("/rates", headers={"X-API-Key": "app-key"}).status_code == 200
            assert client.get("/rates", headers={"X-API-Key": "env-key"}).status_code == 401

    def test_unconfigured_key(self, mock_meter_service, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        client = TestClient(create_app(mock_meter_service))

        response = client.get("/rates", headers={"X-API-Key": "anything"})

        assert response.status_code == 500


@pytest.mark.unit
class TestLifespan:
    def test_recovers_on_startup_and_shuts_down(self, mock_meter_service):
        app = create_app(mock_meter_service, api_key="k")

        with TestClient(app) as client:
            mock_meter_service.recover.assert_awaited_once()
            assert client.get("/health").status_code == 200

        mock_meter_service.shutdown.assert_awaited_once()
