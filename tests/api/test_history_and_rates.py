"""Tests for the /rides history and /rates endpoints."""

import pytest

from taximeter.core.exceptions import NotFoundError


@pytest.mark.unit
class TestHistory:
    def test_list_rides(self, test_client, auth_headers):
        response = test_client.get("/rides", headers=auth_headers)

        assert response.status_code == 200
        rides = response.json()
        assert len(rides) == 1
        assert rides[0]["ride_id"] == "ride-123"
        assert rides[0]["start_fix"] is None
        assert rides[0]["summary"]["distance"] == "5.00 km"

    def test_empty_history(self, test_client, mock_meter_service, auth_headers):
        mock_meter_service.list_rides.return_value = []

        response = test_client.get("/rides", headers=auth_headers)

        assert response.json() == []

    def test_delete_ride(self, test_client, mock_meter_service, auth_headers):
        response = test_client.delete("/rides/1", headers=auth_headers)

        assert response.status_code == 204
        mock_meter_service.delete_ride.assert_awaited_once_with(1)

    def test_delete_missing_ride(self, test_client, mock_meter_service, auth_headers):
        mock_meter_service.delete_ride.side_effect = NotFoundError("Ride 9 not found")

        response = test_client.delete("/rides/9", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Ride 9 not found"


@pytest.mark.unit
class TestRates:
    def test_get_rates(self, test_client, auth_headers):
        response = test_client.get("/rates", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "base_fare": 50.0,
            "per_km_rate": 20.0,
            "per_minute_waiting_rate": 5.0,
            "minimum_fare": 100.0,
            "night_multiplier": 1.0,
        }

    def test_update_rates(self, test_client, mock_meter_service, auth_headers):
        payload = {
            "base_fare": 60,
            "per_km_rate": 25,
            "per_minute_waiting_rate": 6,
            "minimum_fare": 120,
            "night_multiplier": 1.5,
        }

        response = test_client.put("/rates", json=payload, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["night_multiplier"] == 1.5
        saved = mock_meter_service.update_rates.await_args.args[0]
        assert saved.minimum_fare == 120.0

    def test_negative_rate_rejected(self, test_client, mock_meter_service, auth_headers):
        payload = {
            "base_fare": -1,
            "per_km_rate": 25,
            "per_minute_waiting_rate": 6,
            "minimum_fare": 120,
        }

        response = test_client.put("/rates", json=payload, headers=auth_headers)

        assert response.status_code == 422
        mock_meter_service.update_rates.assert_not_awaited()
