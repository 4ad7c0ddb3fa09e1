"""
Tests for error handling: structured error responses, HTTP status codes,
and the custom exception classes.
"""
from curbcarbon.core.errors import (
    CurbCarbonError,
    GoalNotSetError,
    GridIntensityError,
    InvalidGoalError,
    UnknownDeviceTypeError,
)


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    def test_goal_not_set(self):
        err = GoalNotSetError()
        assert err.http_status == 404
        assert err.code == "GOAL_NOT_SET"
        assert "details" not in err.to_dict()

    def test_invalid_goal_amount(self):
        err = InvalidGoalError(amount=-5)
        assert err.http_status == 422
        assert err.code == "INVALID_GOAL"
        assert err.to_dict()["details"] == {"amount": -5}

    def test_invalid_goal_non_finite_amount_is_serializable(self):
        err = InvalidGoalError(amount=float("-inf"))
        assert err.to_dict()["details"] == {"amount": "-inf"}

    def test_invalid_goal_preset(self):
        err = InvalidGoalError(preset="zero_waste")
        assert err.details == {"preset": "zero_waste"}

    def test_unknown_device_type(self):
        err = UnknownDeviceTypeError("toaster", ["auto", "phone"])
        assert err.http_status == 422
        assert "toaster" in err.message
        assert err.details["allowed"] == ["auto", "phone"]

    def test_grid_error_is_bad_gateway(self):
        err = GridIntensityError("upstream down", details={"status": 503})
        assert err.http_status == 502
        assert err.to_dict() == {
            "code": "GRID_INTENSITY_UNAVAILABLE",
            "message": "upstream down",
            "details": {"status": 503},
        }

    def test_all_subclass_base(self):
        for cls in (GoalNotSetError, InvalidGoalError, UnknownDeviceTypeError, GridIntensityError):
            assert issubclass(cls, CurbCarbonError)


# ---------------------------------------------------------------------------
# Error envelope over HTTP
# ---------------------------------------------------------------------------

class TestErrorResponses:
    def test_goal_progress_without_goal(self, client):
        r = client.get("/goal/progress")
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "GOAL_NOT_SET"
        assert "message" in body

    def test_unknown_preset(self, client):
        r = client.put("/goal", json={"preset": "zero_waste"})
        assert r.status_code == 422
        assert r.json()["code"] == "INVALID_GOAL"
        assert r.json()["details"]["preset"] == "zero_waste"

    def test_non_positive_amount(self, client):
        r = client.put("/goal", json={"amount": 0})
        assert r.status_code == 422
        assert r.json()["code"] == "INVALID_GOAL"

    def test_validation_error_envelope(self, client):
        r = client.post("/events", json={"totalMB": -1})
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "VALIDATION_ERROR"
        fields = [e["field"] for e in body["details"]["errors"]]
        assert "totalMB" in fields

    def test_goal_needs_exactly_one_field(self, client):
        r = client.put("/goal", json={"amount": 500, "preset": "average"})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_unknown_device(self, client):
        r = client.put("/settings/device", json={"device_type": "toaster"})
        assert r.status_code == 422
        assert r.json()["code"] == "UNKNOWN_DEVICE_TYPE"

    def test_bad_range(self, client):
        r = client.get("/summary/range", params={"range": "year"})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_overflowing_goal_amount(self, client):
        # 1e309 overflows to inf when parsed
        r = client.put(
            "/goal",
            content=b'{"amount": -1e309}',
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"
        assert client.get("/goal").status_code == 404

    def test_overflowing_telemetry_value(self, client):
        r = client.post(
            "/events",
            content=b'{"platform": "www.youtube.com", "totalMB": 1e309}',
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"
