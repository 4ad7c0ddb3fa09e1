"""
Tests for the emissions formula engine.
"""
import math

import pytest

from curbcarbon.services.emissions import (
    AVERAGE_DEVICE_WATTS,
    BASELINE_INTENSITY,
    BYTES_PER_GB,
    BYTES_PER_MB,
    Telemetry,
    carbon_breakdown,
    carbon_rate,
    device_carbon,
    equivalencies,
    network_carbon,
    quick_insight,
    total_carbon,
    watts_for_device,
)


class TestNetworkCarbon:
    def test_one_gigabyte_at_baseline(self):
        # 1 GiB × 0.016 kWh/GB × 475 g/kWh
        assert network_carbon(BYTES_PER_GB) == 7.6

    def test_scales_with_intensity(self):
        assert network_carbon(BYTES_PER_GB, 950) == 15.2

    def test_zero_and_negative_bytes(self):
        assert network_carbon(0) == 0
        assert network_carbon(-1024) == 0

    def test_non_finite_bytes(self):
        assert network_carbon(float("nan")) == 0
        assert network_carbon(float("inf")) == 0
        assert network_carbon(None) == 0

    def test_invalid_intensity_falls_back_to_baseline(self):
        assert network_carbon(BYTES_PER_GB, 0) == network_carbon(BYTES_PER_GB)
        assert network_carbon(BYTES_PER_GB, -5) == network_carbon(BYTES_PER_GB)
        assert network_carbon(BYTES_PER_GB, float("nan")) == network_carbon(BYTES_PER_GB)


class TestDeviceCarbon:
    def test_one_hour_laptop_at_baseline(self):
        # 1 h × 0.020 kW × 475
        assert device_carbon(60, 20) == 9.5

    def test_default_watts_is_average(self):
        assert device_carbon(60) == device_carbon(60, AVERAGE_DEVICE_WATTS)

    def test_ten_minutes(self):
        assert device_carbon(10, 20) == 1.58

    def test_zero_minutes(self):
        assert device_carbon(0, 100) == 0

    def test_invalid_watts_fall_back_to_average(self):
        assert device_carbon(60, -3) == 9.5
        assert device_carbon(60, float("nan")) == 9.5


class TestTotalCarbon:
    def test_streaming_session(self):
        t = Telemetry(total_mb=500, video_mb=400, time_active=10)
        result = total_carbon(t, BASELINE_INTENSITY, 20)
        assert result == pytest.approx(5.30, abs=0.02)

    def test_video_is_not_charged_twice(self):
        with_video = Telemetry(total_mb=500, video_mb=500, time_active=10)
        without = Telemetry(total_mb=500, video_mb=0, time_active=10)
        assert total_carbon(with_video) == total_carbon(without)

    def test_all_zero_is_zero(self):
        assert total_carbon(Telemetry()) == 0

    def test_never_negative_or_nan(self):
        t = Telemetry(total_mb=-10, time_active=float("nan"))
        value = total_carbon(t, -1, -1)
        assert value == 0
        assert not math.isnan(value)

    def test_breakdown_sums(self):
        t = Telemetry(total_mb=1024, time_active=60)
        b = carbon_breakdown(t, BASELINE_INTENSITY, 20)
        assert b == {"network": 7.6, "device": 9.5, "total": 17.1}


class TestCarbonRate:
    def test_grams_per_active_hour(self):
        t = Telemetry(total_mb=1024, time_active=30)
        # network 7.6 + device 4.75 → 12.35 g over half an hour
        assert carbon_rate(t, BASELINE_INTENSITY, 20) == 24.7

    def test_zero_time_has_zero_rate(self):
        assert carbon_rate(Telemetry(total_mb=100)) == 0


class TestTelemetryPayload:
    def test_from_camel_case(self):
        t = Telemetry.from_payload({
            "totalMB": 12.5,
            "videoMB": 3,
            "timeActive": 4,
            "deviceWatts": 40,
            "carbonIntensity": 300,
        })
        assert t.total_mb == 12.5
        assert t.video_mb == 3
        assert t.time_active == 4
        assert t.device_watts == 40
        assert t.carbon_intensity == 300

    def test_garbage_fields_become_defaults(self):
        t = Telemetry.from_payload({"totalMB": "lots", "deviceWatts": 0, "carbonIntensity": -2})
        assert t.total_mb == 0
        assert t.device_watts is None
        assert t.carbon_intensity is None

    def test_to_payload_omits_unset_overrides(self):
        payload = Telemetry(total_mb=1).to_payload()
        assert payload == {"totalMB": 1, "videoMB": 0.0, "timeActive": 0.0}


class TestEquivalencies:
    def test_one_mile(self):
        eq = equivalencies(404)
        assert eq["miles_driven"] == 1.0
        assert eq["phones_charged"] == 45.91
        assert eq["trees_needed"] == 0.0192

    def test_negative_is_zero(self):
        assert equivalencies(-5) == {"miles_driven": 0, "phones_charged": 0, "trees_needed": 0}


class TestDeviceWatts:
    @pytest.mark.parametrize("device,watts", [
        ("phone", 5), ("tablet", 10), ("laptop", 20), ("desktop", 40), ("tv", 100),
    ])
    def test_known_devices(self, device, watts):
        assert watts_for_device(device) == watts

    def test_unknown_is_average(self):
        assert watts_for_device("fridge") == AVERAGE_DEVICE_WATTS
        assert watts_for_device(None) == AVERAGE_DEVICE_WATTS


class TestQuickInsight:
    def test_nothing_recorded(self):
        assert "No browsing" in quick_insight(0)

    def test_below_typical(self):
        assert quick_insight(250) == "Today's browsing is 75% below a typical day."

    def test_above_typical(self):
        assert quick_insight(1500) == "Today's browsing is 50% above a typical day."
