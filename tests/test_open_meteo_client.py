import datetime as dt
import unittest

from aperture.errors import ProviderPayloadError
from aperture.providers import http_session, open_meteo_client


class DummyResp:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self._payload


def _make_forecast_payload(hours: int = 48, days: int = 10):
    times = [f"2024-06-{1 + i // 24:02d}T{i % 24:02d}:00" for i in range(hours)]
    dates = [(dt.date(2024, 6, 1) + dt.timedelta(days=i)).isoformat() for i in range(days)]
    return {
        "hourly": {
            "time": times,
            "temperature_2m": [20.0 + (i % 5) for i in range(hours)],
            "precipitation_probability": [10] * hours,
            "weathercode": [2] * hours,
            "cloudcover": [40] * hours,
            "windgusts_10m": [8.0] * hours,
            "visibility": [24000.0] * hours,
            "windspeed_10m": [4.0] * hours,
            "winddirection_10m": [180] * hours,
        },
        "hourly_units": {
            "temperature_2m": "°C",
            "precipitation_probability": "%",
            "windspeed_10m": "m/s",
        },
        "daily": {
            "time": dates,
            "weathercode": [3] * days,
            "temperature_2m_max": [20.0 + 2 * i for i in range(days)],
            "temperature_2m_min": [10.0] * days,
            "uv_index_max": [6.5] * days,
            "precipitation_probability_max": [30] * days,
            "sunrise": [f"{d}T05:15" for d in dates],
            "sunset": [f"{d}T20:30" for d in dates],
        },
    }


class TestOpenMeteoClient(unittest.TestCase):
    def setUp(self):
        self._orig_session = http_session.session

    def tearDown(self):
        http_session.session = self._orig_session

    def test_fetch_forecast_requests_metric_units(self):
        calls = {}
        payload = _make_forecast_payload()

        class DummySession:
            def get(self, url, params=None, timeout=None):
                calls["url"] = url
                calls["params"] = params
                calls["timeout"] = timeout
                return DummyResp(payload)

        http_session.session = DummySession()
        data = open_meteo_client.fetch_forecast(43.07, -89.40, forecast_days=3, timeout=5)

        self.assertIs(data, payload)
        self.assertEqual(calls["url"], open_meteo_client.OPEN_METEO_WEATHER_URL)
        self.assertEqual(calls["params"]["windspeed_unit"], "ms")
        self.assertEqual(calls["params"]["temperature_unit"], "celsius")
        self.assertEqual(calls["params"]["forecast_days"], 3)
        self.assertEqual(calls["params"]["timezone"], "auto")
        self.assertIn("windspeed_180m", calls["params"]["hourly"])
        self.assertIn("uv_index_max", calls["params"]["daily"])
        self.assertEqual(calls["timeout"], 5)

    def test_fetch_air_quality_requests_us_aqi(self):
        calls = {}

        class DummySession:
            def get(self, url, params=None, timeout=None):
                calls["url"] = url
                calls["params"] = params
                return DummyResp({"hourly": {"us_aqi": [10, 20]}})

        data = open_meteo_client.fetch_air_quality(43.07, -89.40, http=DummySession())
        self.assertEqual(calls["url"], open_meteo_client.OPEN_METEO_AIR_URL)
        self.assertEqual(calls["params"]["hourly"], "us_aqi")
        self.assertEqual(open_meteo_client.hourly_us_aqi(data), [10, 20])

    def test_hourly_us_aqi_handles_missing_payload(self):
        self.assertEqual(open_meteo_client.hourly_us_aqi(None), [])
        self.assertEqual(open_meteo_client.hourly_us_aqi({"hourly": {}}), [])

    def test_unexpected_units_are_logged(self):
        payload = _make_forecast_payload()
        payload["hourly_units"]["windspeed_10m"] = "km/h"

        class DummySession:
            def get(self, url, params=None, timeout=None):
                return DummyResp(payload)

        with self.assertLogs("aperture.providers.open_meteo_client", level="WARNING") as captured:
            open_meteo_client.fetch_forecast(1.0, 2.0, http=DummySession())
        self.assertTrue(any("Unexpected Open-Meteo unit" in line for line in captured.output))

    def test_map_series_converts_and_truncates(self):
        series = open_meteo_client.map_open_meteo_series(_make_forecast_payload())

        self.assertEqual(series.name, "AeroSource")
        self.assertEqual(len(series.hourly), 24)
        self.assertEqual(len(series.daily), 10)
        self.assertEqual(series.daily[0].high_f, 68)
        self.assertEqual(series.daily[0].date, dt.date(2024, 6, 1))
        self.assertEqual(series.daily[0].summary, "Overcast")
        self.assertEqual(series.daily[0].sunrise, "2024-06-01T05:15")

        first = series.hourly[0]
        self.assertEqual(first.time, "00:00")
        self.assertEqual(series.hourly[13].time, "13:00")
        self.assertEqual(first.temp_f, 68)
        self.assertAlmostEqual(first.wind_speed_mph, 4.0 * 2.23694)
        self.assertAlmostEqual(first.wind_speed_kph, 14.4)
        self.assertEqual(first.summary, "Partly Cloudy")
        self.assertIsNone(series.aqi)
        self.assertTrue(series.disclaimer)

    def test_precipitation_is_clamped(self):
        payload = _make_forecast_payload(hours=3, days=2)
        payload["hourly"]["precipitation_probability"] = [120, -5, None]
        payload["daily"]["precipitation_probability_max"] = [101, None]

        series = open_meteo_client.map_open_meteo_series(payload)
        self.assertEqual([h.precip_chance for h in series.hourly], [100, 0, 0])
        self.assertEqual([d.precip_chance for d in series.daily], [100, 0])

    def test_short_columns_become_missing_readings(self):
        payload = _make_forecast_payload(hours=2, days=1)
        payload["hourly"]["temperature_2m"] = [21.0]
        series = open_meteo_client.map_open_meteo_series(payload)
        self.assertIsNone(series.hourly[1].temp_c)
        self.assertIsNone(series.hourly[1].temp_f)

    def test_malformed_payload_raises(self):
        with self.assertRaises(ProviderPayloadError):
            open_meteo_client.map_open_meteo_series({"hourly": {}})


if __name__ == "__main__":
    unittest.main()
