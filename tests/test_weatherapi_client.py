import unittest

import requests

from aperture.config import Settings
from aperture.errors import ProviderPayloadError
from aperture.providers import weatherapi_client


class DummyResp:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: ...?key=secret", response=self)

    def json(self):
        return self._payload


class DummySession:
    def __init__(self, resp):
        self.resp = resp
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        return self.resp


class ExplodingSession:
    def get(self, *args, **kwargs):
        raise AssertionError("no request expected")


def _hour(date: str, hour: int, **overrides):
    entry = {
        "time": f"{date} {hour:02d}:00",
        "temp_c": 18.0,
        "temp_f": 64.4,
        "chance_of_rain": 10,
        "chance_of_snow": 0,
        "cloud": 50,
        "wind_mph": 7.0,
        "wind_kph": 11.3,
        "condition": {"text": "Partly cloudy"},
    }
    entry.update(overrides)
    return entry


def _make_payload(first_day_hours=range(4, 24)):
    return {
        "forecast": {
            "forecastday": [
                {
                    "date": "2024-06-01",
                    "day": {
                        "maxtemp_c": 22.0,
                        "maxtemp_f": 71.6,
                        "mintemp_c": 12.0,
                        "mintemp_f": 53.6,
                        "daily_chance_of_rain": 0,
                        "daily_chance_of_snow": 30,
                        "condition": {"text": "Light snow"},
                    },
                    "astro": {"sunrise": "05:16 AM", "sunset": "08:29 PM"},
                    "hour": [_hour("2024-06-01", h) for h in first_day_hours],
                },
                {
                    "date": "2024-06-02",
                    "day": {
                        "maxtemp_c": 24.0,
                        "maxtemp_f": 75.2,
                        "mintemp_c": 13.0,
                        "mintemp_f": 55.4,
                        "daily_chance_of_rain": 60,
                        "daily_chance_of_snow": 0,
                        "condition": {"text": "Patchy rain"},
                    },
                    "astro": {"sunrise": "05:15 AM", "sunset": "08:30 PM"},
                    "hour": [_hour("2024-06-02", h) for h in range(24)],
                },
            ]
        }
    }


class TestMapWeatherApiSeries(unittest.TestCase):
    def test_flattens_hours_across_days(self):
        series = weatherapi_client.map_weatherapi_series(_make_payload())
        self.assertEqual(series.name, "SkyLink")
        self.assertEqual(len(series.hourly), 24)
        self.assertEqual(series.hourly[0].time, "04:00")
        self.assertEqual(series.hourly[20].time, "00:00")
        self.assertEqual(series.hourly[-1].time, "03:00")

    def test_daily_fields(self):
        series = weatherapi_client.map_weatherapi_series(_make_payload())
        self.assertEqual(len(series.daily), 2)
        first = series.daily[0]
        self.assertEqual(first.high_f, 71.6)
        self.assertEqual(first.summary, "Light snow")
        self.assertEqual(first.sunrise, "05:16 AM")
        self.assertEqual(first.precip_chance, 30)
        self.assertEqual(series.daily[1].precip_chance, 60)

    def test_every_sample_gets_default_code(self):
        series = weatherapi_client.map_weatherapi_series(_make_payload())
        self.assertTrue(all(h.weathercode == 0 for h in series.hourly))
        self.assertTrue(all(d.weathercode == 0 for d in series.daily))

    def test_chance_falls_back_to_snow_then_zero(self):
        payload = _make_payload(first_day_hours=range(3))
        hours = payload["forecast"]["forecastday"][0]["hour"]
        hours[0].update(chance_of_rain=0, chance_of_snow=30)
        hours[1].update(chance_of_rain=None, chance_of_snow=None)
        hours[2].update(chance_of_rain=150)

        series = weatherapi_client.map_weatherapi_series(payload)
        self.assertEqual([h.precip_chance for h in series.hourly[:3]], [30, 0, 100])

    def test_malformed_payload_raises(self):
        with self.assertRaises(ProviderPayloadError):
            weatherapi_client.map_weatherapi_series({"forecast": {}})


class TestFetchWeatherApiSeries(unittest.TestCase):
    def test_missing_key_is_absent_without_request(self):
        result = weatherapi_client.fetch_weatherapi_series(
            1.0, 2.0, settings=Settings(weatherapi_key=None), http=ExplodingSession()
        )
        self.assertFalse(result.ok)
        self.assertEqual(result.provider, "SkyLink")
        self.assertIn("key", result.reason)

    def test_success_sends_key_and_coordinates(self):
        session = DummySession(DummyResp(_make_payload()))
        result = weatherapi_client.fetch_weatherapi_series(
            43.07, -89.4, settings=Settings(weatherapi_key="k"), http=session
        )
        self.assertTrue(result.ok)
        self.assertEqual(len(result.series.hourly), 24)
        params = session.calls[0]["params"]
        self.assertEqual(params["key"], "k")
        self.assertEqual(params["q"], "43.07,-89.4")
        self.assertEqual(params["days"], 10)
        self.assertEqual(params["aqi"], "yes")

    def test_http_error_is_absent_and_logged_without_key(self):
        session = DummySession(DummyResp({}, status_code=503))
        with self.assertLogs("aperture.providers.weatherapi_client", level="WARNING") as captured:
            result = weatherapi_client.fetch_weatherapi_series(
                1.0, 2.0, settings=Settings(weatherapi_key="secret"), http=session
            )
        self.assertFalse(result.ok)
        self.assertEqual(result.reason, "HTTP 503")
        self.assertFalse(any("secret" in line for line in captured.output))

    def test_malformed_payload_is_absent(self):
        session = DummySession(DummyResp({"unexpected": True}))
        result = weatherapi_client.fetch_weatherapi_series(
            1.0, 2.0, settings=Settings(weatherapi_key="k"), http=session
        )
        self.assertFalse(result.ok)
        self.assertIn("Malformed", result.reason)


if __name__ == "__main__":
    unittest.main()
