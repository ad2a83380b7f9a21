import unittest

from aperture.altitude import MAX_ALTITUDE_FT, WindBand, interpolate_at_altitude, wind_band
from aperture.domain import AltitudeSample, SpeedUnit


def _rung(altitude_ft, wind_mph, gust_mph, direction, *, kph=None, kts=None):
    return AltitudeSample(
        altitude_ft=altitude_ft,
        wind_speed_mph=wind_mph,
        wind_speed_kph=kph if kph is not None else wind_mph * 1.609344,
        wind_speed_kts=kts if kts is not None else wind_mph * 0.868976,
        gust_speed_mph=gust_mph,
        gust_speed_kph=gust_mph * 1.609344,
        gust_speed_kts=gust_mph * 0.868976,
        wind_direction=direction,
    )


class TestInterpolateAtAltitude(unittest.TestCase):
    def setUp(self):
        self.ladder = [
            _rung(0, 10, 15, 350),
            _rung(100, 20, 25, 10),
            _rung(300, 30, 40, 90),
        ]

    def test_midpoint_wraps_through_north(self):
        wind = interpolate_at_altitude(self.ladder, 50)
        self.assertAlmostEqual(wind.wind_speed, 15)
        self.assertAlmostEqual(wind.gust_speed, 20)
        self.assertAlmostEqual(wind.direction, 0)
        self.assertEqual(wind.unit, SpeedUnit.MPH)

    def test_partial_factor_within_rungs(self):
        wind = interpolate_at_altitude(self.ladder, 200)
        self.assertAlmostEqual(wind.wind_speed, 25)
        self.assertAlmostEqual(wind.gust_speed, 32.5)
        self.assertAlmostEqual(wind.direction, 50)

    def test_exact_rung_returns_rung_values(self):
        wind = interpolate_at_altitude(self.ladder, 100)
        self.assertAlmostEqual(wind.wind_speed, 20)
        self.assertAlmostEqual(wind.direction, 10)

    def test_clamps_above_highest_rung(self):
        wind = interpolate_at_altitude(self.ladder, MAX_ALTITUDE_FT)
        self.assertEqual(wind.wind_speed, 30)
        self.assertEqual(wind.gust_speed, 40)
        self.assertEqual(wind.direction, 90)

    def test_clamps_below_lowest_rung(self):
        ladder = [_rung(30, 8, 12, 200), _rung(160, 16, 20, 220)]
        wind = interpolate_at_altitude(ladder, 0)
        self.assertEqual(wind.wind_speed, 8)
        self.assertEqual(wind.direction, 200)

    def test_unsorted_ladder_is_sorted_first(self):
        wind = interpolate_at_altitude(list(reversed(self.ladder)), 50)
        self.assertAlmostEqual(wind.wind_speed, 15)
        self.assertAlmostEqual(wind.direction, 0)

    def test_empty_ladder_yields_zeros(self):
        wind = interpolate_at_altitude([], 120, SpeedUnit.KTS)
        self.assertEqual((wind.wind_speed, wind.gust_speed, wind.direction), (0, 0, 0))
        self.assertEqual(wind.unit, SpeedUnit.KTS)

    def test_uses_requested_unit_columns(self):
        ladder = [_rung(0, 10, 15, 180, kph=16, kts=9), _rung(100, 20, 25, 180, kph=32, kts=17)]
        self.assertAlmostEqual(interpolate_at_altitude(ladder, 50, SpeedUnit.KPH).wind_speed, 24)
        self.assertAlmostEqual(interpolate_at_altitude(ladder, 50, "kts").wind_speed, 13)

    def test_direction_counter_clockwise_wrap(self):
        ladder = [_rung(0, 5, 5, 10), _rung(100, 5, 5, 330)]
        wind = interpolate_at_altitude(ladder, 75)
        self.assertAlmostEqual(wind.direction, 340)

    def test_direction_stays_below_360(self):
        ladder = [_rung(0, 5, 5, 340), _rung(100, 5, 5, 20)]
        for query in range(0, 101, 5):
            with self.subTest(query=query):
                direction = interpolate_at_altitude(ladder, query).direction
                self.assertGreaterEqual(direction, 0)
                self.assertLess(direction, 360)


class TestWindBand(unittest.TestCase):
    def test_bands(self):
        self.assertEqual(wind_band(0), WindBand.CALM)
        self.assertEqual(wind_band(9.9), WindBand.CALM)
        self.assertEqual(wind_band(10), WindBand.BREEZY)
        self.assertEqual(wind_band(19.9), WindBand.BREEZY)
        self.assertEqual(wind_band(20), WindBand.STRONG)


if __name__ == "__main__":
    unittest.main()
