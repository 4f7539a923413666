"""
PASAR Logistics Tests - Geo helpers
"""

import math

from django.test import SimpleTestCase

from logistics.utils import haversine_distance, is_valid_coordinate, bounding_box, EARTH_RADIUS_KM


class TestHaversineDistance(SimpleTestCase):
    """Great-circle distance."""

    POINTS = [
        (-6.9175, 107.6191),   # Bandung
        (-6.2088, 106.8456),   # Jakarta
        (51.5074, -0.1278),    # London
        (0.0, 179.9),
        (89.9, 0.0),
    ]

    def test_zero_distance(self):
        for lat, lng in self.POINTS:
            self.assertEqual(haversine_distance(lat, lng, lat, lng), 0.0)

    def test_symmetry(self):
        for a in self.POINTS:
            for b in self.POINTS:
                self.assertAlmostEqual(
                    haversine_distance(*a, *b),
                    haversine_distance(*b, *a),
                    places=9,
                )

    def test_bandung_jakarta(self):
        """Known city pair, ~116 km as the crow flies."""
        distance = haversine_distance(-6.9175, 107.6191, -6.2088, 106.8456)
        self.assertAlmostEqual(distance, 116.5, delta=1.5)

    def test_one_degree_latitude(self):
        distance = haversine_distance(0, 0, 1, 0)
        self.assertAlmostEqual(distance, EARTH_RADIUS_KM * math.pi / 180, places=6)

    def test_antipodal_points_do_not_fault(self):
        distance = haversine_distance(0, 0, 0, 180)
        self.assertAlmostEqual(distance, math.pi * EARTH_RADIUS_KM, places=6)

        distance = haversine_distance(-6.9175, 107.6191, 6.9175, -72.3809)
        self.assertAlmostEqual(distance, math.pi * EARTH_RADIUS_KM, places=3)

    def test_crossing_antimeridian(self):
        distance = haversine_distance(0, 179.9, 0, -179.9)
        self.assertAlmostEqual(distance, 22.24, places=1)


class TestCoordinateValidation(SimpleTestCase):

    def test_valid_ranges(self):
        self.assertTrue(is_valid_coordinate(-90, -180))
        self.assertTrue(is_valid_coordinate(90, 180))
        self.assertTrue(is_valid_coordinate('-6.9175', '107.6191'))

    def test_out_of_range(self):
        self.assertFalse(is_valid_coordinate(90.1, 0))
        self.assertFalse(is_valid_coordinate(0, -180.5))

    def test_missing_or_malformed(self):
        self.assertFalse(is_valid_coordinate(None, 10))
        self.assertFalse(is_valid_coordinate('abc', 10))
        self.assertFalse(is_valid_coordinate(float('nan'), 10))


class TestBoundingBox(SimpleTestCase):

    def test_box_contains_circle(self):
        lat, lng, radius = -6.9175, 107.6191, 10
        min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius)

        # Points exactly on the circle, on each axis
        self.assertLessEqual(min_lat, lat - radius / 111.2 + 0.001)
        self.assertGreaterEqual(max_lat, lat + radius / 111.2 - 0.001)
        for bearing in range(0, 360, 15):
            b = math.radians(bearing)
            d = radius / EARTH_RADIUS_KM
            lat_r, lng_r = math.radians(lat), math.radians(lng)
            lat2 = math.asin(math.sin(lat_r) * math.cos(d) + math.cos(lat_r) * math.sin(d) * math.cos(b))
            lng2 = lng_r + math.atan2(
                math.sin(b) * math.sin(d) * math.cos(lat_r),
                math.cos(d) - math.sin(lat_r) * math.sin(lat2),
            )
            self.assertTrue(min_lat - 1e-9 <= math.degrees(lat2) <= max_lat + 1e-9)
            self.assertTrue(min_lng - 1e-9 <= math.degrees(lng2) <= max_lng + 1e-9)

    def test_near_pole_uses_full_longitude(self):
        _, max_lat, min_lng, max_lng = bounding_box(89.95, 10, 20)
        self.assertEqual(max_lat, 90.0)
        self.assertEqual((min_lng, max_lng), (-180.0, 180.0))

    def test_antimeridian_uses_full_longitude(self):
        _, _, min_lng, max_lng = bounding_box(0, 179.99, 10)
        self.assertEqual((min_lng, max_lng), (-180.0, 180.0))
