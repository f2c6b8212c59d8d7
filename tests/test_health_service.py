from __future__ import annotations

import unittest
from decimal import Decimal

from inventory_health.services.health_service import calculate_health_percentage


class HealthServiceTests(unittest.TestCase):
    def test_zero_minimum_has_no_health_signal(self) -> None:
        for available in (-20, 0, 1, 10, 5000):
            self.assertEqual(calculate_health_percentage(available, 0), Decimal('0.00'))

    def test_stock_equal_to_minimum_is_zero(self) -> None:
        for minimum in (1, 7, 10, 250):
            self.assertEqual(calculate_health_percentage(minimum, minimum), Decimal('0.00'))

    def test_double_the_minimum_is_one_hundred(self) -> None:
        for minimum in (1, 3, 10, 99):
            self.assertEqual(calculate_health_percentage(minimum * 2, minimum), Decimal('100.00'))

    def test_reference_examples(self) -> None:
        self.assertEqual(calculate_health_percentage(5, 10), Decimal('-50.0'))
        self.assertEqual(calculate_health_percentage(30, 10), Decimal('200.0'))
        self.assertEqual(calculate_health_percentage(10, 0), Decimal('0.0'))
        self.assertEqual(calculate_health_percentage(15, 10), Decimal('50.0'))
        self.assertEqual(calculate_health_percentage(8, 10), Decimal('-20.0'))

    def test_negative_stock_is_allowed(self) -> None:
        self.assertEqual(calculate_health_percentage(-5, 10), Decimal('-150.00'))

    def test_rounds_to_two_places(self) -> None:
        self.assertEqual(calculate_health_percentage(4, 3), Decimal('33.33'))
        self.assertEqual(calculate_health_percentage(5, 3), Decimal('66.67'))
        self.assertEqual(calculate_health_percentage(1, 3), Decimal('-66.67'))

    def test_half_rounds_away_from_zero(self) -> None:
        self.assertEqual(calculate_health_percentage(801, 800), Decimal('0.13'))
        self.assertEqual(calculate_health_percentage(799, 800), Decimal('-0.13'))

    def test_monotonic_in_available_for_fixed_minimum(self) -> None:
        for minimum in (1, 3, 10, 37):
            values = [calculate_health_percentage(available, minimum) for available in range(-50, 150)]
            self.assertEqual(values, sorted(values))


if __name__ == '__main__':
    unittest.main()
