from __future__ import annotations

import unittest
from unittest.mock import patch

from db_support import DatabaseTestCase
from inventory_health import seed_example
from inventory_health.models import InventoryLevel, Shop, Variant


class SeedExampleTests(DatabaseTestCase):
    def test_seed_registers_demo_shop_and_syncs_mock_variants(self) -> None:
        with patch.object(seed_example, 'SessionLocal', self.Session), patch.object(
            seed_example, 'init_db', lambda: None
        ):
            seed_example.seed()
            seed_example.seed()

        self.assertEqual(self.count(Shop), 1)
        self.assertEqual(self.count(Variant), len(seed_example.DEMO_VARIANT_IDS))
        self.assertEqual(self.count(InventoryLevel), len(seed_example.DEMO_VARIANT_IDS) * 2)


if __name__ == '__main__':
    unittest.main()
