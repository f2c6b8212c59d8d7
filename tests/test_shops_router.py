from __future__ import annotations

import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from db_support import DatabaseTestCase
from inventory_health.config import settings
from inventory_health.db import get_db
from inventory_health.main import app

VARIANT_IDS = ['gid://shopify/InventoryItem/4100', 'gid://shopify/InventoryItem/4101']


class ShopsRouterTests(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.shop = self.create_shop()

        def _get_test_db():
            with self.Session() as db:
                yield db

        app.dependency_overrides[get_db] = _get_test_db
        self.client = TestClient(app)
        fetcher_patch = patch.object(settings, 'variant_fetcher', 'mock')
        fetcher_patch.start()
        self.addCleanup(fetcher_patch.stop)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        super().tearDown()

    def _sync(self, variant_ids, shop_id=None):
        return self.client.post(
            f'/shops/{shop_id or self.shop.id}/variants/sync',
            json={'variant_ids': variant_ids},
        )

    def test_sync_returns_outcomes(self) -> None:
        response = self._sync(VARIANT_IDS)

        self.assertEqual(response.status_code, 200)
        outcomes = response.json()['outcomes']
        self.assertEqual([o['variant_id'] for o in outcomes], VARIANT_IDS)
        self.assertEqual({o['status'] for o in outcomes}, {'SYNCED'})
        self.assertEqual({o['inventory_levels'] for o in outcomes}, {2})

    def test_empty_variant_ids_are_rejected(self) -> None:
        response = self._sync([])

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['detail']['kind'], 'INVALID_INPUT')

    def test_unknown_shop_is_not_found(self) -> None:
        self.assertEqual(self._sync(VARIANT_IDS, shop_id=999999).status_code, 404)

    def test_reconciliation_failure_is_a_conflict(self) -> None:
        response = self._sync(['gid://shopify/ProductVariant/1'])

        self.assertEqual(response.status_code, 409)
        detail = response.json()['detail']
        self.assertEqual(detail['kind'], 'RECONCILIATION_FAILURE')
        self.assertEqual(detail['outcomes'][0]['status'], 'FAILED')

    def test_minimum_quantity_updates_drive_health(self) -> None:
        self._sync(VARIANT_IDS)
        levels = self.client.get(f'/shops/{self.shop.id}/inventory-levels').json()['inventory_levels']
        self.assertEqual(len(levels), 4)
        level = levels[0]

        response = self.client.put(
            f'/shops/{self.shop.id}/inventory-levels/{level["id"]}/minimum-quantity',
            json={'minimum_quantity': level['quantity'] + 1},
        )
        self.assertEqual(response.status_code, 200)
        self.assertLess(float(response.json()['health_percentage']), 0)

        low_stock = self.client.get(f'/shops/{self.shop.id}/inventory-levels', params={'low_stock': 'true'})
        self.assertEqual([row['id'] for row in low_stock.json()['inventory_levels']], [level['id']])

        resynced = self._sync(VARIANT_IDS)
        self.assertEqual(resynced.status_code, 200)
        levels = self.client.get(f'/shops/{self.shop.id}/inventory-levels').json()['inventory_levels']
        kept = next(row for row in levels if row['id'] == level['id'])
        self.assertEqual(kept['minimum_quantity'], level['quantity'] + 1)

    def test_variant_minimum_quantity_update(self) -> None:
        self._sync(VARIANT_IDS)
        level = self.client.get(f'/shops/{self.shop.id}/inventory-levels').json()['inventory_levels'][0]

        response = self.client.put(
            f'/shops/{self.shop.id}/variants/{level["variant_id"]}/minimum-quantity',
            json={'minimum_quantity': 7},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['minimum_quantity'], 7)

        negative = self.client.put(
            f'/shops/{self.shop.id}/variants/{level["variant_id"]}/minimum-quantity',
            json={'minimum_quantity': -1},
        )
        self.assertEqual(negative.status_code, 422)

        missing = self.client.put(f'/shops/{self.shop.id}/variants/999999/minimum-quantity', json={'minimum_quantity': 1})
        self.assertEqual(missing.status_code, 404)


if __name__ == '__main__':
    unittest.main()
