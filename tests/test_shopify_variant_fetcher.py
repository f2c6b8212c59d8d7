from __future__ import annotations

import io
import json
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

from inventory_health.services.shopify_variant_fetcher import (
    VARIANTS_QUERY,
    ShopifyGraphQLClient,
    ShopifyVariantFetcher,
)


def _response(payload) -> MagicMock:
    response = MagicMock()
    response.__enter__.return_value.read.return_value = json.dumps(payload).encode('utf-8')
    return response


class ShopifyVariantFetcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = ShopifyGraphQLClient(
            shop_domain='test-shop.myshopify.com',
            access_token='shpat_test',
            api_version='2024-10',
            timeout_seconds=12,
        )
        self.fetcher = ShopifyVariantFetcher(self.client, levels_page_size=250)

    @patch('inventory_health.services.shopify_variant_fetcher.urlopen')
    def test_fetches_all_variants_in_one_request(self, urlopen_mock) -> None:
        nodes = [{'id': 'gid://shopify/InventoryItem/1'}, None]
        urlopen_mock.return_value = _response({'data': {'nodes': nodes}})
        ids = ['gid://shopify/InventoryItem/1', 'gid://shopify/InventoryItem/2']

        result = self.fetcher.fetch_variants(ids)

        self.assertEqual(result, nodes)
        urlopen_mock.assert_called_once()
        request = urlopen_mock.call_args.args[0]
        self.assertEqual(urlopen_mock.call_args.kwargs['timeout'], 12)
        self.assertEqual(request.full_url, 'https://test-shop.myshopify.com/admin/api/2024-10/graphql.json')
        self.assertEqual(request.get_method(), 'POST')
        self.assertEqual(request.get_header('X-shopify-access-token'), 'shpat_test')
        body = json.loads(request.data.decode('utf-8'))
        self.assertEqual(body['query'], VARIANTS_QUERY)
        self.assertEqual(body['variables'], {'ids': ids, 'levelsFirst': 250})

    def test_query_requests_the_fields_reconciliation_needs(self) -> None:
        for fragment in ('nodes(ids: $ids)', '... on ProductVariant', 'inventoryItem', 'tracked',
                         'inventoryLevels(first: $levelsFirst)', 'quantities(names: ["available"])',
                         'location', 'product'):
            self.assertIn(fragment, VARIANTS_QUERY)

    @patch('inventory_health.services.shopify_variant_fetcher.urlopen')
    def test_http_error_is_raised_with_body(self, urlopen_mock) -> None:
        urlopen_mock.side_effect = HTTPError(
            self.client.url, 401, 'Unauthorized', {}, io.BytesIO(b'{"errors":"Invalid API key"}')
        )

        with self.assertRaises(RuntimeError) as ctx:
            self.fetcher.fetch_variants(['gid://shopify/InventoryItem/1'])

        self.assertIn('Shopify API error 401', str(ctx.exception))
        self.assertIn('Invalid API key', str(ctx.exception))

    @patch('inventory_health.services.shopify_variant_fetcher.urlopen')
    def test_network_error_is_raised(self, urlopen_mock) -> None:
        urlopen_mock.side_effect = URLError('timed out')

        with self.assertRaises(RuntimeError) as ctx:
            self.fetcher.fetch_variants(['gid://shopify/InventoryItem/1'])

        self.assertIn('network error', str(ctx.exception))

    @patch('inventory_health.services.shopify_variant_fetcher.urlopen')
    def test_graphql_errors_are_raised(self, urlopen_mock) -> None:
        urlopen_mock.return_value = _response({'errors': [{'message': 'Throttled'}]})

        with self.assertRaises(RuntimeError) as ctx:
            self.fetcher.fetch_variants(['gid://shopify/InventoryItem/1'])

        self.assertIn('Throttled', str(ctx.exception))

    @patch('inventory_health.services.shopify_variant_fetcher.urlopen')
    def test_response_without_nodes_is_rejected(self, urlopen_mock) -> None:
        urlopen_mock.return_value = _response({'data': {}})

        with self.assertRaises(RuntimeError):
            self.fetcher.fetch_variants(['gid://shopify/InventoryItem/1'])

    def test_client_requires_credentials(self) -> None:
        with self.assertRaises(ValueError):
            ShopifyGraphQLClient(shop_domain='', access_token='x', api_version='2024-10', timeout_seconds=5)
        with self.assertRaises(ValueError):
            ShopifyGraphQLClient(shop_domain='a.myshopify.com', access_token=None, api_version='2024-10', timeout_seconds=5)

    def test_for_shop_builds_client_from_shop_credentials(self) -> None:
        shop = SimpleNamespace(shopify_domain='other.myshopify.com', shopify_token='shpat_other', api_version='2025-01')

        fetcher = ShopifyVariantFetcher.for_shop(shop)

        self.assertEqual(fetcher.client.url, 'https://other.myshopify.com/admin/api/2025-01/graphql.json')
        self.assertEqual(fetcher.client.headers['X-Shopify-Access-Token'], 'shpat_other')
        self.assertEqual(fetcher.levels_page_size, 250)


if __name__ == '__main__':
    unittest.main()
