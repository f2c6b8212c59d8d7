from __future__ import annotations

from inventory_health.config import settings
from inventory_health.models import Shop
from inventory_health.services.mock_variant_fetcher import MockVariantFetcher
from inventory_health.services.shopify_variant_fetcher import ShopifyVariantFetcher
from inventory_health.services.variant_fetcher import VariantFetcher


def get_variant_fetcher(shop: Shop) -> VariantFetcher:
    fetcher = settings.variant_fetcher.strip().lower()
    if fetcher == 'mock':
        return MockVariantFetcher()
    if fetcher == 'shopify':
        return ShopifyVariantFetcher.for_shop(shop)
    raise ValueError(f'Unknown VARIANT_FETCHER: {settings.variant_fetcher}')
