from inventory_health.db import SessionLocal, init_db
from inventory_health.services.inventory_service import register_shop
from inventory_health.services.mock_variant_fetcher import MockVariantFetcher
from inventory_health.services.variant_sync_service import VariantSyncService

DEMO_VARIANT_IDS = [
    'gid://shopify/InventoryItem/4100',
    'gid://shopify/InventoryItem/4101',
    'gid://shopify/InventoryItem/4102',
]


def seed() -> None:
    init_db()
    with SessionLocal() as db:
        shop = register_shop(
            db,
            shopify_domain='demo-shop.myshopify.com',
            shopify_token='demo-token',
            access_scopes='read_products,read_inventory,read_locations',
        )
        VariantSyncService(db, shop, MockVariantFetcher()).sync_variants(DEMO_VARIANT_IDS)


if __name__ == '__main__':
    seed()
    print('Seed complete')
