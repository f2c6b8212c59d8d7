from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from inventory_health.models import InventoryLevel, Location, Shop, Variant
from inventory_health.services.entity_validation import save_entity


def register_shop(db: Session, *, shopify_domain: str, shopify_token: str, access_scopes: str | None = None) -> Shop:
    shop = db.execute(select(Shop).where(Shop.shopify_domain == shopify_domain)).scalar_one_or_none()
    if shop is None:
        shop = Shop(shopify_domain=shopify_domain)
    shop.shopify_token = shopify_token
    shop.access_scopes = access_scopes
    save_entity(db, shop)
    db.commit()
    return shop


def get_shop_by_domain(db: Session, shopify_domain: str) -> Shop:
    shop = db.execute(select(Shop).where(Shop.shopify_domain == shopify_domain)).scalar_one_or_none()
    if not shop:
        raise ValueError('Shop not found')
    return shop


def get_shop(db: Session, shop_id: int) -> Shop:
    shop = db.get(Shop, shop_id)
    if not shop:
        raise ValueError('Shop not found')
    return shop


def list_active_locations(db: Session, *, shop_id: int) -> list[Location]:
    return list(
        db.execute(
            select(Location)
            .where(Location.shop_id == shop_id, Location.is_active.is_(True))
            .order_by(Location.name.asc(), Location.id.asc())
        )
        .scalars()
        .all()
    )


def list_tracked_variants(db: Session, *, shop_id: int) -> list[Variant]:
    return list(
        db.execute(
            select(Variant)
            .where(Variant.shop_id == shop_id, Variant.is_tracked.is_(True))
            .order_by(Variant.variant_title.asc(), Variant.id.asc())
        )
        .scalars()
        .all()
    )


def list_inventory_levels(db: Session, *, shop_id: int, low_stock_only: bool = False) -> list[InventoryLevel]:
    stmt = (
        select(InventoryLevel)
        .join(Variant, Variant.id == InventoryLevel.variant_id)
        .options(joinedload(InventoryLevel.variant), joinedload(InventoryLevel.location))
        .where(Variant.shop_id == shop_id)
    )
    if low_stock_only:
        stmt = stmt.where(
            Variant.is_tracked.is_(True),
            InventoryLevel.quantity < InventoryLevel.minimum_quantity,
        )
    stmt = stmt.order_by(InventoryLevel.health_percentage.asc(), InventoryLevel.id.asc())
    return list(db.execute(stmt).scalars().all())


def set_variant_minimum_quantity(db: Session, *, shop_id: int, variant_id: int, minimum_quantity: int) -> Variant:
    variant = db.execute(
        select(Variant).where(Variant.id == variant_id, Variant.shop_id == shop_id)
    ).scalar_one_or_none()
    if not variant:
        raise ValueError('Variant not found')
    variant.minimum_quantity = minimum_quantity
    save_entity(db, variant)
    db.commit()
    return variant


def set_inventory_level_minimum_quantity(
    db: Session,
    *,
    shop_id: int,
    inventory_level_id: int,
    minimum_quantity: int,
) -> InventoryLevel:
    level = db.execute(
        select(InventoryLevel)
        .join(Variant, Variant.id == InventoryLevel.variant_id)
        .where(InventoryLevel.id == inventory_level_id, Variant.shop_id == shop_id)
    ).scalar_one_or_none()
    if not level:
        raise ValueError('Inventory level not found')
    level.minimum_quantity = minimum_quantity
    save_entity(db, level)
    db.commit()
    return level
