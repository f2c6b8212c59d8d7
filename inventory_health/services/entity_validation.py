from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_health.models import InventoryLevel, Location, Shop, Variant

INVENTORY_ITEM_GID_RE = re.compile(r'\Agid://shopify/InventoryItem/\d+\Z')

BLANK = "can't be blank"
TAKEN = 'has already been taken'
TAKEN_FOR_SHOP = 'has already been taken for this shop'
TAKEN_FOR_LOCATION_AND_VARIANT = 'has already been taken for this location and variant'
MUST_EXIST = 'must exist'
NOT_AN_INTEGER = 'must be an integer'
NOT_A_NUMBER = 'is not a number'
NEGATIVE = 'must be greater than or equal to 0'
INVALID_GID = 'must be a valid Shopify GID'
ITEM_VARIANT_MISMATCH = 'must match the variant shopify_variant_id'
CROSS_SHOP = 'must belong to the same shop as the variant'
SHOP_CHANGED = 'cannot be changed after the variant is created'


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return f'{self.field} {self.message}'


class EntityValidationError(ValueError):
    def __init__(self, entity: object, errors: list[FieldError]) -> None:
        self.entity = entity
        self.errors = errors
        details = ', '.join(str(error) for error in errors)
        super().__init__(f'{type(entity).__name__} is invalid: {details}')

    def messages_for(self, field: str) -> list[str]:
        return [error.message for error in self.errors if error.field == field]


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_integer(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return True
    try:
        Decimal(str(value))
    except InvalidOperation:
        return False
    return True


def _integer_errors(field: str, value, *, non_negative: bool = False) -> list[FieldError]:
    if value is None:
        return [FieldError(field, BLANK)]
    if not _is_number(value):
        return [FieldError(field, NOT_A_NUMBER)]
    if not _is_integer(value):
        return [FieldError(field, NOT_AN_INTEGER)]
    if non_negative and value < 0:
        return [FieldError(field, NEGATIVE)]
    return []


def _resolve(db: Session, entity, relation: str, model, fk_name: str):
    related = getattr(entity, relation)
    if related is None and getattr(entity, fk_name) is not None:
        related = db.get(model, getattr(entity, fk_name))
    return related


def _shop_id(entity) -> int | None:
    if entity.shop is not None:
        return entity.shop.id
    return entity.shop_id


def _exists(db: Session, stmt, exclude_id: int | None, model) -> bool:
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    return db.execute(stmt.limit(1)).first() is not None


def validate_shop(db: Session, shop: Shop) -> list[FieldError]:
    errors: list[FieldError] = []
    if _is_blank(shop.shopify_domain):
        errors.append(FieldError('shopify_domain', BLANK))
    elif _exists(db, select(Shop.id).where(Shop.shopify_domain == shop.shopify_domain), shop.id, Shop):
        errors.append(FieldError('shopify_domain', TAKEN))
    if _is_blank(shop.shopify_token):
        errors.append(FieldError('shopify_token', BLANK))
    return errors


def validate_location(db: Session, location: Location) -> list[FieldError]:
    errors: list[FieldError] = []
    shop = _resolve(db, location, 'shop', Shop, 'shop_id')
    if shop is None:
        errors.append(FieldError('shop', MUST_EXIST))
    if _is_blank(location.shopify_location_id):
        errors.append(FieldError('shopify_location_id', BLANK))
    elif shop is not None and shop.id is not None:
        stmt = select(Location.id).where(
            Location.shop_id == shop.id,
            Location.shopify_location_id == location.shopify_location_id,
        )
        if _exists(db, stmt, location.id, Location):
            errors.append(FieldError('shopify_location_id', TAKEN_FOR_SHOP))
    if _is_blank(location.name):
        errors.append(FieldError('name', BLANK))
    return errors


def validate_variant(db: Session, variant: Variant) -> list[FieldError]:
    errors: list[FieldError] = []
    shop = _resolve(db, variant, 'shop', Shop, 'shop_id')
    if shop is None:
        errors.append(FieldError('shop', MUST_EXIST))
    elif variant.id is not None and shop.id is not None:
        persisted_shop_id = db.execute(select(Variant.shop_id).where(Variant.id == variant.id)).scalar_one_or_none()
        # Existing levels point at the persisted shop's locations.
        if persisted_shop_id is not None and persisted_shop_id != shop.id:
            errors.append(FieldError('shop', SHOP_CHANGED))
    if _is_blank(variant.shopify_product_id):
        errors.append(FieldError('shopify_product_id', BLANK))
    if _is_blank(variant.shopify_variant_id):
        errors.append(FieldError('shopify_variant_id', BLANK))
    else:
        stmt = select(Variant.id).where(Variant.shopify_variant_id == variant.shopify_variant_id)
        if _exists(db, stmt, variant.id, Variant):
            errors.append(FieldError('shopify_variant_id', TAKEN))
    if _is_blank(variant.variant_title):
        errors.append(FieldError('variant_title', BLANK))
    if variant.display_name is not None:
        if _is_blank(variant.display_name):
            errors.append(FieldError('display_name', BLANK))
        elif shop is not None and shop.id is not None:
            stmt = select(Variant.id).where(
                Variant.shop_id == shop.id,
                Variant.display_name == variant.display_name,
            )
            if _exists(db, stmt, variant.id, Variant):
                errors.append(FieldError('display_name', TAKEN_FOR_SHOP))
    minimum_quantity = 0 if variant.minimum_quantity is None else variant.minimum_quantity
    errors.extend(_integer_errors('minimum_quantity', minimum_quantity, non_negative=True))
    return errors


def validate_inventory_level(db: Session, level: InventoryLevel) -> list[FieldError]:
    errors: list[FieldError] = []
    location = _resolve(db, level, 'location', Location, 'location_id')
    variant = _resolve(db, level, 'variant', Variant, 'variant_id')
    if location is None:
        errors.append(FieldError('location', MUST_EXIST))
    if variant is None:
        errors.append(FieldError('variant', MUST_EXIST))

    errors.extend(_integer_errors('quantity', level.quantity))
    errors.extend(_integer_errors('minimum_quantity', level.minimum_quantity, non_negative=True))
    if level.health_percentage is None:
        errors.append(FieldError('health_percentage', BLANK))
    elif not _is_number(level.health_percentage):
        errors.append(FieldError('health_percentage', NOT_A_NUMBER))

    item_id = level.shopify_inventory_item_id
    if _is_blank(item_id):
        errors.append(FieldError('shopify_inventory_item_id', BLANK))
    else:
        if not INVENTORY_ITEM_GID_RE.match(item_id):
            errors.append(FieldError('shopify_inventory_item_id', INVALID_GID))
        if location is not None and variant is not None and location.id is not None and variant.id is not None:
            stmt = select(InventoryLevel.id).where(
                InventoryLevel.location_id == location.id,
                InventoryLevel.variant_id == variant.id,
                InventoryLevel.shopify_inventory_item_id == item_id,
            )
            if _exists(db, stmt, level.id, InventoryLevel):
                errors.append(FieldError('shopify_inventory_item_id', TAKEN_FOR_LOCATION_AND_VARIANT))
        if variant is not None and item_id != variant.shopify_variant_id:
            errors.append(FieldError('shopify_inventory_item_id', ITEM_VARIANT_MISMATCH))

    if location is not None and variant is not None and _shop_id(location) != _shop_id(variant):
        errors.append(FieldError('location', CROSS_SHOP))

    level.refresh_health_percentage()
    return errors


VALIDATORS = {
    Shop: validate_shop,
    Location: validate_location,
    Variant: validate_variant,
    InventoryLevel: validate_inventory_level,
}


def validate_entity(db: Session, entity) -> list[FieldError]:
    validator = VALIDATORS[type(entity)]
    with db.no_autoflush:
        return validator(db, entity)


def save_entity(db: Session, entity):
    """Validate and flush one record; nothing is written when a rule fails."""
    errors = validate_entity(db, entity)
    if errors:
        raise EntityValidationError(entity, errors)
    db.add(entity)
    db.flush()
    return entity
