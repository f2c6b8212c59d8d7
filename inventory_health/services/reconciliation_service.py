from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_health.models import InventoryLevel, Location, Shop, Variant
from inventory_health.services.entity_validation import EntityValidationError, FieldError, save_entity
from inventory_health.services.health_service import calculate_health_percentage
from inventory_health.services.variant_nodes import LocationNode, VariantNode, parse_variant_node

module_logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    ABORT = 'abort'
    CONTINUE = 'continue'


class OutcomeStatus(str, Enum):
    SYNCED = 'SYNCED'
    SKIPPED = 'SKIPPED'
    FAILED = 'FAILED'


@dataclass(frozen=True)
class VariantSyncOutcome:
    variant_id: str | None
    status: OutcomeStatus
    inventory_levels: int = 0
    error: str | None = None
    field_errors: tuple[FieldError, ...] = ()

    @property
    def failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED


def upsert_variant(db: Session, shop: Shop, node: VariantNode) -> Variant:
    variant = db.execute(select(Variant).where(Variant.shopify_variant_id == node.id)).scalar_one_or_none()
    if variant is None:
        # minimum_quantity is merchant-configured; sync only seeds it.
        variant = Variant(shopify_variant_id=node.id, minimum_quantity=0)

    variant.shop = shop
    variant.shopify_product_id = node.product.id
    variant.variant_title = node.title
    variant.is_tracked = node.inventory_item.tracked
    return save_entity(db, variant)


def find_or_create_location(db: Session, shop: Shop, location_node: LocationNode) -> Location:
    location = db.execute(
        select(Location).where(
            Location.shop_id == shop.id,
            Location.shopify_location_id == location_node.id,
        )
    ).scalar_one_or_none()
    if location is not None:
        return location

    location = Location(
        shop=shop,
        shopify_location_id=location_node.id,
        name=location_node.name,
        is_active=True,
    )
    return save_entity(db, location)


def upsert_inventory_level(
    db: Session,
    variant: Variant,
    location: Location,
    *,
    inventory_item_id: str,
    available: int,
) -> InventoryLevel:
    level = (
        db.execute(
            select(InventoryLevel)
            .where(InventoryLevel.variant_id == variant.id, InventoryLevel.location_id == location.id)
            .order_by(InventoryLevel.id.asc())
        )
        .scalars()
        .first()
    )
    if level is None:
        level = InventoryLevel(variant=variant, location=location, minimum_quantity=variant.minimum_quantity or 0)

    minimum_quantity = level.minimum_quantity
    if minimum_quantity is None:
        minimum_quantity = variant.minimum_quantity or 0

    level.quantity = available
    level.minimum_quantity = minimum_quantity
    level.health_percentage = calculate_health_percentage(available, minimum_quantity)
    level.shopify_inventory_item_id = inventory_item_id
    return save_entity(db, level)


def reconcile_variant_node(db: Session, shop: Shop, node: VariantNode) -> int:
    """Write one variant and its levels into the current transaction; returns the level count."""
    variant = upsert_variant(db, shop, node)
    count = 0
    for level_node in node.inventory_levels:
        location = find_or_create_location(db, shop, level_node.location)
        upsert_inventory_level(
            db,
            variant,
            location,
            inventory_item_id=node.inventory_item.id,
            available=level_node.available_quantity,
        )
        count += 1
    return count


def _raw_id(raw) -> str | None:
    if isinstance(raw, dict) and isinstance(raw.get('id'), str):
        return raw['id']
    return None


def _reconcile_one(
    db: Session,
    shop: Shop,
    node: VariantNode,
    *,
    conflict_retries: int,
    logger: logging.Logger,
) -> VariantSyncOutcome:
    attempt = 0
    while True:
        try:
            count = reconcile_variant_node(db, shop, node)
            db.commit()
        except EntityValidationError as exc:
            db.rollback()
            logger.error('Failed to process variant %s: %s', node.id, exc)
            return VariantSyncOutcome(
                variant_id=node.id,
                status=OutcomeStatus.FAILED,
                error=str(exc),
                field_errors=tuple(exc.errors),
            )
        except IntegrityError as exc:
            db.rollback()
            if attempt < conflict_retries:
                attempt += 1
                logger.warning('Uniqueness conflict on variant %s, retrying as update (%s)', node.id, attempt)
                continue
            logger.error('Failed to process variant %s: %s', node.id, exc.orig)
            return VariantSyncOutcome(variant_id=node.id, status=OutcomeStatus.FAILED, error=str(exc.orig))
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error('Failed to process variant %s: %s', node.id, exc)
            return VariantSyncOutcome(variant_id=node.id, status=OutcomeStatus.FAILED, error=str(exc))
        return VariantSyncOutcome(variant_id=node.id, status=OutcomeStatus.SYNCED, inventory_levels=count)


def reconcile_variant_nodes(
    db: Session,
    shop: Shop,
    nodes: Iterable,
    *,
    failure_policy: FailurePolicy = FailurePolicy.ABORT,
    conflict_retries: int = 0,
    logger: logging.Logger | None = None,
) -> list[VariantSyncOutcome]:
    """Reconcile fetched variant nodes one transaction per variant.

    Each variant's writes are committed on their own, so a failing variant never
    undoes the ones before it. With ``FailurePolicy.ABORT`` the loop stops at the
    first failure; with ``FailurePolicy.CONTINUE`` every node is attempted.
    Nodes that do not have the variant shape are reported as skipped.
    """
    logger = logger or module_logger
    outcomes: list[VariantSyncOutcome] = []

    for raw in nodes:
        node = parse_variant_node(raw)
        if node is None:
            logger.debug('Skipping node without variant shape: %r', _raw_id(raw))
            outcomes.append(VariantSyncOutcome(variant_id=_raw_id(raw), status=OutcomeStatus.SKIPPED))
            continue

        outcome = _reconcile_one(db, shop, node, conflict_retries=conflict_retries, logger=logger)
        outcomes.append(outcome)
        if outcome.failed and failure_policy == FailurePolicy.ABORT:
            break

    return outcomes
