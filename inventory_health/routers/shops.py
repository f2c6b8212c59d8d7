from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from inventory_health.db import get_db
from inventory_health.models import InventoryLevel
from inventory_health.services.entity_validation import EntityValidationError
from inventory_health.services.inventory_service import (
    get_shop,
    list_inventory_levels,
    set_inventory_level_minimum_quantity,
    set_variant_minimum_quantity,
)
from inventory_health.services.reconciliation_service import VariantSyncOutcome
from inventory_health.services.sync_errors import SyncError, SyncErrorKind
from inventory_health.services.variant_sync_service import VariantSyncService

router = APIRouter(prefix='/shops', tags=['shops'])

SYNC_ERROR_STATUS = {
    SyncErrorKind.INVALID_INPUT: 422,
    SyncErrorKind.FETCH_FAILURE: 502,
    SyncErrorKind.RECONCILIATION_FAILURE: 409,
}


class VariantSyncRequest(BaseModel):
    variant_ids: list[str]


class MinimumQuantityUpdate(BaseModel):
    minimum_quantity: int = Field(ge=0)


def _outcome_row(outcome: VariantSyncOutcome) -> dict:
    return {
        'variant_id': outcome.variant_id,
        'status': outcome.status.value,
        'inventory_levels': outcome.inventory_levels,
        'error': outcome.error,
        'field_errors': [{'field': e.field, 'message': e.message} for e in outcome.field_errors],
    }


def _level_row(level: InventoryLevel) -> dict:
    return {
        'id': level.id,
        'variant_id': level.variant_id,
        'shopify_variant_id': level.variant.shopify_variant_id,
        'variant_title': level.variant.variant_title,
        'location_id': level.location_id,
        'location_name': level.location.name,
        'quantity': level.quantity,
        'minimum_quantity': level.minimum_quantity,
        'health_percentage': str(level.health_percentage),
    }


def _validation_detail(exc: EntityValidationError) -> list[dict]:
    return [{'field': error.field, 'message': error.message} for error in exc.errors]


def _shop_or_404(db: Session, shop_id: int):
    try:
        return get_shop(db, shop_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post('/{shop_id}/variants/sync')
def sync_shop_variants(shop_id: int, payload: VariantSyncRequest, db: Session = Depends(get_db)):
    shop = _shop_or_404(db, shop_id)
    try:
        service = VariantSyncService.for_shop(db, shop)
        outcomes = service.sync_variants(payload.variant_ids)
    except SyncError as exc:
        raise HTTPException(
            status_code=SYNC_ERROR_STATUS[exc.kind],
            detail={
                'kind': exc.kind.value,
                'message': str(exc),
                'outcomes': [_outcome_row(outcome) for outcome in exc.outcomes],
            },
        ) from exc
    return {'outcomes': [_outcome_row(outcome) for outcome in outcomes]}


@router.get('/{shop_id}/inventory-levels')
def shop_inventory_levels(shop_id: int, low_stock: bool = False, db: Session = Depends(get_db)):
    _shop_or_404(db, shop_id)
    levels = list_inventory_levels(db, shop_id=shop_id, low_stock_only=low_stock)
    return {'inventory_levels': [_level_row(level) for level in levels]}


@router.put('/{shop_id}/variants/{variant_id}/minimum-quantity')
def update_variant_minimum_quantity(
    shop_id: int,
    variant_id: int,
    payload: MinimumQuantityUpdate,
    db: Session = Depends(get_db),
):
    try:
        variant = set_variant_minimum_quantity(
            db, shop_id=shop_id, variant_id=variant_id, minimum_quantity=payload.minimum_quantity
        )
    except EntityValidationError as exc:
        db.rollback()
        raise HTTPException(status_code=422, detail=_validation_detail(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {'id': variant.id, 'minimum_quantity': variant.minimum_quantity}


@router.put('/{shop_id}/inventory-levels/{inventory_level_id}/minimum-quantity')
def update_inventory_level_minimum_quantity(
    shop_id: int,
    inventory_level_id: int,
    payload: MinimumQuantityUpdate,
    db: Session = Depends(get_db),
):
    try:
        level = set_inventory_level_minimum_quantity(
            db,
            shop_id=shop_id,
            inventory_level_id=inventory_level_id,
            minimum_quantity=payload.minimum_quantity,
        )
    except EntityValidationError as exc:
        db.rollback()
        raise HTTPException(status_code=422, detail=_validation_detail(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {
        'id': level.id,
        'minimum_quantity': level.minimum_quantity,
        'health_percentage': str(level.health_percentage),
    }
