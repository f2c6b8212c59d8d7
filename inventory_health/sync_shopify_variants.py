from __future__ import annotations

import argparse

from inventory_health.config import configure_logging
from inventory_health.db import SessionLocal
from inventory_health.services.inventory_service import get_shop_by_domain
from inventory_health.services.reconciliation_service import FailurePolicy, OutcomeStatus, VariantSyncOutcome
from inventory_health.services.sync_errors import SyncError
from inventory_health.services.variant_sync_service import VariantSyncService


def sync_variants(
    shop_domain: str,
    variant_ids: list[str],
    *,
    continue_on_error: bool = False,
) -> list[VariantSyncOutcome]:
    policy = FailurePolicy.CONTINUE if continue_on_error else None
    with SessionLocal() as db:
        shop = get_shop_by_domain(db, shop_domain)
        service = VariantSyncService.for_shop(db, shop, failure_policy=policy)
        return service.sync_variants(variant_ids)


def _summary(outcomes: list[VariantSyncOutcome]) -> str:
    counts = {status: 0 for status in OutcomeStatus}
    for outcome in outcomes:
        counts[outcome.status] += 1
    return ', '.join(f'{status.value.lower()}={count}' for status, count in counts.items())


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='Sync variants and inventory levels from Shopify.')
    parser.add_argument('--shop-domain', required=True, help='myshopify.com domain of an installed shop.')
    parser.add_argument('variant_ids', nargs='+', help='ProductVariant GIDs to sync in one batched query.')
    parser.add_argument(
        '--continue-on-error',
        action='store_true',
        help='Attempt every variant even after one fails; the run still exits non-zero.',
    )
    args = parser.parse_args(argv)

    configure_logging()
    try:
        outcomes = sync_variants(args.shop_domain, args.variant_ids, continue_on_error=args.continue_on_error)
    except SyncError as exc:
        print(f'Shopify variant sync failed ({exc.kind.value}): {exc}')
        if exc.outcomes:
            print(f'Partial result: {_summary(exc.outcomes)}')
        return 1
    except ValueError as exc:
        print(f'Shopify variant sync failed: {exc}')
        return 1

    print(f'Shopify variant sync complete: {_summary(outcomes)}')
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
