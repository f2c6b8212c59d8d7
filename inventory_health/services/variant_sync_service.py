from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from sqlalchemy.orm import Session

from inventory_health.config import settings
from inventory_health.models import Shop
from inventory_health.services.fetcher_factory import get_variant_fetcher
from inventory_health.services.reconciliation_service import (
    FailurePolicy,
    OutcomeStatus,
    VariantSyncOutcome,
    reconcile_variant_nodes,
)
from inventory_health.services.sync_errors import SyncError, SyncErrorKind
from inventory_health.services.variant_fetcher import VariantFetcher

module_logger = logging.getLogger(__name__)


class VariantSyncService:
    """Fetches variants for one shop in a single batched query and reconciles them.

    One instance serves one sync invocation. The fetcher and logger are supplied by
    the caller so tests and jobs can swap them.
    """

    def __init__(
        self,
        db: Session,
        shop: Shop,
        fetcher: VariantFetcher,
        *,
        failure_policy: FailurePolicy | str | None = None,
        conflict_retries: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.db = db
        self.shop = shop
        self.fetcher = fetcher
        self.failure_policy = self._resolve_failure_policy(failure_policy or settings.sync_failure_policy)
        self.conflict_retries = settings.sync_conflict_retries if conflict_retries is None else conflict_retries
        self.logger = logger or module_logger

    @classmethod
    def for_shop(cls, db: Session, shop: Shop, **kwargs) -> VariantSyncService:
        try:
            fetcher = get_variant_fetcher(shop)
        except ValueError as exc:
            module_logger.error('Error initializing VariantSyncService: %s', exc)
            raise SyncError(
                f'Failed to initialize sync service: {exc}',
                kind=SyncErrorKind.FETCH_FAILURE,
            ) from exc
        return cls(db, shop, fetcher, **kwargs)

    def sync_variants(self, variant_ids: Sequence[str]) -> list[VariantSyncOutcome]:
        ids = self._validate_variant_ids(variant_ids)

        self.logger.info('Starting sync for %d variants of %s', len(ids), self.shop.shopify_domain)
        started = time.monotonic()

        nodes = self._fetch_variants_data(ids)
        outcomes = self._process_variants_data(nodes)

        elapsed = time.monotonic() - started
        failures = [outcome for outcome in outcomes if outcome.failed]
        if failures:
            first = failures[0]
            self.logger.error('Sync failed after %.2f seconds: %d variant(s) failed', elapsed, len(failures))
            raise SyncError(
                f'Failed to sync variants: failed to process variant {first.variant_id}: {first.error}',
                kind=SyncErrorKind.RECONCILIATION_FAILURE,
                outcomes=outcomes,
            )

        synced = sum(1 for outcome in outcomes if outcome.status == OutcomeStatus.SYNCED)
        skipped = sum(1 for outcome in outcomes if outcome.status == OutcomeStatus.SKIPPED)
        self.logger.info(
            'Sync completed in %.2f seconds: synced=%d, skipped=%d, nodes=%d',
            elapsed,
            synced,
            skipped,
            len(nodes),
        )
        return outcomes

    @staticmethod
    def _resolve_failure_policy(value: FailurePolicy | str) -> FailurePolicy:
        try:
            return FailurePolicy(value)
        except ValueError as exc:
            raise SyncError(
                f"Invalid failure policy: {value!r} (expected 'abort' or 'continue')",
                kind=SyncErrorKind.INVALID_INPUT,
            ) from exc

    def _validate_variant_ids(self, variant_ids) -> list[str]:
        if isinstance(variant_ids, (str, bytes)) or not isinstance(variant_ids, Sequence) or not variant_ids:
            raise SyncError('Invalid variant_ids: must be a non-empty array', kind=SyncErrorKind.INVALID_INPUT)
        if any(not isinstance(variant_id, str) or not variant_id.strip() for variant_id in variant_ids):
            raise SyncError(
                'Invalid variant_ids: every id must be a non-blank string',
                kind=SyncErrorKind.INVALID_INPUT,
            )
        return list(variant_ids)

    def _fetch_variants_data(self, variant_ids: list[str]) -> list:
        try:
            nodes = self.fetcher.fetch_variants(variant_ids)
        except Exception as exc:
            self.logger.error('GraphQL query failed: %s', exc)
            raise SyncError(f'Failed to fetch variants data: {exc}', kind=SyncErrorKind.FETCH_FAILURE) from exc

        if not isinstance(nodes, list):
            self.logger.error('GraphQL query returned %s instead of a node list', type(nodes).__name__)
            raise SyncError('Failed to fetch variants data: malformed response', kind=SyncErrorKind.FETCH_FAILURE)
        return nodes

    def _process_variants_data(self, nodes: list) -> list[VariantSyncOutcome]:
        try:
            return reconcile_variant_nodes(
                self.db,
                self.shop,
                nodes,
                failure_policy=self.failure_policy,
                conflict_retries=self.conflict_retries,
                logger=self.logger,
            )
        except Exception as exc:
            self.db.rollback()
            self.logger.exception('Sync failed while reconciling variants')
            raise SyncError(
                f'Failed to sync variants: {exc}',
                kind=SyncErrorKind.RECONCILIATION_FAILURE,
            ) from exc
