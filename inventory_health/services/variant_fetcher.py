from __future__ import annotations

from typing import Protocol


class VariantFetcher(Protocol):
    def fetch_variants(self, variant_ids: list[str]) -> list[dict | None]: ...
