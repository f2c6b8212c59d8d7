from __future__ import annotations

import re

GID_NUMBER_RE = re.compile(r'/(\d+)\Z')


class MockVariantFetcher:
    def __init__(self) -> None:
        self.locations = [
            ('gid://shopify/Location/1001', 'Main Warehouse'),
            ('gid://shopify/Location/1002', 'Downtown Store'),
        ]

    def _product_id(self, variant_id: str) -> str:
        match = GID_NUMBER_RE.search(variant_id)
        number = int(match.group(1)) if match else sum(ord(char) for char in variant_id)
        return f'gid://shopify/Product/{number // 10 or 1}'

    def _available(self, variant_id: str, location_index: int) -> int:
        checksum = sum(ord(char) for char in variant_id)
        return (checksum % 17) + location_index * 3

    def fetch_variants(self, variant_ids: list[str]) -> list[dict | None]:
        nodes: list[dict | None] = []
        for variant_id in variant_ids:
            edges = [
                {
                    'node': {
                        'id': f'{location_id}/level/{variant_id}',
                        'quantities': [{'name': 'available', 'quantity': self._available(variant_id, index)}],
                        'location': {'id': location_id, 'name': location_name},
                    }
                }
                for index, (location_id, location_name) in enumerate(self.locations)
            ]
            nodes.append(
                {
                    'id': variant_id,
                    'title': 'Default Title',
                    'inventoryItem': {
                        'id': variant_id,
                        'tracked': True,
                        'inventoryLevels': {'edges': edges},
                    },
                    'product': {'id': self._product_id(variant_id)},
                }
            )
        return nodes
