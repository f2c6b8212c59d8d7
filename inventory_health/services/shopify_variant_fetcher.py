from __future__ import annotations

import json
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from inventory_health.config import settings
from inventory_health.models import Shop

VARIANTS_QUERY = '''
query getVariantsStock($ids: [ID!]!, $levelsFirst: Int!) {
  nodes(ids: $ids) {
    ... on ProductVariant {
      id
      title
      inventoryItem {
        id
        tracked
        inventoryLevels(first: $levelsFirst) {
          edges {
            node {
              id
              quantities(names: ["available"]) {
                name
                quantity
              }
              location {
                id
                name
              }
            }
          }
        }
      }
      product {
        id
      }
    }
  }
}
'''


class ShopifyGraphQLClient:
    def __init__(
        self,
        *,
        shop_domain: str,
        access_token: str,
        api_version: str,
        timeout_seconds: int,
    ) -> None:
        if not shop_domain:
            raise ValueError('Shop domain is required for the Shopify Admin API')
        if not access_token:
            raise ValueError('Shop access token is required for the Shopify Admin API')

        self.url = f'https://{shop_domain.strip().rstrip("/")}/admin/api/{api_version}/graphql.json'
        self.timeout_seconds = timeout_seconds
        self.headers = {
            'X-Shopify-Access-Token': access_token,
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }

    def query(self, query: str, variables: dict) -> dict:
        req = Request(
            url=self.url,
            data=json.dumps({'query': query, 'variables': variables}).encode('utf-8'),
            headers=self.headers,
            method='POST',
        )
        try:
            with urlopen(req, timeout=self.timeout_seconds) as response:
                parsed = json.loads(response.read().decode('utf-8'))
        except HTTPError as exc:
            body = exc.read().decode('utf-8', errors='ignore') if exc.fp else ''
            raise RuntimeError(f'Shopify API error {exc.code}: {body}') from exc
        except URLError as exc:
            raise RuntimeError(f'Shopify API network error: {exc.reason}') from exc
        except json.JSONDecodeError as exc:
            raise RuntimeError(f'Shopify API returned invalid JSON: {exc}') from exc

        if not isinstance(parsed, dict):
            raise RuntimeError('Shopify API returned a malformed response')
        if parsed.get('errors'):
            raise RuntimeError(f"Shopify API returned errors: {parsed['errors']}")
        return parsed


class ShopifyVariantFetcher:
    def __init__(self, client: ShopifyGraphQLClient, *, levels_page_size: int | None = None) -> None:
        self.client = client
        self.levels_page_size = levels_page_size or settings.inventory_levels_page_size

    @classmethod
    def for_shop(cls, shop: Shop) -> ShopifyVariantFetcher:
        client = ShopifyGraphQLClient(
            shop_domain=shop.shopify_domain,
            access_token=shop.shopify_token,
            api_version=shop.api_version,
            timeout_seconds=settings.shopify_timeout_seconds,
        )
        return cls(client)

    def fetch_variants(self, variant_ids: list[str]) -> list[dict | None]:
        response = self.client.query(
            VARIANTS_QUERY,
            {'ids': list(variant_ids), 'levelsFirst': self.levels_page_size},
        )
        data = response.get('data')
        if not isinstance(data, dict) or not isinstance(data.get('nodes'), list):
            raise RuntimeError('Shopify API response is missing data.nodes')
        return data['nodes']
