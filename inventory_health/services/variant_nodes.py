from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class _Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class QuantityNode(_Node):
    name: str
    quantity: int


class LocationNode(_Node):
    id: str = Field(min_length=1)
    name: str


class InventoryLevelNode(_Node):
    id: str | None = None
    quantities: list[QuantityNode] = Field(default_factory=list)
    location: LocationNode

    @property
    def available_quantity(self) -> int:
        for entry in self.quantities:
            if entry.name == 'available':
                return entry.quantity
        return 0


class InventoryLevelEdge(_Node):
    node: InventoryLevelNode


class InventoryLevelConnection(_Node):
    edges: list[InventoryLevelEdge] = Field(default_factory=list)


class InventoryItemNode(_Node):
    id: str = Field(min_length=1)
    tracked: bool = True
    display_name: str | None = Field(default=None, alias='displayName')
    inventory_levels: InventoryLevelConnection = Field(
        default_factory=InventoryLevelConnection, alias='inventoryLevels'
    )


class ProductNode(_Node):
    id: str = Field(min_length=1)


class VariantNode(_Node):
    """One `ProductVariant` entry of a `nodes(ids:)` response."""

    id: str = Field(min_length=1)
    title: str
    inventory_item: InventoryItemNode = Field(alias='inventoryItem')
    product: ProductNode

    @property
    def inventory_levels(self) -> list[InventoryLevelNode]:
        return [edge.node for edge in self.inventory_item.inventory_levels.edges]


def parse_variant_node(raw) -> VariantNode | None:
    if isinstance(raw, VariantNode):
        return raw
    if not isinstance(raw, dict):
        return None
    try:
        return VariantNode.model_validate(raw)
    except ValidationError:
        return None
