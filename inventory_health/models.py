from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    event,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from inventory_health.config import settings
from inventory_health.services.health_service import calculate_health_percentage


class Base(DeclarativeBase):
    pass


class Shop(Base):
    __tablename__ = 'shops'

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True)
    shopify_domain: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    shopify_token: Mapped[str] = mapped_column(Text, nullable=False)
    access_scopes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    variants: Mapped[list[Variant]] = relationship(back_populates='shop')
    locations: Mapped[list[Location]] = relationship(back_populates='shop')

    @property
    def api_version(self) -> str:
        return settings.shopify_api_version


class Location(Base):
    __tablename__ = 'locations'
    __table_args__ = (UniqueConstraint('shop_id', 'shopify_location_id', name='uq_locations_shop_shopify_location'),)

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True)
    shop_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('shops.id'), nullable=False, index=True)
    shopify_location_id: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    shop: Mapped[Shop] = relationship(back_populates='locations')
    inventory_levels: Mapped[list[InventoryLevel]] = relationship(
        back_populates='location', cascade='all', passive_deletes=True
    )


class Variant(Base):
    __tablename__ = 'variants'
    __table_args__ = (
        UniqueConstraint('display_name', 'shop_id', name='uq_variants_display_name_shop'),
        CheckConstraint('minimum_quantity >= 0', name='ck_variants_minimum_quantity_non_negative'),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True)
    shop_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('shops.id'), nullable=False, index=True)
    shopify_product_id: Mapped[str] = mapped_column(Text, nullable=False)
    shopify_variant_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    variant_title: Mapped[str] = mapped_column(Text, nullable=False)
    display_name: Mapped[str | None] = mapped_column(Text)
    is_tracked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    minimum_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    shop: Mapped[Shop] = relationship(back_populates='variants')
    inventory_levels: Mapped[list[InventoryLevel]] = relationship(
        back_populates='variant', cascade='all', passive_deletes=True
    )


class InventoryLevel(Base):
    __tablename__ = 'inventory_levels'
    __table_args__ = (
        UniqueConstraint(
            'location_id',
            'variant_id',
            'shopify_inventory_item_id',
            name='uq_inventory_levels_location_variant_item',
        ),
        CheckConstraint('minimum_quantity >= 0', name='ck_inventory_levels_minimum_quantity_non_negative'),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True)
    location_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey('locations.id', ondelete='CASCADE'), nullable=False, index=True
    )
    variant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey('variants.id', ondelete='CASCADE'), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    minimum_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    # 12 integer digits hold the largest value: quantity 2**31 - 1 against a minimum of 1.
    health_percentage: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal('0.00'), server_default='0'
    )
    shopify_inventory_item_id: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    location: Mapped[Location] = relationship(back_populates='inventory_levels')
    variant: Mapped[Variant] = relationship(back_populates='inventory_levels')

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault('minimum_quantity', 0)
        kwargs.setdefault('health_percentage', Decimal('0.00'))
        super().__init__(**kwargs)

    def refresh_health_percentage(self) -> None:
        if isinstance(self.quantity, int) and isinstance(self.minimum_quantity, int):
            self.health_percentage = calculate_health_percentage(self.quantity, self.minimum_quantity)


@event.listens_for(InventoryLevel, 'before_insert')
@event.listens_for(InventoryLevel, 'before_update')
def _stamp_health_percentage(_mapper, _connection, target: InventoryLevel) -> None:
    target.refresh_health_percentage()
