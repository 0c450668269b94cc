"""Property types on offer. Prices and costs in EUR, rent and maintenance per cycle."""

from dataclasses import dataclass
from datetime import datetime

from src.vt_common.errors import PropertyNotFoundError


@dataclass(frozen=True)
class PropertyType:
    id: str
    name: str
    price: float
    rent: float
    maintenance_cost: float
    tier: int


@dataclass
class PropertyAsset:
    id: int
    user_id: str
    asset_type: str
    purchase_price: float
    condition: int                       # 0..100
    last_rent_collected_at: datetime | None
    created_at: datetime


PROPERTY_CATALOG: dict[str, PropertyType] = {
    p.id: p
    for p in (
        PropertyType("garage", "Garage in Berlin", 15000.0, 110.0, 50.0, 1),
        PropertyType("apartment", "1-Zimmer Wohnung", 85000.0, 450.0, 120.0, 2),
        PropertyType("house", "Einfamilienhaus", 350000.0, 1800.0, 350.0, 3),
        PropertyType("luxury_apartment", "Luxus-Penthouse", 1200000.0, 6500.0, 1000.0, 4),
        PropertyType("commercial", "Gewerbeimmobilie", 2500000.0, 15000.0, 2500.0, 5),
        PropertyType("skyscraper", "Wolkenkratzer", 10000000.0, 75000.0, 10000.0, 6),
    )
}


def property_type(type_id: str) -> PropertyType:
    try:
        return PROPERTY_CATALOG[type_id]
    except KeyError:
        raise PropertyNotFoundError(type_id) from None
