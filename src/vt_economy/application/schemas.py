"""Pydantic schemas for property market results."""

from pydantic import BaseModel

from src.vt_common.money import eur_to_display
from src.vt_economy.domain.properties import PropertyAsset, PropertyType
from src.vt_economy.domain.rules import calculate_rent


class PropertyItem(BaseModel):
    id: int
    asset_type: str
    name: str
    purchase_price: float
    condition: int
    current_rent: int
    current_rent_display: str
    repair_cost: float
    last_rent_collected_at: str | None

    @classmethod
    def from_asset(
        cls, asset: PropertyAsset, ptype: PropertyType, repair_multiplier: float
    ) -> "PropertyItem":
        rent = calculate_rent(ptype.rent, asset.condition)
        return cls(
            id=asset.id,
            asset_type=asset.asset_type,
            name=ptype.name,
            purchase_price=asset.purchase_price,
            condition=asset.condition,
            current_rent=rent,
            current_rent_display=eur_to_display(rent),
            repair_cost=ptype.maintenance_cost * repair_multiplier,
            last_rent_collected_at=(
                asset.last_rent_collected_at.isoformat() if asset.last_rent_collected_at else None
            ),
        )


class PropertyReceipt(BaseModel):
    action: str          # "buy" | "sell" | "repair"
    asset_id: int
    asset_type: str
    name: str
    amount: float        # EUR moved, negative = paid
    amount_display: str
    condition: int
    balance_after: float
    achievements: list[str] = []
