from __future__ import annotations

import uuid
from datetime import date
from enum import Enum
from typing import Any, Sequence

from pydantic import BaseModel, Field, field_validator, model_validator

# Stored records that predate the explicit price lock are treated as locked when
# the adjusted and nominal values differ by at least this amount.
LEGACY_SYNC_TOLERANCE = 1.0


def new_id() -> str:
    return uuid.uuid4().hex


class Category(str, Enum):
    production = "Production"
    equipment = "Equipment"
    logistics = "Logistics"
    other = "Other"


class LineItem(BaseModel):
    id: str = Field(default_factory=new_id)
    category: Category = Category.other
    description: str = ""
    quantity: float = Field(default=1.0, gt=0, allow_inf_nan=False)
    unit_cost: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    hidden: bool = False

    @field_validator("quantity", mode="before")
    @classmethod
    def _default_quantity(cls, value: Any) -> Any:
        if value is None or value == "":
            return 1.0
        return value

    @field_validator("unit_cost", mode="before")
    @classmethod
    def _default_unit_cost(cls, value: Any) -> Any:
        if value is None or value == "":
            return 0.0
        return value

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_cost


class Budget(BaseModel):
    id: str = Field(default_factory=new_id)
    lead_id: str
    opportunity_id: str | None = None
    title: str = "New Project"
    created_on: date = Field(default_factory=date.today)
    validity_days: int = Field(default=7, ge=0)
    valid_until: date | None = None

    profit_pct: float = Field(default=20.0, allow_inf_nan=False)
    bv_pct: float = Field(default=10.0, allow_inf_nan=False)
    tax_pct: float = Field(default=10.0, allow_inf_nan=False)

    total_cost: float = Field(default=0.0, allow_inf_nan=False)
    nominal_sale_value: float = Field(default=0.0, allow_inf_nan=False)
    adjusted_final_value: float = Field(default=0.0, allow_inf_nan=False)
    price_locked: bool = False

    is_closed: bool = False
    is_archived: bool = False
    items: list[LineItem] = Field(default_factory=list)

    presentation_text: str | None = None
    strategic_objective: str | None = None
    delivery_specs: str | None = None
    delivery_forecast: str | None = None
    client_mode: bool = False
    process_steps: Sequence[str] = Field(default_factory=list)
    payment_terms: str = ""
    notices: str = ""

    @field_validator("profit_pct", "bv_pct", "tax_pct", mode="before")
    @classmethod
    def _default_percentage(cls, value: Any) -> Any:
        if value is None or value == "":
            return 0.0
        return value

    @field_validator("tax_pct")
    @classmethod
    def _tax_above_floor(cls, value: float) -> float:
        if value <= -100:
            raise ValueError("tax_pct must be greater than -100")
        return value

    @model_validator(mode="before")
    @classmethod
    def _infer_price_lock(cls, data: Any) -> Any:
        if isinstance(data, dict) and "price_locked" not in data:
            adjusted = float(data.get("adjusted_final_value") or 0)
            nominal = float(data.get("nominal_sale_value") or 0)
            if adjusted and abs(adjusted - nominal) >= LEGACY_SYNC_TOLERANCE:
                data = {**data, "price_locked": True}
        return data

    @property
    def active_items(self) -> list[LineItem]:
        return [item for item in self.items if not item.hidden]

    @property
    def client_price(self) -> float:
        """Value shown to the client; legacy records may only carry the nominal value."""
        return self.adjusted_final_value or self.nominal_sale_value

    def find_item(self, item_id: str) -> LineItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


__all__ = ["Budget", "Category", "LineItem", "LEGACY_SYNC_TOLERANCE", "new_id"]
