from __future__ import annotations

from pydantic import BaseModel, Field

from .budget import Category


class CatalogEntry(BaseModel):
    name: str = Field(min_length=1)
    last_price: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    category: Category | None = None
    usage_count: int = Field(default=0, ge=0)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Drone Footage",
                "last_price": 500.0,
                "category": "Equipment",
                "usage_count": 3,
            }
        }


__all__ = ["CatalogEntry"]
