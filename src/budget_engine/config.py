from __future__ import annotations

import os
from typing import Mapping

from pydantic import BaseModel

from .defaults import (
    DEFAULT_BV_PCT,
    DEFAULT_PROFIT_PCT,
    DEFAULT_TAX_PCT,
    DEFAULT_VALIDITY_DAYS,
    BudgetDefaults,
)

_ENV_VARS: Mapping[str, str] = {
    "environment": "ENVIRONMENT",
    "project_id": "PROJECT_ID",
    "budgets_collection": "BUDGETS_COLLECTION",
    "catalog_collection": "CATALOG_COLLECTION",
    "default_profit_pct": "DEFAULT_PROFIT_PCT",
    "default_bv_pct": "DEFAULT_BV_PCT",
    "default_tax_pct": "DEFAULT_TAX_PCT",
    "default_validity_days": "DEFAULT_VALIDITY_DAYS",
}


class Settings(BaseModel):
    environment: str = "dev"
    project_id: str | None = None
    budgets_collection: str = "budgets"
    catalog_collection: str = "catalog"
    default_profit_pct: float = DEFAULT_PROFIT_PCT
    default_bv_pct: float = DEFAULT_BV_PCT
    default_tax_pct: float = DEFAULT_TAX_PCT
    default_validity_days: int = DEFAULT_VALIDITY_DAYS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables, ignoring unset ones."""
        env = os.environ if environ is None else environ
        values = {field: env[var] for field, var in _ENV_VARS.items() if env.get(var)}
        return cls.model_validate(values)

    @property
    def is_dev(self) -> bool:
        return self.environment == "dev"

    def budget_defaults(self) -> BudgetDefaults:
        return BudgetDefaults(
            profit_pct=self.default_profit_pct,
            bv_pct=self.default_bv_pct,
            tax_pct=self.default_tax_pct,
            validity_days=self.default_validity_days,
        )


__all__ = ["Settings"]
