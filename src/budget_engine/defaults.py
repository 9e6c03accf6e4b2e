from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from .models.budget import Budget

DEFAULT_PROFIT_PCT = 20.0
DEFAULT_BV_PCT = 10.0
DEFAULT_TAX_PCT = 10.0
DEFAULT_VALIDITY_DAYS = 7

DEFAULT_PROCESS_STEPS: Sequence[str] = (
    "1. Contract",
    "2. Briefing",
    "3. Script",
    "4. Production",
    "5. Editing",
    "6. Presentation",
    "7. Approval",
)

DEFAULT_PAYMENT_TERMS = "Up to 30 days after the invoice is issued."

DEFAULT_NOTICES = (
    "Video: up to 2 rounds of revisions included. Further changes are billed per technical hour.\n\n"
    "Audio: re-recordings caused by script changes pass the voice talent's fee through."
)

DEFAULT_DELIVERY_FORECAST = "To be agreed"


@dataclass(frozen=True)
class BudgetDefaults:
    profit_pct: float = DEFAULT_PROFIT_PCT
    bv_pct: float = DEFAULT_BV_PCT
    tax_pct: float = DEFAULT_TAX_PCT
    validity_days: int = DEFAULT_VALIDITY_DAYS
    process_steps: Sequence[str] = DEFAULT_PROCESS_STEPS
    payment_terms: str = DEFAULT_PAYMENT_TERMS
    notices: str = DEFAULT_NOTICES


def new_budget(
    *,
    lead_id: str,
    title: str = "New Project",
    opportunity_id: str | None = None,
    today: date | None = None,
    defaults: BudgetDefaults | None = None,
) -> Budget:
    defaults = defaults or BudgetDefaults()
    created_on = today or date.today()
    return Budget(
        lead_id=lead_id,
        opportunity_id=opportunity_id,
        title=title,
        created_on=created_on,
        validity_days=defaults.validity_days,
        valid_until=created_on + timedelta(days=defaults.validity_days),
        profit_pct=defaults.profit_pct,
        bv_pct=defaults.bv_pct,
        tax_pct=defaults.tax_pct,
        process_steps=list(defaults.process_steps),
        payment_terms=defaults.payment_terms,
        notices=defaults.notices,
        delivery_forecast=DEFAULT_DELIVERY_FORECAST,
    )


__all__ = [
    "BudgetDefaults",
    "new_budget",
    "DEFAULT_PROCESS_STEPS",
    "DEFAULT_PROFIT_PCT",
    "DEFAULT_BV_PCT",
    "DEFAULT_TAX_PCT",
    "DEFAULT_VALIDITY_DAYS",
]
