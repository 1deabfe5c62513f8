"""
Savings goal planning: how much to invest each period to reach a target,
and how that money is expected to grow.

Returns compound per payment period at `annual_return / payments_per_year`.
"""
from __future__ import annotations

import logging
from datetime import date

from divtrack.config import ProjectionConfig
from divtrack.errors import ValidationError
from divtrack.models import GrowthPoint, InvestmentPlan
from divtrack.utils.dates import today as _today

logger = logging.getLogger(__name__)


def _check_schedule(years: int, payments_per_year: int) -> None:
    if years <= 0:
        raise ValidationError("Investment years must be greater than 0")
    if payments_per_year <= 0:
        raise ValidationError("Payments per year must be greater than 0")


class GoalCalculator:
    def __init__(self, config: ProjectionConfig | None = None):
        self.config = config or ProjectionConfig()

    def historical_return(self, symbol: str) -> float:
        return self.config.historical_returns.get(symbol, self.config.default_return)

    def required_investment(self, symbol: str, goal: float, years: int, payments_per_year: int) -> float:
        """Periodic payment that grows to `goal` (future value of an ordinary annuity)."""
        _check_schedule(years, payments_per_year)
        if goal <= 0:
            raise ValidationError("Goal amount must be greater than 0")

        periods = years * payments_per_year
        i = self.historical_return(symbol) / payments_per_year
        if i == 0:
            return goal / periods
        return goal * i / ((1 + i) ** periods - 1)

    def growth_projection(self, symbol: str, periodic: float, years: int, payments_per_year: int) -> list[GrowthPoint]:
        """
        One point per period, period 0 included. Each period compounds the
        balance and then adds a payment, except the final period which only
        compounds.
        """
        _check_schedule(years, payments_per_year)
        i = self.historical_return(symbol) / payments_per_year
        periods = years * payments_per_year

        points: list[GrowthPoint] = []
        amount = 0.0
        for period in range(periods + 1):
            if period > 0:
                amount *= 1 + i
                if period < periods:
                    amount += periodic
            points.append(
                GrowthPoint(
                    year=period / payments_per_year,
                    amount=amount,
                    principal=period * periodic,
                )
            )
        return points

    def forecast_value(self, plan: InvestmentPlan, year: int) -> tuple[float, float]:
        """(expected balance, % gain over principal) `year` years into the plan."""
        for p in plan.projection_data or []:
            if int(p.year) == year:
                gain = p.amount - p.principal
                return p.amount, (gain / p.principal * 100.0 if p.principal > 0 else 0.0)

        freq = plan.investment_frequency
        periods = freq * year
        if periods <= 0:
            return 0.0, 0.0

        rate = self.config.fallback_forecast_rate / freq
        value = 0.0
        for _ in range(periods):
            value = value * (1 + rate) + plan.required_amount
        principal = plan.required_amount * periods
        return value, ((value - principal) / principal * 100.0 if principal > 0 else 0.0)

    def forecast_milestones(self, plan: InvestmentPlan) -> list[tuple[int, float, float]]:
        """Forecasts at year 1, the halfway year and the final year, without duplicates."""
        years: list[int] = []
        for y in (1, plan.investment_years // 2, plan.investment_years):
            if y > 0 and y not in years:
                years.append(y)
        return [(y, *self.forecast_value(plan, y)) for y in years]

    def create_plan(
        self,
        title: str,
        goal: float,
        symbol: str,
        years: int,
        payments_per_year: int,
        today: date | None = None,
    ) -> InvestmentPlan:
        title = title.strip()
        if not title:
            raise ValidationError("Plan title is required")
        required = self.required_investment(symbol, goal, years, payments_per_year)
        projection = self.growth_projection(symbol, required, years, payments_per_year)
        logger.debug("Plan %r: %.2f per period over %d periods", title, required, years * payments_per_year)
        return InvestmentPlan(
            title=title,
            target_amount=goal,
            target_year=(today or _today()).year + years,
            symbol=symbol,
            investment_years=years,
            investment_frequency=payments_per_year,
            required_amount=required,
            projection_data=projection,
        )
