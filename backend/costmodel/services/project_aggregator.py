"""
ProjectAggregator — project-level rollup of block costs.

Monthly cash flow from the life-of-mine start year through
start_year + years inclusive, fixed CAPEX / OPEX sub-splits, and the
summary metrics (NPV, IRR, payback, cost ratios).

No revenue stream is modelled: every period's net cash flow is
−(capex + opex).
"""

import logging
import math
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from costmodel import config as cfg
from costmodel.models.block_schema import BlockCharacteristics, BlockSchedule
from costmodel.models.config_schema import CostModelConfig
from costmodel.models.results import (
    BlockCostResult,
    CapexSplit,
    CashflowPeriod,
    OpexSplit,
    ProjectSummary,
)

logger = logging.getLogger("cost-model.aggregator")


# ---------------------------------------------------------------------------
# Discounting helpers
# ---------------------------------------------------------------------------

def calculate_npv(
    cashflows: Sequence[float],
    discount_rate: float,
    periods_per_year: int = cfg.PERIODS_PER_YEAR,
) -> float:
    """Σ cf[i] / (1 + r)^(i / periods_per_year)."""
    values = np.asarray(cashflows, dtype=float)
    if values.size == 0:
        return 0.0
    exponents = np.arange(values.size) / periods_per_year
    return float(np.sum(values / np.power(1.0 + discount_rate, exponents)))


def calculate_irr(
    cashflows: Sequence[float],
    guess: float = cfg.IRR_INITIAL_GUESS,
    periods_per_year: int = cfg.PERIODS_PER_YEAR,
    max_iterations: int = cfg.IRR_MAX_ITERATIONS,
    tolerance: float = cfg.IRR_TOLERANCE,
) -> Optional[float]:
    """
    Newton-Raphson IRR on a periodic series (annualised rate).

    Returns None — "unavailable" — when the derivative collapses below
    ``tolerance``, the iteration leaves the domain (rate ≤ −100 %) or goes
    non-finite, or no convergence within ``max_iterations``.
    """
    values = np.asarray(cashflows, dtype=float)
    if values.size == 0:
        return None
    t = np.arange(values.size) / periods_per_year

    rate = guess
    for _ in range(max_iterations):
        base = 1.0 + rate
        if base <= 0 or not math.isfinite(rate):
            return None

        with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
            factors = np.power(base, t)
            npv = float(np.sum(values / factors))
            deriv = float(-np.sum(t * values / (factors * base)))

        if not (math.isfinite(npv) and math.isfinite(deriv)):
            return None
        if abs(deriv) < tolerance:
            return None

        new_rate = rate - npv / deriv
        if abs(new_rate - rate) < tolerance:
            return new_rate
        rate = new_rate

    return None


# ---------------------------------------------------------------------------
# ProjectAggregator
# ---------------------------------------------------------------------------

class ProjectAggregator:
    """AGGREGATOR layer over precomputed block cost results."""

    def __init__(self, config: CostModelConfig) -> None:
        self.config = config

    def iter_periods(self) -> Iterable[tuple]:
        """(period, year, month) for start_year-01 … (start_year + years)-12."""
        lom = self.config.project_parameters.life_of_mine
        # Inclusive end year: years + 1 calendar years of periods
        for year in range(lom.start_year, lom.start_year + lom.years + 1):
            for month in range(1, 13):
                yield f"{year}-{month:02d}", year, month

    def generate_cashflow(
        self,
        block_costs: Iterable[BlockCostResult],
        schedule: Iterable[BlockSchedule],
        blocks: Optional[Iterable[BlockCharacteristics]] = None,
    ) -> List[CashflowPeriod]:
        """
        Roll block costs into monthly periods.

        Each scheduled block contributes its CAPEX and OPEX totals to its
        period. Schedule entries whose block has no cost result are ignored,
        as are entries outside the life-of-mine horizon.
        """
        costs: Dict[str, BlockCostResult] = {c.block_id: c for c in block_costs}
        tonnage: Dict[str, float] = {b.block_id: b.tonnage for b in (blocks or [])}

        by_period: Dict[str, List[BlockSchedule]] = defaultdict(list)
        for entry in schedule:
            by_period[entry.period].append(entry)

        cashflows: List[CashflowPeriod] = []
        for period, year, month in self.iter_periods():
            period_capex = 0.0
            period_opex = 0.0
            period_tonnage = 0.0
            block_ids: List[str] = []

            for entry in sorted(by_period.get(period, []), key=lambda s: s.sequence):
                cost = costs.get(entry.block_id)
                if cost is None:
                    logger.warning(f"Scheduled block {entry.block_id} has no cost result; skipped")
                    continue
                period_capex += cost.capex_component.total
                period_opex += cost.opex_component.total
                period_tonnage += tonnage.get(entry.block_id, 0.0)
                block_ids.append(entry.block_id)

            cashflows.append(CashflowPeriod(
                period=period,
                year=year,
                month=month,
                capex=CapexSplit(
                    equipment=period_capex * cfg.CAPEX_SPLIT["equipment"],
                    infrastructure=period_capex * cfg.CAPEX_SPLIT["infrastructure"],
                    development=period_capex * cfg.CAPEX_SPLIT["development"],
                    working_capital=0.0,
                    total=period_capex,
                ),
                opex=OpexSplit(
                    mining=period_opex * cfg.OPEX_SPLIT["mining"],
                    processing=period_opex * cfg.OPEX_SPLIT["processing"],
                    maintenance=period_opex * cfg.OPEX_SPLIT["maintenance"],
                    labor=period_opex * cfg.OPEX_SPLIT["labor"],
                    energy=period_opex * cfg.OPEX_SPLIT["energy"],
                    g_and_a=period_opex * cfg.OPEX_SPLIT["g_and_a"],
                    other=0.0,
                    total=period_opex,
                ),
                tonnage=period_tonnage,
                block_ids=block_ids,
                net_cashflow=-(period_capex + period_opex),
            ))

        # Second pass: running sum
        cumulative = 0.0
        for cf in cashflows:
            cumulative += cf.net_cashflow
            cf.cumulative_cashflow = cumulative

        known_periods = {cf.period for cf in cashflows}
        outside = sorted(p for p in by_period if p not in known_periods)
        if outside:
            logger.warning(f"{len(outside)} scheduled periods fall outside the life of mine: {outside[:5]}")

        return cashflows

    def generate_summary(self, cashflows: List[CashflowPeriod]) -> ProjectSummary:
        lom = self.config.project_parameters.life_of_mine
        discount_rate = self.config.aggregator_settings.discount_rate

        total_capex = sum(cf.capex.total for cf in cashflows)
        total_opex = sum(cf.opex.total for cf in cashflows)
        total_cashflow = cashflows[-1].cumulative_cashflow if cashflows else 0.0

        nets = [cf.net_cashflow for cf in cashflows]
        npv = calculate_npv(nets, discount_rate)
        irr = calculate_irr(nets)
        if irr is None:
            logger.info("IRR unavailable for this cash-flow series")

        payback_months = next(
            (i for i, cf in enumerate(cashflows) if cf.cumulative_cashflow >= 0),
            len(cashflows),
        )

        total_cost = total_capex + total_opex
        return ProjectSummary(
            project_start=f"{lom.start_year}-01",
            project_end=f"{lom.start_year + lom.years}-12",
            total_months=len(cashflows),
            total_capex=total_capex,
            total_opex=total_opex,
            total_cashflow=total_cashflow,
            npv=npv,
            irr=irr,
            payback_months=payback_months,
            # TODO: derive totals from the scheduled blocks once product confirms the basis
            cost_per_tonne=total_cost / cfg.PLACEHOLDER_TOTAL_TONNAGE,
            cost_per_meter=total_cost / cfg.PLACEHOLDER_TOTAL_METERS,
            opex_intensity=0.0,
            fixed_costs=total_capex,
            variable_costs=total_opex,
            fixed_cost_ratio=total_capex / total_cost if total_cost else 0.0,
        )
