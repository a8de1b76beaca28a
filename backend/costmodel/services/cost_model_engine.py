"""
CostModelEngine — facade over the RATES → POLICIES → CALCULATOR → AGGREGATOR
pipeline for one configuration snapshot.

Rate tables are built once at construction; a configuration change means a
new engine.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Iterable, List, Mapping, Optional

from costmodel import config as cfg
from costmodel.models.block_schema import BlockCharacteristics, BlockSchedule
from costmodel.models.config_schema import CostModelConfig
from costmodel.models.results import BlockCostResult, ProjectionResult, SensitivityPoint
from costmodel.services.block_cost_engine import BlockCostCalculator
from costmodel.services.perf_monitor import timed, tracker
from costmodel.services.policies_engine import PoliciesEngine
from costmodel.services.project_aggregator import ProjectAggregator
from costmodel.services.rates_engine import RatesCalculator

logger = logging.getLogger("cost-model.engine")


def apply_variation(config: CostModelConfig, variable: str, variation: float) -> CostModelConfig:
    """
    Clone ``config`` with one variable family scaled by (1 + variation / 100).

    Supported: discount_rate, equipment_cost (every equipment base cost),
    labor_cost (every role's annual rate). Any other name returns the
    unmodified config.
    """
    multiplier = 1 + variation / 100.0

    if variable == "discount_rate":
        settings = config.aggregator_settings
        return config.model_copy(update={
            "aggregator_settings": settings.model_copy(
                update={"discount_rate": settings.discount_rate * multiplier}
            ),
        })

    if variable == "equipment_cost":
        catalog = config.equipment_catalog
        return config.model_copy(update={
            "equipment_catalog": catalog.model_copy(update={
                "items": [
                    item.model_copy(update={"base_cost": item.base_cost * multiplier})
                    for item in catalog.items
                ],
            }),
        })

    if variable == "labor_cost":
        catalog = config.labor_catalog
        return config.model_copy(update={
            "labor_catalog": catalog.model_copy(update={
                "roles": [
                    role.model_copy(update={"annual_rate": role.annual_rate * multiplier})
                    for role in catalog.roles
                ],
            }),
        })

    # TODO: raise once callers stop relying on the pass-through for unknown names
    logger.warning(
        f"Unsupported sensitivity variable '{variable}'; config left unchanged "
        f"(supported: {cfg.SENSITIVITY_VARIABLES})"
    )
    return config


class CostModelEngine:
    """Entry point for rate recalculation, block costing and projections."""

    def __init__(self, config: CostModelConfig) -> None:
        self.config = config
        self.rates_calc = RatesCalculator(config)
        self.rate_tables = self.rates_calc.build_rate_tables()
        self.policies = PoliciesEngine(config)
        self.block_calc = BlockCostCalculator(config, self.rate_tables, self.policies)
        self.aggregator = ProjectAggregator(config)

    # ------------------------------------------------------------------
    # Rates
    # ------------------------------------------------------------------

    def recalculate_rates(self) -> CostModelConfig:
        """New snapshot with the derived rate tables filled in; input untouched."""
        return self.config.model_copy(update={
            "equipment_rates": list(self.rate_tables.equipment),
            "labor_rates": list(self.rate_tables.labor),
            "consumable_rates": list(self.rate_tables.consumables),
            "fuel_rates": list(self.rate_tables.fuel),
        })

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def calculate_block(
        self,
        block: BlockCharacteristics,
        order_quantities: Optional[Mapping[str, float]] = None,
        evaluation_date: Optional[date] = None,
    ) -> BlockCostResult:
        try:
            result = self.block_calc.calculate_block_cost(block, order_quantities, evaluation_date)
        except ValueError:
            tracker.record_failure("calculate_block")
            raise
        tracker.record_blocks(1)
        return result

    @timed
    def calculate_blocks(
        self,
        blocks: Iterable[BlockCharacteristics],
        evaluation_date: Optional[date] = None,
        order_quantities: Optional[Mapping[str, float]] = None,
    ) -> List[BlockCostResult]:
        return [self.calculate_block(block, order_quantities, evaluation_date) for block in blocks]

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    @timed
    def run_full_projection(
        self,
        blocks: List[BlockCharacteristics],
        schedule: List[BlockSchedule],
        evaluation_date: Optional[date] = None,
        order_quantities: Optional[Mapping[str, float]] = None,
    ) -> ProjectionResult:
        """Cost every block, lay the costs on the monthly grid and summarise.

        ``order_quantities`` feeds the volume discount tiers for every block.
        """
        block_costs = self.calculate_blocks(blocks, evaluation_date, order_quantities)
        cashflows = self.aggregator.generate_cashflow(block_costs, schedule, blocks)
        summary = self.aggregator.generate_summary(cashflows)
        tracker.record_projection()
        logger.info(
            f"Projection complete: {len(block_costs)} blocks, {len(cashflows)} periods, "
            f"NPV {summary.npv:,.2f}"
        )
        return ProjectionResult(block_costs=block_costs, cashflows=cashflows, summary=summary)

    # ------------------------------------------------------------------
    # Sensitivity
    # ------------------------------------------------------------------

    def _run_variation(
        self,
        blocks: List[BlockCharacteristics],
        schedule: List[BlockSchedule],
        variable: str,
        variation: float,
        evaluation_date: Optional[date],
        order_quantities: Optional[Mapping[str, float]],
    ) -> SensitivityPoint:
        engine = CostModelEngine(apply_variation(self.config, variable, variation))
        summary = engine.run_full_projection(
            blocks, schedule, evaluation_date, order_quantities
        ).summary
        return SensitivityPoint(variation=variation, npv=summary.npv, irr=summary.irr)

    @timed
    def run_sensitivity(
        self,
        blocks: List[BlockCharacteristics],
        schedule: List[BlockSchedule],
        variable: str,
        variations: List[float],
        evaluation_date: Optional[date] = None,
        max_workers: int = 1,
        order_quantities: Optional[Mapping[str, float]] = None,
    ) -> List[SensitivityPoint]:
        """
        Re-run the full projection once per variation on an independent
        engine. Variations share no state, so ``max_workers > 1`` runs them
        on a thread pool; results keep the order of ``variations``.
        """
        if max_workers > 1 and len(variations) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                futures = [
                    pool.submit(
                        self._run_variation, blocks, schedule, variable, v,
                        evaluation_date, order_quantities,
                    )
                    for v in variations
                ]
                return [f.result() for f in futures]
        return [
            self._run_variation(blocks, schedule, variable, v, evaluation_date, order_quantities)
            for v in variations
        ]
