"""
BlockCostCalculator — block-level marginal cost engine.

Covers:
  - Mining-hours estimate from geometry, penetration rate and OEE
  - OPEX: labour, consumables, energy, maintenance, overhead
    (equipment operating cost is reported and feeds overhead)
  - CAPEX allocation: equipment depreciation share + infrastructure
  - Policy adjustments: risk premiums, margins, volume discounts, contingency

Assembly order (each adjustment is taken on the same subtotal):
    subtotal    = opex_total + capex_total
    risk        = subtotal × Σ premiums %
    margin      = subtotal × Σ margins %
    discount    = −subtotal × Σ discounts %
    contingency = subtotal × contingency %
    grand_total = subtotal + risk + margin + discount + contingency
"""

import logging
import math
from datetime import date, datetime, timezone
from typing import List, Mapping, Optional, Tuple

from costmodel import config as cfg
from costmodel.models.block_schema import BlockCharacteristics
from costmodel.models.config_schema import CostModelConfig, PenetrationRate
from costmodel.models.results import (
    AppliedPolicy,
    BlockCostResult,
    CapexComponent,
    CostLine,
    OpexComponent,
)
from costmodel.services.policies_engine import PoliciesEngine
from costmodel.services.rates_engine import RatesCalculator, RateTables

logger = logging.getLogger("cost-model.calculator")


class BlockValidationError(ValueError):
    """Block characteristics that would make the cost result non-finite."""


def _step_multiplier(value: float, steps: List[Tuple[float, float]]) -> float:
    """Multiplier of the highest threshold strictly exceeded by ``value``."""
    for threshold, multiplier in sorted(steps, reverse=True):
        if value > threshold:
            return multiplier
    return 1.0


class BlockCostCalculator:
    """CALCULATOR layer: one block in, one BlockCostResult out."""

    def __init__(
        self,
        config: CostModelConfig,
        rate_tables: Optional[RateTables] = None,
        policies: Optional[PoliciesEngine] = None,
    ) -> None:
        self.config = config
        self.rates = rate_tables or RatesCalculator(config).build_rate_tables()
        self.policies = policies or PoliciesEngine(config)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def validate_block(block: BlockCharacteristics) -> None:
        numeric = {
            "depth": block.depth,
            "tonnage": block.tonnage,
            "hardness": block.hardness,
            "strike_length": block.strike_length,
            "width": block.width,
        }
        for name, value in numeric.items():
            if not math.isfinite(value):
                raise BlockValidationError(f"Block {block.block_id}: {name} must be finite, got {value}")
        if block.tonnage <= 0:
            raise BlockValidationError(
                f"Block {block.block_id}: tonnage must be positive, got {block.tonnage}"
            )
        for name in ("strike_length", "width"):
            if getattr(block, name) < 0:
                raise BlockValidationError(
                    f"Block {block.block_id}: {name} must not be negative, got {getattr(block, name)}"
                )
        if block.strike_length == 0 and block.width == 0:
            raise BlockValidationError(
                f"Block {block.block_id}: strike_length and width are both zero"
            )

    # ------------------------------------------------------------------
    # Mining hours
    # ------------------------------------------------------------------

    def penetration_rate_for(self, rock_type: str) -> PenetrationRate:
        """
        Case-insensitive match on rock type. Unknown rock types fall back to
        the second configured entry ("medium" in the default catalog).
        """
        rates = self.config.project_parameters.penetration_rates
        wanted = rock_type.lower()
        for rate in rates:
            if rate.rock_type.lower() == wanted:
                return rate
        fallback = rates[min(cfg.FALLBACK_PENETRATION_INDEX, len(rates) - 1)]
        logger.debug(f"Rock type '{rock_type}' not configured; using '{fallback.rock_type}'")
        return fallback

    def estimate_mining_hours(self, block: BlockCharacteristics) -> float:
        """(strike_length × width) / penetration rate, inflated by 1 / OEE."""
        pen_rate = self.penetration_rate_for(block.rock_type)
        meters_to_mine = block.strike_length * block.width
        base_hours = meters_to_mine / pen_rate.meters_per_hour
        return base_hours / self.config.project_parameters.availability.oee

    # ------------------------------------------------------------------
    # OPEX components
    # ------------------------------------------------------------------

    def calculate_labor_cost(self, mining_hours: float) -> float:
        total = 0.0
        for rate in self.rates.labor:
            # Coarse proxy: role codes marked "direct" carry full weight
            if cfg.DIRECT_ROLE_MARKER in rate.role_code:
                weight = cfg.DIRECT_LABOR_WEIGHT
            else:
                weight = cfg.INDIRECT_LABOR_WEIGHT
            total += rate.effective_hourly_rate * mining_hours * weight
        return total

    def calculate_equipment_cost(self, mining_hours: float) -> float:
        return sum(rate.cost_per_hour * mining_hours for rate in self.rates.equipment)

    def calculate_consumables_cost(self, block: BlockCharacteristics) -> float:
        depth_multiplier = _step_multiplier(block.depth, cfg.CONSUMABLES_DEPTH_STEPS)
        hardness_multiplier = _step_multiplier(block.hardness, cfg.CONSUMABLES_HARDNESS_STEPS)
        return (
            cfg.CONSUMABLES_BASE_RATE_PER_TONNE
            * block.tonnage
            * depth_multiplier
            * hardness_multiplier
        )

    def calculate_energy_cost(self, mining_hours: float) -> float:
        total_power_kw = sum(
            item.specs.power_kw or 0.0 for item in self.config.equipment_catalog.items
        )
        return total_power_kw * mining_hours * cfg.ELECTRICITY_RATE_PER_KWH

    def calculate_maintenance_cost(self, mining_hours: float) -> float:
        return sum(rate.maintenance_per_hour * mining_hours for rate in self.rates.equipment)

    @staticmethod
    def calculate_overhead(labor_cost: float, equipment_cost: float) -> float:
        return (labor_cost + equipment_cost) * cfg.OVERHEAD_PCT

    # ------------------------------------------------------------------
    # CAPEX allocation
    # ------------------------------------------------------------------

    def calculate_capex_allocation(self, block: BlockCharacteristics) -> CapexComponent:
        """
        Equipment capital spread over a production proxy of tonnage × 1000,
        plus $1/t infrastructure.
        """
        total_equipment_capital = sum(
            item.base_cost for item in self.config.equipment_catalog.items
        )
        total_production_estimate = block.tonnage * cfg.CAPEX_PRODUCTION_PROXY_FACTOR
        depreciation_per_tonne = total_equipment_capital / total_production_estimate
        equipment_depreciation = depreciation_per_tonne * block.tonnage
        infrastructure_allocation = block.tonnage * cfg.INFRASTRUCTURE_RATE_PER_TONNE
        return CapexComponent(
            equipment_depreciation=equipment_depreciation,
            infrastructure_allocation=infrastructure_allocation,
            total=equipment_depreciation + infrastructure_allocation,
        )

    # ------------------------------------------------------------------
    # Policies
    # ------------------------------------------------------------------

    def _applied_margins(self, evaluation_date: Optional[date]) -> List[AppliedPolicy]:
        applied = []
        for category in cfg.MARGIN_CATEGORIES:
            margin = self.policies.get_margin(category, evaluation_date)
            if margin:
                applied.append(AppliedPolicy(rule=category, amount=margin))
        return applied

    def _applied_discounts(
        self, order_quantities: Optional[Mapping[str, float]]
    ) -> List[AppliedPolicy]:
        applied = []
        for category, quantity in (order_quantities or {}).items():
            discount = self.policies.get_volume_discount(category, quantity)
            if discount:
                applied.append(AppliedPolicy(rule=category, amount=discount))
        return applied

    # ------------------------------------------------------------------
    # Full block cost
    # ------------------------------------------------------------------

    def calculate_block_cost(
        self,
        block: BlockCharacteristics,
        order_quantities: Optional[Mapping[str, float]] = None,
        evaluation_date: Optional[date] = None,
    ) -> BlockCostResult:
        """
        Marginal cost of mining ``block``.

        Args:
            block:            Block characteristics (tonnage > 0 required).
            order_quantities: Optional category → quantity used for volume
                              discount tiers. No discounts apply without it.
            evaluation_date:  Date margins are evaluated on (default today).

        Raises:
            BlockValidationError: tonnage ≤ 0, non-finite inputs, negative
                                  geometry, or zero strike length and width.
        """
        self.validate_block(block)

        mining_hours = self.estimate_mining_hours(block)

        # 1. Base costs by category
        labor_cost = self.calculate_labor_cost(mining_hours)
        equipment_cost = self.calculate_equipment_cost(mining_hours)
        consumables_cost = self.calculate_consumables_cost(block)
        energy_cost = self.calculate_energy_cost(mining_hours)
        maintenance_cost = self.calculate_maintenance_cost(mining_hours)
        overhead_cost = self.calculate_overhead(labor_cost, equipment_cost)
        capex = self.calculate_capex_allocation(block)

        # 2. Policies
        risk_premium_pct, applied_premiums = self.policies.calculate_risk_premium(block)
        applied_margins = self._applied_margins(evaluation_date)
        applied_discounts = self._applied_discounts(order_quantities)

        # 3. Assembly
        opex_total = labor_cost + consumables_cost + energy_cost + maintenance_cost + overhead_cost
        subtotal = opex_total + capex.total

        risk_adjustment = subtotal * (risk_premium_pct / 100.0)
        margin_adjustment = sum(m.amount / 100.0 * subtotal for m in applied_margins)
        discount_adjustment = sum(-(d.amount / 100.0) * subtotal for d in applied_discounts)
        contingency = subtotal * (self.config.calculator_settings.contingency_percent / 100.0)

        grand_total = (
            subtotal + risk_adjustment + margin_adjustment + discount_adjustment + contingency
        )

        cost_per_tonne = grand_total / block.tonnage
        cost_per_meter = grand_total / (block.strike_length or 1)

        # Percentages use pre-adjustment costs over the adjusted grand total
        def _line(category: str, cost: float) -> CostLine:
            pct = cost / grand_total * 100.0 if grand_total else 0.0
            return CostLine(category=category, cost=cost, percent_of_total=pct)

        breakdown = [
            _line("Labor", labor_cost),
            _line("Consumables", consumables_cost),
            _line("Energy", energy_cost),
            _line("Maintenance", maintenance_cost),
            _line("Overhead", overhead_cost),
            _line("Equipment CAPEX", capex.equipment_depreciation),
            _line("Infrastructure", capex.infrastructure_allocation),
        ]

        logger.debug(
            "block costed",
            extra={"block_id": block.block_id, "grand_total": round(grand_total, 2)},
        )

        return BlockCostResult(
            block_id=block.block_id,
            calculated_at=datetime.now(timezone.utc).isoformat(),
            config_version=self.config.version,
            cost_per_tonne=cost_per_tonne,
            cost_per_meter=cost_per_meter,
            breakdown=breakdown,
            capex_component=capex,
            opex_component=OpexComponent(
                labor=labor_cost,
                equipment=equipment_cost,
                consumables=consumables_cost,
                energy=energy_cost,
                maintenance=maintenance_cost,
                overhead=overhead_cost,
                total=opex_total,
            ),
            applied_margins=applied_margins,
            applied_premiums=applied_premiums,
            applied_discounts=applied_discounts,
            subtotal=subtotal,
            risk_adjustment=risk_adjustment,
            margin_adjustment=margin_adjustment,
            discount_adjustment=discount_adjustment,
            contingency=contingency,
            grand_total=grand_total,
        )
