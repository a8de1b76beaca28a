"""
RatesCalculator — derives atomic per-unit rates from the CONFIG layer.

Covers:
  - Equipment time rates (straight-line depreciation + maintenance + insurance)
  - Labour loaded / effective hourly rates (burden, utilisation)
  - Consumable unit rates with depth wear curves and rock-type factors
  - Fuel rates with volatility scenarios (what-if only)

All outputs are in the project currency.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from costmodel import config as cfg
from costmodel.models.config_schema import ConsumableItem, CostModelConfig
from costmodel.models.rate_schema import (
    ConsumableRates,
    EquipmentRates,
    FuelRates,
    LaborRates,
    WearPoint,
)
from costmodel.services.fx_resolver import FXResolver

logger = logging.getLogger("cost-model.rates")


def _default_wear_curve() -> List[WearPoint]:
    return [
        WearPoint(depth=depth, wear_multiplier=multiplier)
        for depth, multiplier in cfg.DEFAULT_WEAR_CURVE
    ]


@dataclass(frozen=True)
class RateTables:
    """Derived rate tables for one configuration snapshot."""
    equipment: Tuple[EquipmentRates, ...]
    labor: Tuple[LaborRates, ...]
    consumables: Tuple[ConsumableRates, ...]
    fuel: Tuple[FuelRates, ...]


class RatesCalculator:
    """RATES layer over a single configuration snapshot."""

    HOURS_PER_DAY: int = cfg.OPERATING_HOURS_PER_DAY
    DAYS_PER_YEAR: int = cfg.OPERATING_DAYS_PER_YEAR
    DAYS_PER_MONTH: int = cfg.OPERATING_DAYS_PER_MONTH

    def __init__(self, config: CostModelConfig, fx: Optional[FXResolver] = None) -> None:
        self.config = config
        self.fx = fx or FXResolver(config.fx_rates)
        self.project_currency = config.calculator_settings.project_currency

    # ------------------------------------------------------------------
    # 1. Equipment
    # ------------------------------------------------------------------

    def calculate_equipment_rates(self) -> List[EquipmentRates]:
        """
        Cost per time unit for every equipment item.

        Formula:
            depreciable  = cost × (1 − salvage%)
            annual_dep   = depreciable / useful_life_years
            cost_per_year = annual_dep + 5% × cost + 2% × cost
            cost_per_hour = cost_per_year / (300 days × 20 h)
        """
        hours_per_year = self.DAYS_PER_YEAR * self.HOURS_PER_DAY
        planned = self.config.project_parameters.availability.planned

        rates: List[EquipmentRates] = []
        for item in self.config.equipment_catalog.items:
            cost = self.fx.convert(item.base_cost, item.currency, self.project_currency)

            depreciable_value = cost * (1 - item.salvage_value / 100.0)
            annual_depreciation = depreciable_value / item.useful_life_years
            annual_maintenance = cost * cfg.EQUIPMENT_MAINTENANCE_PCT
            annual_insurance = cost * cfg.EQUIPMENT_INSURANCE_PCT
            total_annual_cost = annual_depreciation + annual_maintenance + annual_insurance

            rates.append(EquipmentRates(
                item_code=item.item_code,
                cost_per_year=total_annual_cost,
                cost_per_month=total_annual_cost / 12,
                cost_per_day=total_annual_cost / self.DAYS_PER_YEAR,
                cost_per_hour=total_annual_cost / hours_per_year,
                depreciation_per_hour=annual_depreciation / hours_per_year,
                maintenance_per_hour=annual_maintenance / hours_per_year,
                hours_per_day=self.HOURS_PER_DAY,
                days_per_month=self.DAYS_PER_MONTH,
                utilization_assumption=planned,
            ))
        return rates

    # ------------------------------------------------------------------
    # 2. Labour
    # ------------------------------------------------------------------

    def calculate_labor_rates(self) -> List[LaborRates]:
        """
        Fully loaded labour rates.

        loaded_annual = annual_rate × burden
        loaded_hourly = loaded_annual / 2080
        effective     = loaded_hourly / utilization_factor
        """
        hours_per_year = cfg.STANDARD_HOURS_PER_YEAR

        rates: List[LaborRates] = []
        for role in self.config.labor_catalog.roles:
            base_annual = self.fx.convert(role.annual_rate, role.currency, self.project_currency)
            loaded_annual = base_annual * role.burden_rate
            loaded_hourly = loaded_annual / hours_per_year

            rates.append(LaborRates(
                role_code=role.role_code,
                loaded_hourly_rate=loaded_hourly,
                loaded_daily_rate=loaded_hourly * cfg.STANDARD_HOURS_PER_DAY,
                loaded_monthly_rate=loaded_annual / 12,
                base_rate=base_annual / hours_per_year,
                benefits=base_annual * (role.burden_rate - 1) / hours_per_year,
                overhead=0.0,
                effective_hourly_rate=loaded_hourly / role.utilization_factor,
            ))
        return rates

    # ------------------------------------------------------------------
    # 3. Consumables
    # ------------------------------------------------------------------

    def calculate_consumable_rates(
        self, consumables: Optional[List[ConsumableItem]] = None
    ) -> List[ConsumableRates]:
        """Unit costs normalised per meter / tonne / cycle, with wear curves attached."""
        items = self.config.consumable_catalog if consumables is None else consumables
        return [
            ConsumableRates(
                item_code=item.code,
                name=item.name,
                cost_per_meter=item.cost_per_unit / item.meters_per_unit,
                cost_per_tonne=item.cost_per_unit / item.tonnes_per_unit,
                cost_per_cycle=item.cost_per_unit / item.cycles_per_unit,
                wear_curve=list(item.wear_curve) if item.wear_curve else _default_wear_curve(),
                rock_type_factors=list(item.rock_type_factors or []),
            )
            for item in items
        ]

    # ------------------------------------------------------------------
    # 4. Fuel
    # ------------------------------------------------------------------

    def calculate_fuel_rates(self) -> List[FuelRates]:
        """Fuel base costs plus scenario distributions for sensitivity work."""
        return [
            FuelRates(
                fuel_type=fuel.fuel_type,
                base_cost_per_unit=fuel.base_cost_per_unit,
                unit=fuel.unit,
                scenarios=list(fuel.scenarios),
                carbon_cost_per_unit=fuel.carbon_cost_per_unit,
            )
            for fuel in self.config.fuel_catalog
        ]

    # ------------------------------------------------------------------
    # 5. Rate tables
    # ------------------------------------------------------------------

    def build_rate_tables(self) -> RateTables:
        tables = RateTables(
            equipment=tuple(self.calculate_equipment_rates()),
            labor=tuple(self.calculate_labor_rates()),
            consumables=tuple(self.calculate_consumable_rates()),
            fuel=tuple(self.calculate_fuel_rates()),
        )
        logger.debug(
            f"Rate tables built: {len(tables.equipment)} equipment, "
            f"{len(tables.labor)} labour, {len(tables.consumables)} consumables, "
            f"{len(tables.fuel)} fuel"
        )
        return tables
