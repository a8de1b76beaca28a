from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class DerivedRecord(BaseModel):
    """Derived rates are values: recomputed from the catalogs, never edited."""
    model_config = ConfigDict(frozen=True)


class EquipmentRates(DerivedRecord):
    item_code: str
    cost_per_hour: float
    cost_per_day: float
    cost_per_month: float
    cost_per_year: float
    depreciation_per_hour: float
    maintenance_per_hour: float
    hours_per_day: int
    days_per_month: int
    utilization_assumption: float


class LaborRates(DerivedRecord):
    role_code: str
    loaded_hourly_rate: float
    loaded_daily_rate: float
    loaded_monthly_rate: float
    base_rate: float
    benefits: float
    overhead: float = 0.0
    effective_hourly_rate: float = Field(..., description="Loaded hourly rate / utilization")


class WearPoint(DerivedRecord):
    depth: float = Field(..., ge=0, description="Meters below surface")
    wear_multiplier: float = Field(..., gt=0, description="1.0 = baseline")


class RockTypeFactor(DerivedRecord):
    rock_type: str
    consumption_multiplier: float = Field(..., gt=0)


class ConsumableRates(DerivedRecord):
    item_code: str
    name: str
    cost_per_meter: float
    cost_per_tonne: float
    cost_per_cycle: float
    wear_curve: List[WearPoint]
    rock_type_factors: List[RockTypeFactor] = []

    def wear_multiplier_at(self, depth: float) -> float:
        """Multiplier of the deepest curve point at or above ``depth``."""
        multiplier = 1.0
        for point in sorted(self.wear_curve, key=lambda p: p.depth):
            if depth >= point.depth:
                multiplier = point.wear_multiplier
        return multiplier

    def rock_factor(self, rock_type: str) -> float:
        wanted = (rock_type or "").lower()
        for factor in self.rock_type_factors:
            if factor.rock_type.lower() == wanted:
                return factor.consumption_multiplier
        return 1.0


class FuelScenario(DerivedRecord):
    name: str = Field(..., description="low | base | high | extreme")
    multiplier: float = Field(..., ge=0)
    probability: float = Field(..., ge=0, le=1)


class FuelRates(DerivedRecord):
    fuel_type: str
    base_cost_per_unit: float
    unit: str
    scenarios: List[FuelScenario]
    carbon_cost_per_unit: Optional[float] = None

    def expected_multiplier(self) -> float:
        """Probability-weighted multiplier across the scenario distribution."""
        total_probability = sum(s.probability for s in self.scenarios)
        if total_probability <= 0:
            return 1.0
        weighted = sum(s.multiplier * s.probability for s in self.scenarios)
        return weighted / total_probability

    def expected_cost(self) -> float:
        return self.base_cost_per_unit * self.expected_multiplier()

    def scenario_cost(self, name: str) -> float:
        for scenario in self.scenarios:
            if scenario.name == name:
                return self.base_cost_per_unit * scenario.multiplier
        raise ValueError(
            f"Unknown scenario '{name}' for {self.fuel_type}. "
            f"Choose from {[s.name for s in self.scenarios]}"
        )
