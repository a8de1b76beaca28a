"""
Cost model configuration snapshot.

CONFIG layer — pure inputs (FX, project parameters, equipment / labour /
consumable / fuel catalogs, policy rule sets, settings). The snapshot is
frozen: engines read it, sensitivity and rate recalculation clone it with
``model_copy(update=...)``.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from costmodel import config as cfg
from costmodel.models.conditions import RuleCondition, parse_condition
from costmodel.models.rate_schema import (
    ConsumableRates,
    EquipmentRates,
    FuelRates,
    FuelScenario,
    LaborRates,
    RockTypeFactor,
    WearPoint,
)


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── FX ────────────────────────────────────────────────────────────────────────

class FXRates(Snapshot):
    effective_date: date = Field(default_factory=date.today)
    base_currency: Literal["USD"] = "USD"
    rates: Dict[str, float] = Field(..., description="Units of currency per 1 USD")
    source: Literal["manual", "bloomberg", "xe", "oanda"] = "manual"
    locked_until: Optional[date] = Field(None, description="Budget lock period end")

    @field_validator("rates")
    @classmethod
    def _positive_rates(cls, rates: Dict[str, float]) -> Dict[str, float]:
        for currency, rate in rates.items():
            if rate <= 0:
                raise ValueError(f"FX rate for {currency} must be positive, got {rate}")
        return rates


# ── Project parameters ───────────────────────────────────────────────────────

class LifeOfMine(Snapshot):
    years: int = Field(..., ge=0)
    start_year: int


class PenetrationRate(Snapshot):
    rock_type: str
    meters_per_hour: float = Field(..., gt=0)


class Availability(Snapshot):
    planned: float = Field(..., gt=0, le=1, description="Target availability")
    mechanical: float = Field(..., gt=0, le=1, description="Equipment reliability")
    operational: float = Field(..., gt=0, le=1, description="Labour / process availability")

    @property
    def oee(self) -> float:
        return self.planned * self.mechanical * self.operational


class ProjectParameters(Snapshot):
    project_code: str
    site_name: str = ""
    specific_gravity: float = Field(2.7, gt=0, description="Ore density")
    life_of_mine: LifeOfMine
    penetration_rates: List[PenetrationRate] = Field(..., min_length=1)
    availability: Availability
    precision_tolerance_mm: float = 5.0
    robotic_cycle_time_seconds: float = 45.0
    autonomy_level: Literal["supervised", "semi-autonomous", "fully-autonomous"] = "semi-autonomous"


# ── Catalogs ─────────────────────────────────────────────────────────────────

class EquipmentSpecs(Snapshot):
    power_kw: Optional[float] = Field(None, ge=0)
    weight_kg: Optional[float] = None
    capacity_unit: Optional[str] = None
    capacity: Optional[float] = None


class EquipmentItem(Snapshot):
    item_code: str
    name: str
    category: Literal["robot", "hauler", "drill", "sensor", "control", "support"] = "robot"
    base_cost: float = Field(..., description="Acquisition cost in item currency")
    currency: str = "USD"
    cost_unit: Literal["each", "set", "system"] = "each"
    specs: EquipmentSpecs = EquipmentSpecs()
    useful_life_years: float = Field(..., gt=0)
    salvage_value: float = Field(0.0, ge=0, le=100, description="% of base cost")
    vendor: str = ""
    lead_time_weeks: int = 0
    warranty_months: int = 0


class EquipmentCatalog(Snapshot):
    items: List[EquipmentItem] = []
    last_updated: Optional[datetime] = None
    approved_by: str = ""


class LaborRole(Snapshot):
    role_code: str
    title: str
    category: Literal["direct", "indirect", "supervision", "specialist"] = "direct"
    annual_rate: float
    currency: str = "USD"
    rate_type: Literal["salary", "hourly"] = "salary"
    utilization_factor: float = Field(..., gt=0, le=1, description="Productive hours ratio")
    burden_rate: float = Field(..., gt=0, description="Benefits + overhead as a multiplier")
    certifications: List[str] = []
    minimum_experience_years: float = 0.0


class LaborCatalog(Snapshot):
    roles: List[LaborRole] = []
    jurisdiction: str = ""
    collective_agreement: Optional[str] = None
    last_updated: Optional[datetime] = None


class ConsumableItem(Snapshot):
    code: str
    name: str
    cost_per_unit: float
    meters_per_unit: float = Field(..., gt=0)
    tonnes_per_unit: float = Field(..., gt=0)
    cycles_per_unit: float = Field(..., gt=0)
    wear_curve: Optional[List[WearPoint]] = None
    rock_type_factors: Optional[List[RockTypeFactor]] = None


class FuelItem(Snapshot):
    fuel_type: Literal["diesel", "electricity", "hydrogen"]
    base_cost_per_unit: float
    unit: Literal["liter", "kWh", "kg"]
    scenarios: List[FuelScenario] = []
    carbon_cost_per_unit: Optional[float] = None


# ── Policies ─────────────────────────────────────────────────────────────────

class MarginRule(Snapshot):
    cost_category: str
    margin_percent: float
    justification: str = ""
    approved_by: str = ""
    valid_from: date
    valid_to: Optional[date] = Field(None, description="Exclusive; open-ended when absent")


class MarginRules(Snapshot):
    rules: List[MarginRule] = []


class RiskPremium(Snapshot):
    attribute: Literal["depth", "rock_hardness", "grade", "abrasivity"]
    condition: str = Field(..., description='e.g. "> 500", ">= 8", "!= 3"')
    premium_percent: float
    rationale: str = ""

    _parsed: Optional[RuleCondition] = PrivateAttr(None)

    @model_validator(mode="after")
    def _parse_condition(self) -> "RiskPremium":
        self._parsed = parse_condition(self.attribute, self.condition)
        return self

    @property
    def parsed_condition(self) -> RuleCondition:
        """Condition parsed at validation; engines evaluate this, never the string."""
        return self._parsed


class RiskPremiums(Snapshot):
    premiums: List[RiskPremium] = []


class VolumeDiscountTier(Snapshot):
    min_quantity: float
    max_quantity: float
    discount_percent: float
    category: Literal["equipment", "consumables", "labor"]


class VolumeDiscounts(Snapshot):
    tiers: List[VolumeDiscountTier] = []


class FixedCostAllocation(Snapshot):
    cost_type: str
    allocation_method: Literal["tonnage", "meters", "hours", "headcount", "revenue"]
    allocation_basis: str = ""


class AllocationRules(Snapshot):
    fixed_cost_allocations: List[FixedCostAllocation] = []


# ── Settings ─────────────────────────────────────────────────────────────────

class CalculatorSettings(Snapshot):
    contingency_percent: float = 10.0
    rounding_precision: int = Field(2, ge=0)
    project_currency: str = "USD"


class AggregatorSettings(Snapshot):
    fiscal_year_start_month: int = Field(1, ge=1, le=12)
    discount_rate: float = 0.08
    tax_rate: float = 0.25


# ── Master config ────────────────────────────────────────────────────────────

class CostModelConfig(Snapshot):
    version: str = "3.0.0"
    model_name: str = "Cost Model"
    last_modified: Optional[datetime] = None
    modified_by: str = "system"

    fx_rates: FXRates
    project_parameters: ProjectParameters
    equipment_catalog: EquipmentCatalog = EquipmentCatalog()
    labor_catalog: LaborCatalog = LaborCatalog()
    consumable_catalog: List[ConsumableItem] = []
    fuel_catalog: List[FuelItem] = []

    # RATES layer: derived, populated by CostModelEngine.recalculate_rates()
    equipment_rates: Optional[List[EquipmentRates]] = None
    labor_rates: Optional[List[LaborRates]] = None
    consumable_rates: Optional[List[ConsumableRates]] = None
    fuel_rates: Optional[List[FuelRates]] = None

    margin_rules: MarginRules = MarginRules()
    risk_premiums: RiskPremiums = RiskPremiums()
    volume_discounts: VolumeDiscounts = VolumeDiscounts()
    allocation_rules: AllocationRules = AllocationRules()

    calculator_settings: CalculatorSettings = CalculatorSettings()
    aggregator_settings: AggregatorSettings = AggregatorSettings()


def _default_fuel_catalog() -> List[FuelItem]:
    return [
        FuelItem(
            fuel_type=fuel_type,
            base_cost_per_unit=base_cost,
            unit=unit,
            carbon_cost_per_unit=carbon,
            scenarios=[
                FuelScenario(name=name, multiplier=multiplier, probability=probability)
                for name, multiplier, probability in scenarios
            ],
        )
        for fuel_type, base_cost, unit, carbon, scenarios in cfg.DEFAULT_FUELS
    ]


def create_default_config() -> CostModelConfig:
    """
    Empty-catalog configuration with the standard operating defaults:
    FX (CAD 1.36, EUR 0.92, AUD 1.53, GBP 0.79), 15-year life of mine from
    the current year, soft / medium / hard penetration rates, 10 %
    contingency and an 8 % discount rate.
    """
    d = cfg.MODEL_DEFAULTS
    now = datetime.now(timezone.utc)
    availability: Dict[str, float] = d["availability"]  # type: ignore[assignment]
    return CostModelConfig(
        version=d["version"],
        model_name=d["model_name"],
        last_modified=now,
        modified_by="system",
        fx_rates=FXRates(rates=dict(d["fx_rates"])),
        project_parameters=ProjectParameters(
            project_code="RSM-001",
            site_name="New Site",
            specific_gravity=d["specific_gravity"],
            life_of_mine=LifeOfMine(years=d["life_of_mine_years"], start_year=now.year),
            penetration_rates=[
                PenetrationRate(rock_type=rock, meters_per_hour=rate)
                for rock, rate in d["penetration_rates"]
            ],
            availability=Availability(**availability),
        ),
        equipment_catalog=EquipmentCatalog(last_updated=now),
        labor_catalog=LaborCatalog(jurisdiction=d["jurisdiction"], last_updated=now),
        fuel_catalog=_default_fuel_catalog(),
        calculator_settings=CalculatorSettings(
            contingency_percent=d["contingency_percent"],
            rounding_precision=d["rounding_precision"],
            project_currency=d["project_currency"],
        ),
        aggregator_settings=AggregatorSettings(
            discount_rate=d["discount_rate"],
            tax_rate=d["tax_rate"],
        ),
    )
