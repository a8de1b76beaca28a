"""Output records produced by the calculator and aggregator layers."""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class CostLine:
    category: str
    cost: float
    percent_of_total: float


@dataclass(frozen=True)
class AppliedPolicy:
    rule: str      # margin category | risk attribute | discount category
    amount: float  # percent


@dataclass(frozen=True)
class CapexComponent:
    equipment_depreciation: float
    infrastructure_allocation: float
    total: float


@dataclass(frozen=True)
class OpexComponent:
    labor: float
    equipment: float     # reported; enters the total through overhead only
    consumables: float
    energy: float
    maintenance: float
    overhead: float
    total: float


@dataclass(frozen=True)
class BlockCostResult:
    block_id: str
    calculated_at: str
    config_version: str
    cost_per_tonne: float
    cost_per_meter: float
    breakdown: List[CostLine]
    capex_component: CapexComponent
    opex_component: OpexComponent
    applied_margins: List[AppliedPolicy]
    applied_premiums: List[AppliedPolicy]
    applied_discounts: List[AppliedPolicy]
    subtotal: float
    risk_adjustment: float
    margin_adjustment: float
    discount_adjustment: float
    contingency: float
    grand_total: float


@dataclass
class CapexSplit:
    equipment: float = 0.0
    infrastructure: float = 0.0
    development: float = 0.0
    working_capital: float = 0.0
    total: float = 0.0


@dataclass
class OpexSplit:
    mining: float = 0.0
    processing: float = 0.0
    maintenance: float = 0.0
    labor: float = 0.0
    energy: float = 0.0
    g_and_a: float = 0.0
    other: float = 0.0
    total: float = 0.0


@dataclass
class CashflowPeriod:
    period: str  # YYYY-MM
    year: int
    month: int
    capex: CapexSplit = field(default_factory=CapexSplit)
    opex: OpexSplit = field(default_factory=OpexSplit)
    tonnage: float = 0.0
    block_ids: List[str] = field(default_factory=list)
    net_cashflow: float = 0.0
    cumulative_cashflow: float = 0.0


@dataclass(frozen=True)
class ProjectSummary:
    project_start: str
    project_end: str
    total_months: int
    total_capex: float
    total_opex: float
    total_cashflow: float
    npv: float
    irr: Optional[float]  # None when the root-finder does not converge
    payback_months: int
    cost_per_tonne: float
    cost_per_meter: float
    opex_intensity: float
    fixed_costs: float
    variable_costs: float
    fixed_cost_ratio: float


@dataclass(frozen=True)
class SensitivityPoint:
    variation: float
    npv: float
    irr: Optional[float]


@dataclass(frozen=True)
class ProjectionResult:
    block_costs: List[BlockCostResult]
    cashflows: List[CashflowPeriod]
    summary: ProjectSummary
