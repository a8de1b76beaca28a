"""
Cost model configuration — single source of truth for pipeline ordering,
fixed operating assumptions, placeholder constants and financial defaults.

Import from here in all services rather than hardcoding values.
"""
from __future__ import annotations

# ── Pipeline order ─────────────────────────────────────────────────────────────
# CONFIG → RATES → POLICIES → CALCULATOR → AGGREGATOR
PIPELINE_ORDER: list[str] = [
    "RatesCalculator",
    "PoliciesEngine",
    "BlockCostCalculator",
    "ProjectAggregator",
]

BASE_CURRENCY: str = "USD"


# ── Equipment operating assumptions ────────────────────────────────────────────
# System-wide policy defaults, not item-specific.

OPERATING_HOURS_PER_DAY: int = 20        # 2x 10 hr shifts with overlap
OPERATING_DAYS_PER_YEAR: int = 300
OPERATING_DAYS_PER_MONTH: int = 25

EQUIPMENT_MAINTENANCE_PCT: float = 0.05  # 5% of capital annually
EQUIPMENT_INSURANCE_PCT: float = 0.02    # 2% of capital annually


# ── Labour assumptions ─────────────────────────────────────────────────────────

STANDARD_HOURS_PER_YEAR: int = 2080
STANDARD_HOURS_PER_DAY: int = 8

# Substring match on the role code, so "sup_indirect" also counts as direct
DIRECT_ROLE_MARKER: str = "direct"
DIRECT_LABOR_WEIGHT: float = 1.0
INDIRECT_LABOR_WEIGHT: float = 0.3

# Index of the penetration-rate entry used when the rock type is unknown
# (the "medium" entry in the default catalog)
FALLBACK_PENETRATION_INDEX: int = 1


# ── Consumables ────────────────────────────────────────────────────────────────

CONSUMABLES_BASE_RATE_PER_TONNE: float = 2.50

# Step functions: (threshold, multiplier), evaluated "strictly greater than",
# deepest / hardest threshold wins.
CONSUMABLES_DEPTH_STEPS: list[tuple[float, float]] = [
    (1000.0, 1.5),
    (500.0, 1.25),
]
CONSUMABLES_HARDNESS_STEPS: list[tuple[float, float]] = [
    (8.0, 1.6),
    (6.0, 1.3),
]

# Wear curve attached to consumable rates when none is configured
DEFAULT_WEAR_CURVE: list[tuple[float, float]] = [
    (0.0, 1.0),
    (200.0, 1.1),
    (500.0, 1.25),
    (1000.0, 1.5),
]


# ── Energy, overhead, CAPEX placeholders ──────────────────────────────────────

ELECTRICITY_RATE_PER_KWH: float = 0.12
OVERHEAD_PCT: float = 0.15                   # G&A on labour + equipment

# Life-of-operation production proxy: block tonnage x this factor
CAPEX_PRODUCTION_PROXY_FACTOR: float = 1000.0
INFRASTRUCTURE_RATE_PER_TONNE: float = 1.0

# Margin categories evaluated for every block
MARGIN_CATEGORIES: list[str] = ["labor", "equipment"]

DEFAULT_ALLOCATION_METHOD: str = "tonnage"
DEFAULT_ALLOCATION_BASIS: str = "Default allocation per tonne"


# ── Cash-flow splits ───────────────────────────────────────────────────────────

CAPEX_SPLIT: dict[str, float] = {
    "equipment":      0.70,
    "infrastructure": 0.20,
    "development":    0.10,
}

OPEX_SPLIT: dict[str, float] = {
    "mining":      0.40,
    "processing":  0.20,
    "maintenance": 0.15,
    "labor":       0.15,
    "energy":      0.05,
    "g_and_a":     0.05,
}

PERIODS_PER_YEAR: int = 12


# ── Financial metrics ──────────────────────────────────────────────────────────

IRR_INITIAL_GUESS: float = 0.10
IRR_MAX_ITERATIONS: int = 100
IRR_TOLERANCE: float = 1e-4

# Summary unit costs use these until production totals come from the schedule
PLACEHOLDER_TOTAL_TONNAGE: float = 1_000_000.0
PLACEHOLDER_TOTAL_METERS: float = 5_000.0


# ── Sensitivity analysis ───────────────────────────────────────────────────────

SENSITIVITY_VARIABLES: list[str] = [
    "discount_rate",
    "equipment_cost",
    "labor_cost",
]


# ── Model defaults (used by create_default_config) ────────────────────────────

MODEL_DEFAULTS: dict[str, object] = {
    "version": "3.0.0",
    "model_name": "Robotics Surgical Mining Cost Model",
    "fx_rates": {"CAD": 1.36, "EUR": 0.92, "AUD": 1.53, "GBP": 0.79},
    "specific_gravity": 2.7,
    "life_of_mine_years": 15,
    "penetration_rates": [("soft", 2.5), ("medium", 1.5), ("hard", 0.8)],
    "availability": {"planned": 0.92, "mechanical": 0.95, "operational": 0.97},
    "contingency_percent": 10.0,
    "rounding_precision": 2,
    "project_currency": "USD",
    "discount_rate": 0.08,
    "tax_rate": 0.25,
    "jurisdiction": "Canada - Ontario",
}

# Fuel catalog: (fuel_type, base cost, unit, carbon cost, [(scenario, multiplier, probability)])
DEFAULT_FUELS: list[tuple] = [
    ("diesel", 1.35, "liter", 0.12, [
        ("low", 0.8, 0.15),
        ("base", 1.0, 0.50),
        ("high", 1.3, 0.25),
        ("extreme", 1.8, 0.10),
    ]),
    ("electricity", 0.12, "kWh", None, [
        ("low", 0.9, 0.20),
        ("base", 1.0, 0.60),
        ("high", 1.2, 0.15),
        ("extreme", 1.5, 0.05),
    ]),
]
