"""
conftest.py — Shared pytest fixtures for the cost model test suite.

No database or external service fixtures are defined here. All engine tests
are pure unit tests over an in-memory configuration snapshot; route tests
use FastAPI's TestClient.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``costmodel.*`` imports resolve correctly regardless of where pytest is
    invoked.
"""

import sys
import os
from datetime import date
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any costmodel imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def sample_config():
    """
    Deterministic snapshot for numeric verification.

    Equipment:
      ROB-001   1,000,000 USD, 10-yr life, 10% salvage, 100 kW
      HAUL-001  1,360,000 CAD (= 1,000,000 USD at 1.36), 10-yr life, 10% salvage
    Labour:
      op_direct     100,000/yr, burden 1.4, utilisation 0.8
      sup_support   150,000/yr, burden 1.3, utilisation 0.9
    Policies:
      margins   labor 5% (from 2020-01-01, open), equipment 3% [2020-01-01, 2030-01-01)
      premiums  depth > 500 → 5%, rock_hardness >= 8 → 3%
      discount  equipment 10–100 units → 2%
    Project: 2-year life of mine from 2025 → 36 monthly periods, 10% contingency.
    """
    from costmodel.models.config_schema import (
        AggregatorSettings,
        Availability,
        CalculatorSettings,
        CostModelConfig,
        EquipmentCatalog,
        EquipmentItem,
        EquipmentSpecs,
        FXRates,
        LaborCatalog,
        LaborRole,
        LifeOfMine,
        MarginRule,
        MarginRules,
        PenetrationRate,
        ProjectParameters,
        RiskPremium,
        RiskPremiums,
        VolumeDiscounts,
        VolumeDiscountTier,
    )
    return CostModelConfig(
        version="test-1",
        fx_rates=FXRates(rates={"CAD": 1.36, "EUR": 0.92, "AUD": 1.53, "GBP": 0.79}),
        project_parameters=ProjectParameters(
            project_code="TEST-001",
            life_of_mine=LifeOfMine(years=2, start_year=2025),
            penetration_rates=[
                PenetrationRate(rock_type="soft", meters_per_hour=2.5),
                PenetrationRate(rock_type="medium", meters_per_hour=1.5),
                PenetrationRate(rock_type="hard", meters_per_hour=0.8),
            ],
            availability=Availability(planned=0.92, mechanical=0.95, operational=0.97),
        ),
        equipment_catalog=EquipmentCatalog(items=[
            EquipmentItem(
                item_code="ROB-001",
                name="Cutting robot",
                base_cost=1_000_000.0,
                currency="USD",
                specs=EquipmentSpecs(power_kw=100.0),
                useful_life_years=10,
                salvage_value=10.0,
            ),
            EquipmentItem(
                item_code="HAUL-001",
                name="Autonomous hauler",
                category="hauler",
                base_cost=1_360_000.0,
                currency="CAD",
                useful_life_years=10,
                salvage_value=10.0,
            ),
        ]),
        labor_catalog=LaborCatalog(roles=[
            LaborRole(
                role_code="op_direct",
                title="Robot operator",
                annual_rate=100_000.0,
                utilization_factor=0.8,
                burden_rate=1.4,
            ),
            LaborRole(
                role_code="sup_support",
                title="Shift supervisor",
                category="supervision",
                annual_rate=150_000.0,
                utilization_factor=0.9,
                burden_rate=1.3,
            ),
        ]),
        margin_rules=MarginRules(rules=[
            MarginRule(cost_category="labor", margin_percent=5.0, valid_from=date(2020, 1, 1)),
            MarginRule(
                cost_category="equipment",
                margin_percent=3.0,
                valid_from=date(2020, 1, 1),
                valid_to=date(2030, 1, 1),
            ),
        ]),
        risk_premiums=RiskPremiums(premiums=[
            RiskPremium(attribute="depth", condition="> 500", premium_percent=5.0),
            RiskPremium(attribute="rock_hardness", condition=">= 8", premium_percent=3.0),
        ]),
        volume_discounts=VolumeDiscounts(tiers=[
            VolumeDiscountTier(min_quantity=10, max_quantity=100, discount_percent=2.0,
                               category="equipment"),
        ]),
        calculator_settings=CalculatorSettings(contingency_percent=10.0, rounding_precision=2),
        aggregator_settings=AggregatorSettings(discount_rate=0.08),
    )


@pytest.fixture(scope="session")
def default_config():
    """create_default_config() — empty catalogs, standard defaults."""
    from costmodel.models.config_schema import create_default_config
    return create_default_config()


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def rates_calculator(sample_config):
    from costmodel.services.rates_engine import RatesCalculator
    return RatesCalculator(sample_config)


@pytest.fixture(scope="session")
def policies_engine(sample_config):
    from costmodel.services.policies_engine import PoliciesEngine
    return PoliciesEngine(sample_config)


@pytest.fixture(scope="session")
def block_calculator(sample_config):
    from costmodel.services.block_cost_engine import BlockCostCalculator
    return BlockCostCalculator(sample_config)


@pytest.fixture(scope="session")
def aggregator(sample_config):
    from costmodel.services.project_aggregator import ProjectAggregator
    return ProjectAggregator(sample_config)


@pytest.fixture(scope="session")
def engine(sample_config):
    from costmodel.services.cost_model_engine import CostModelEngine
    return CostModelEngine(sample_config)


# ---------------------------------------------------------------------------
# Shared sample blocks and schedule
# ---------------------------------------------------------------------------

@pytest.fixture
def deep_hard_block():
    """
    600 m deep, hardness 8.5, 10,000 t, 20 m × 5 m face in hard rock.
    Both sample risk premiums match (5% + 3% = 8%).
    """
    from costmodel.models.block_schema import BlockCharacteristics
    return BlockCharacteristics(
        block_id="B-001",
        depth=600.0,
        tonnage=10_000.0,
        rock_type="hard",
        hardness=8.5,
        strike_length=20.0,
        width=5.0,
    )


@pytest.fixture
def shallow_soft_block():
    """200 m deep, hardness 4, 5,000 t, 10 m × 4 m face. No premiums match."""
    from costmodel.models.block_schema import BlockCharacteristics
    return BlockCharacteristics(
        block_id="B-002",
        depth=200.0,
        tonnage=5_000.0,
        rock_type="Soft",
        hardness=4.0,
        strike_length=10.0,
        width=4.0,
    )


@pytest.fixture
def sample_blocks(deep_hard_block, shallow_soft_block):
    return [deep_hard_block, shallow_soft_block]


@pytest.fixture
def sample_schedule():
    """B-001 in the first month, B-002 six months later."""
    from costmodel.models.block_schema import BlockSchedule
    return [
        BlockSchedule(block_id="B-001", period="2025-01", sequence=1),
        BlockSchedule(block_id="B-002", period="2025-07", sequence=1),
    ]
