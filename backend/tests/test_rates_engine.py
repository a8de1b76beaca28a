"""
test_rates_engine.py — Unit tests for RatesCalculator and the derived rate records.

Worked equipment example (ROB-001):
    cost          = 1,000,000 USD, salvage 10%, life 10 yr
    annual_dep    = 900,000 / 10           = 90,000
    maintenance   = 5% × 1,000,000         = 50,000
    insurance     = 2% × 1,000,000         = 20,000
    cost_per_year = 160,000
    cost_per_hour = 160,000 / (300 × 20)   ≈ 26.6667
"""

import pytest


_HOURS_PER_YEAR = 300 * 20


# ===========================================================================
# Equipment
# ===========================================================================

class TestEquipmentRates:

    def test_worked_example(self, rates_calculator):
        rates = {r.item_code: r for r in rates_calculator.calculate_equipment_rates()}
        rob = rates["ROB-001"]
        assert abs(rob.cost_per_year - 160_000.0) < 1e-6
        assert abs(rob.cost_per_hour - 160_000.0 / _HOURS_PER_YEAR) < 1e-9
        assert abs(rob.depreciation_per_hour - 15.0) < 1e-9
        assert abs(rob.maintenance_per_hour - 50_000.0 / _HOURS_PER_YEAR) < 1e-9

    def test_time_rates_are_consistent(self, rates_calculator):
        """hour × 20 = day, day × 300 = year, year / 12 = month."""
        for r in rates_calculator.calculate_equipment_rates():
            assert abs(r.cost_per_hour * 20 - r.cost_per_day) < 1e-6
            assert abs(r.cost_per_day * 300 - r.cost_per_year) < 1e-6
            assert abs(r.cost_per_year / 12 - r.cost_per_month) < 1e-6

    def test_foreign_currency_is_converted(self, rates_calculator):
        """HAUL-001 costs 1,360,000 CAD = 1,000,000 USD → same rates as ROB-001."""
        rates = {r.item_code: r for r in rates_calculator.calculate_equipment_rates()}
        assert abs(rates["HAUL-001"].cost_per_year - rates["ROB-001"].cost_per_year) < 1e-6

    def test_operating_assumptions_recorded(self, rates_calculator):
        rob = rates_calculator.calculate_equipment_rates()[0]
        assert rob.hours_per_day == 20
        assert rob.days_per_month == 25
        assert rob.utilization_assumption == 0.92

    def test_empty_catalog_gives_no_rates(self, default_config):
        from costmodel.services.rates_engine import RatesCalculator
        assert RatesCalculator(default_config).calculate_equipment_rates() == []


# ===========================================================================
# Labour
# ===========================================================================

class TestLaborRates:

    def test_loaded_and_effective_rates(self, rates_calculator):
        """
        op_direct: 100,000 × 1.4 = 140,000 loaded annual
            loaded_hourly = 140,000 / 2080 ≈ 67.3077
            effective     = 67.3077 / 0.8  ≈ 84.1346
        """
        rates = {r.role_code: r for r in rates_calculator.calculate_labor_rates()}
        op = rates["op_direct"]
        assert abs(op.loaded_hourly_rate - 140_000 / 2080) < 1e-9
        assert abs(op.effective_hourly_rate - 140_000 / 2080 / 0.8) < 1e-9
        assert abs(op.loaded_daily_rate - op.loaded_hourly_rate * 8) < 1e-9
        assert abs(op.loaded_monthly_rate - 140_000 / 12) < 1e-9

    def test_base_plus_benefits_equals_loaded(self, rates_calculator):
        for r in rates_calculator.calculate_labor_rates():
            assert abs(r.base_rate + r.benefits - r.loaded_hourly_rate) < 1e-9
            assert r.overhead == 0.0

    def test_effective_rate_not_below_loaded(self, rates_calculator):
        for r in rates_calculator.calculate_labor_rates():
            assert r.effective_hourly_rate >= r.loaded_hourly_rate


# ===========================================================================
# Consumables
# ===========================================================================

class TestConsumableRates:

    @pytest.fixture
    def bit(self):
        from costmodel.models.config_schema import ConsumableItem
        from costmodel.models.rate_schema import RockTypeFactor, WearPoint
        return ConsumableItem(
            code="BIT-45",
            name="45 mm button bit",
            cost_per_unit=400.0,
            meters_per_unit=800.0,
            tonnes_per_unit=2000.0,
            cycles_per_unit=50.0,
            wear_curve=[
                WearPoint(depth=0, wear_multiplier=1.0),
                WearPoint(depth=400, wear_multiplier=1.2),
            ],
            rock_type_factors=[RockTypeFactor(rock_type="Granite", consumption_multiplier=1.4)],
        )

    def test_unit_normalisation(self, rates_calculator, bit):
        rate = rates_calculator.calculate_consumable_rates([bit])[0]
        assert rate.cost_per_meter == 0.5
        assert rate.cost_per_tonne == 0.2
        assert rate.cost_per_cycle == 8.0

    def test_wear_multiplier_uses_deepest_point_reached(self, rates_calculator, bit):
        rate = rates_calculator.calculate_consumable_rates([bit])[0]
        assert rate.wear_multiplier_at(100) == 1.0
        assert rate.wear_multiplier_at(400) == 1.2
        assert rate.wear_multiplier_at(2000) == 1.2

    def test_default_wear_curve_attached(self, rates_calculator, bit):
        plain = bit.model_copy(update={"wear_curve": None})
        rate = rates_calculator.calculate_consumable_rates([plain])[0]
        assert [p.depth for p in rate.wear_curve] == [0.0, 200.0, 500.0, 1000.0]
        assert rate.wear_multiplier_at(750) == 1.25

    def test_rock_factor_case_insensitive(self, rates_calculator, bit):
        rate = rates_calculator.calculate_consumable_rates([bit])[0]
        assert rate.rock_factor("granite") == 1.4
        assert rate.rock_factor("schist") == 1.0

    def test_catalog_used_by_default(self, rates_calculator):
        assert rates_calculator.calculate_consumable_rates() == []


# ===========================================================================
# Fuel
# ===========================================================================

class TestFuelRates:

    @pytest.fixture
    def diesel(self, default_config):
        from costmodel.services.rates_engine import RatesCalculator
        rates = {r.fuel_type: r for r in RatesCalculator(default_config).calculate_fuel_rates()}
        return rates["diesel"]

    def test_default_catalog_has_diesel_and_electricity(self, default_config):
        from costmodel.services.rates_engine import RatesCalculator
        fuel_types = {r.fuel_type for r in RatesCalculator(default_config).calculate_fuel_rates()}
        assert fuel_types == {"diesel", "electricity"}

    def test_scenario_cost(self, diesel):
        """high: 1.35 × 1.3 = 1.755"""
        assert abs(diesel.scenario_cost("high") - 1.755) < 1e-9

    def test_unknown_scenario_raises(self, diesel):
        with pytest.raises(ValueError, match="Unknown scenario"):
            diesel.scenario_cost("apocalyptic")

    def test_expected_multiplier_is_probability_weighted(self, diesel):
        """0.8×0.15 + 1.0×0.50 + 1.3×0.25 + 1.8×0.10 = 1.125"""
        assert abs(diesel.expected_multiplier() - 1.125) < 1e-9
        assert abs(diesel.expected_cost() - 1.35 * 1.125) < 1e-9


# ===========================================================================
# Rate tables
# ===========================================================================

class TestRateTables:

    def test_tables_follow_catalog_order(self, rates_calculator):
        tables = rates_calculator.build_rate_tables()
        assert [r.item_code for r in tables.equipment] == ["ROB-001", "HAUL-001"]
        assert [r.role_code for r in tables.labor] == ["op_direct", "sup_support"]
        assert isinstance(tables.labor, tuple)

    def test_rebuild_is_deterministic(self, rates_calculator):
        assert rates_calculator.build_rate_tables() == rates_calculator.build_rate_tables()
