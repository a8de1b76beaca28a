"""Policies engine — margins, risk premiums, volume discounts, cost allocation."""
import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from costmodel import config as cfg
from costmodel.models.block_schema import BlockCharacteristics
from costmodel.models.conditions import RULE_ATTRIBUTES
from costmodel.models.config_schema import CostModelConfig
from costmodel.models.results import AppliedPolicy

logger = logging.getLogger("cost-model.policies")


def block_attribute(block: BlockCharacteristics, attribute: str) -> Optional[float]:
    """Value of a rule attribute (``rock_hardness`` → ``hardness``) on a block."""
    field_name = RULE_ATTRIBUTES.get(attribute)
    if field_name is None:
        return None
    return getattr(block, field_name)


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


class PoliciesEngine:
    """
    POLICIES layer. Rules carry no precedence: margin and discount lookups
    take the first match, risk premiums stack additively.
    """

    def __init__(self, config: CostModelConfig) -> None:
        self.config = config

    # ─── Margins ──────────────────────────────────────────────────────────

    def get_margin(self, cost_category: str, on_date: Optional[date] = None) -> float:
        """
        Margin percent of the first rule for ``cost_category`` whose window
        [valid_from, valid_to) contains ``on_date``. 0 when none match.
        """
        when = _as_date(on_date or date.today())
        for rule in self.config.margin_rules.rules:
            if rule.cost_category != cost_category:
                continue
            if when < rule.valid_from:
                continue
            if rule.valid_to is not None and when >= rule.valid_to:
                continue
            return rule.margin_percent
        return 0.0

    # ─── Risk premiums ────────────────────────────────────────────────────

    def calculate_risk_premium(
        self, block: BlockCharacteristics
    ) -> Tuple[float, List[AppliedPolicy]]:
        """
        Sum of every matching premium percent (5 % + 3 % → 8 %, never
        compounded), plus the list of premiums that applied.
        """
        applied: List[AppliedPolicy] = []
        total = 0.0
        for premium in self.config.risk_premiums.premiums:
            if premium.parsed_condition.evaluate(block_attribute(block, premium.attribute)):
                applied.append(AppliedPolicy(rule=premium.attribute, amount=premium.premium_percent))
                total += premium.premium_percent
        if applied:
            logger.debug(
                f"Block {block.block_id}: {len(applied)} risk premiums, total {total}%"
            )
        return total, applied

    # ─── Volume discounts ─────────────────────────────────────────────────

    def get_volume_discount(self, category: str, quantity: float) -> float:
        for tier in self.config.volume_discounts.tiers:
            if tier.category == category and tier.min_quantity <= quantity <= tier.max_quantity:
                return tier.discount_percent
        return 0.0

    # ─── Fixed-cost allocation ────────────────────────────────────────────

    def get_allocation_method(self, cost_type: str) -> dict:
        for rule in self.config.allocation_rules.fixed_cost_allocations:
            if rule.cost_type == cost_type:
                return {"method": rule.allocation_method, "basis": rule.allocation_basis}
        return {"method": cfg.DEFAULT_ALLOCATION_METHOD, "basis": cfg.DEFAULT_ALLOCATION_BASIS}
