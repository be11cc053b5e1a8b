"""
Minimum charge — lifts a total to the catalog's per-service floor.
"""

import logging
from typing import List, Optional, Tuple

from ..config import settings
from ..schemas import AppliedRule, BreakdownCategory, RuleCatalog

logger = logging.getLogger(__name__)

MINIMUM_CHARGE_CATEGORY = BreakdownCategory.OVERHEAD


class MinimumChargeEnforcer:

    def __init__(self, priority: Optional[int] = None):
        self.priority = settings.MINIMUM_CHARGE_PRIORITY if priority is None else priority

    def enforce(
        self,
        total: float,
        service: str,
        catalog: RuleCatalog,
        applied_rules: List[AppliedRule] = (),
    ) -> Tuple[float, Optional[AppliedRule]]:
        """
        Returns (new total, synthetic AppliedRule or None).

        Never lowers a total. A service with no configured floor passes
        through unchanged. The synthetic rule goes at the end of the ledger,
        so its priority is never below the last applied rule's.
        """
        floor = catalog.minimum_charge.get(service)
        if floor is None or total >= floor:
            return total, None

        impact = floor - total
        last_priority = applied_rules[-1].priority if applied_rules else self.priority
        rule = AppliedRule(
            rule_id=f"minimum_charge_{service}",
            rule_name=f"Minimum charge ({service})",
            priority=max(self.priority, last_priority),
            price_impact=impact,
            application_index=len(applied_rules),
            category=MINIMUM_CHARGE_CATEGORY.value,
            calculation_details=f"Minimum charge for {service} is ${floor:.2f}; added ${impact:.2f}",
        )
        logger.info("Raised %s total from %.2f to minimum %.2f", service, total, floor)
        return floor, rule
