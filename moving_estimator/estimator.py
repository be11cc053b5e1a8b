"""
Estimator — one call from EstimateInput to EstimateResult.

States:
    VALIDATING -> REJECTED                        (returns ValidationOutcome)
    VALIDATING -> SELECTING -> ACCUMULATING -> ENFORCING_MINIMUM
               -> ROUNDING -> HASHING -> COMPLETED  (returns EstimateResult)

Pure apart from the estimate id and calculatedAt, neither of which is
part of resultHash. No state survives between calls.
"""

import enum
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from .catalog_store import get_active_rule_catalog
from .config import settings
from .exceptions import ConfigurationError
from .hasher import input_hash, result_hash
from .rules.accumulator import CATEGORY_FIELDS, PriceAccumulator, merge_ordering
from .rules.minimum import MINIMUM_CHARGE_CATEGORY, MinimumChargeEnforcer
from .rules.rounding import Rounder
from .rules.selector import HandicapResolver, RuleSelector
from .schemas import (
    Calculations,
    EstimateInput,
    EstimateMetadata,
    EstimateResult,
    Methodology,
    RuleCatalog,
    ValidationOutcome,
)
from .validator import InputValidator

logger = logging.getLogger(__name__)


class EstimatorState(str, enum.Enum):
    VALIDATING = "validating"
    REJECTED = "rejected"
    SELECTING = "selecting"
    ACCUMULATING = "accumulating"
    ENFORCING_MINIMUM = "enforcing_minimum"
    ROUNDING = "rounding"
    HASHING = "hashing"
    COMPLETED = "completed"


class Estimator:
    """
    Runs validation, rule selection, accumulation, minimum charge,
    rounding and hashing for one estimate.
    """

    def __init__(self, config=None):
        self.config = config or settings
        self.validator = InputValidator(self.config)
        self.selector = RuleSelector()
        self.handicap_resolver = HandicapResolver(self.selector.evaluator)
        self.accumulator = PriceAccumulator()
        self.minimum_enforcer = MinimumChargeEnforcer(self.config.MINIMUM_CHARGE_PRIORITY)
        self.rounder = Rounder()

    def _enter(self, estimate_id: str, state: EstimatorState) -> None:
        logger.debug("Estimate %s: %s", estimate_id, state.value)

    def validate_input(self, estimate_input: Union[EstimateInput, dict]) -> ValidationOutcome:
        return self.validator.validate(estimate_input)

    def calculate(
        self,
        estimate_input: Union[EstimateInput, dict],
        catalog: RuleCatalog,
        actor_id: str,
    ) -> Union[EstimateResult, ValidationOutcome]:
        """
        Price one move against one catalog snapshot.

        Invalid input returns the ValidationOutcome and nothing else.
        A catalog defect raises ConfigurationError; no partial result.
        """
        estimate_id = str(uuid.uuid4())

        self._enter(estimate_id, EstimatorState.VALIDATING)
        outcome = self.validator.validate(estimate_input)
        if not outcome.valid:
            self._enter(estimate_id, EstimatorState.REJECTED)
            return outcome
        received = estimate_input
        if not isinstance(estimate_input, EstimateInput):
            estimate_input = EstimateInput.model_validate(estimate_input)

        try:
            calculations = self._price(estimate_id, estimate_input, catalog)
        except ConfigurationError as e:
            logger.error(
                "Estimate %s halted on catalog %s: %s",
                estimate_id, catalog.rules_version, e,
            )
            raise

        self._enter(estimate_id, EstimatorState.HASHING)
        metadata = EstimateMetadata(
            calculated_at=datetime.now(timezone.utc),
            calculated_by=actor_id,
            version=self.config.RESULT_VERSION,
            rules_version=catalog.rules_version,
            deterministic=True,
            result_hash=result_hash(calculations, catalog.rules_version),
            input_hash=input_hash(received),
            methodology=Methodology(
                engine=self.config.ENGINE_NAME,
                engine_version=self.config.ENGINE_VERSION,
            ),
        )

        self._enter(estimate_id, EstimatorState.COMPLETED)
        logger.info(
            "Estimate %s completed: %s %.2f (%d rules, catalog %s)",
            estimate_id, estimate_input.service, calculations.final_price,
            len(calculations.applied_rules), catalog.rules_version,
        )
        return EstimateResult(
            estimate_id=estimate_id,
            calculations=calculations,
            metadata=metadata,
        )

    def _price(self, estimate_id: str, estimate_input: EstimateInput, catalog: RuleCatalog) -> Calculations:
        self._enter(estimate_id, EstimatorState.SELECTING)
        pricing_rules = self.selector.select_applicable_rules(catalog, estimate_input)
        handicaps = self.handicap_resolver.select_handicaps(
            catalog,
            estimate_input.pickup,
            estimate_input.delivery,
            service=estimate_input.service,
            move_date=estimate_input.move_date,
        )
        ordered = merge_ordering(pricing_rules, handicaps)

        self._enter(estimate_id, EstimatorState.ACCUMULATING)
        accumulation = self.accumulator.apply(ordered, estimate_input)
        breakdown = accumulation.breakdown
        applied_rules = list(accumulation.applied_rules)

        self._enter(estimate_id, EstimatorState.ENFORCING_MINIMUM)
        _, minimum_rule = self.minimum_enforcer.enforce(
            breakdown.subtotal(), estimate_input.service, catalog, applied_rules,
        )
        if minimum_rule is not None:
            field = CATEGORY_FIELDS[MINIMUM_CHARGE_CATEGORY]
            breakdown = breakdown.model_copy(
                update={field: getattr(breakdown, field) + minimum_rule.price_impact}
            )
            applied_rules.append(minimum_rule)

        # Single rounding step: categories stay unrounded, the total is
        # rounded from their sum.
        self._enter(estimate_id, EstimatorState.ROUNDING)
        final_price = self.rounder.round(breakdown.subtotal())
        breakdown = breakdown.model_copy(update={"total": final_price})

        return Calculations(
            final_price=final_price,
            breakdown=breakdown,
            applied_rules=applied_rules,
        )


def calculate_estimate(
    estimate_input: Union[EstimateInput, dict],
    catalog: Optional[RuleCatalog] = None,
    actor_id: str = "system",
) -> Union[EstimateResult, ValidationOutcome]:
    """
    Module-level entry point. With no catalog, the active snapshot of the
    default CatalogStore is used (taken once, before pricing starts).
    """
    if catalog is None:
        catalog = get_active_rule_catalog()
    return Estimator().calculate(estimate_input, catalog, actor_id)


def validate_input(estimate_input: Union[EstimateInput, dict]) -> ValidationOutcome:
    return Estimator().validate_input(estimate_input)
