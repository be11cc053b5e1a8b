"""
Input Validator — structural and business checks on an EstimateInput.

Runs every check and collects every failure, in a fixed order, so the
caller (or a live form) can show them all at once. Never raises: a raw
dict that does not even parse comes back as an invalid outcome too.
"""

import logging
import math
from typing import List, Union

from pydantic import ValidationError

from .config import settings
from .hasher import canonical_json
from .schemas import AccessDifficulty, EstimateInput, SeasonalPeriod, ServiceType, ValidationOutcome

logger = logging.getLogger(__name__)


def _choices(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


def _is_positive(value: float) -> bool:
    # NaN compares false, so it fails here too
    return value > 0


def _format_parse_error(error: dict) -> str:
    path = ".".join(str(part) for part in error.get("loc", ()))
    return f"{path}: {error.get('msg', 'invalid value')}" if path else error.get("msg", "invalid value")


class InputValidator:
    """Pure validation of estimate inputs."""

    def __init__(self, config=None):
        self.config = config or settings

    def validate(self, data: Union[EstimateInput, dict]) -> ValidationOutcome:
        if isinstance(data, EstimateInput):
            estimate_input = data
        else:
            try:
                estimate_input = EstimateInput.model_validate(data)
            except ValidationError as e:
                errors = [_format_parse_error(err) for err in e.errors()]
                logger.warning("Estimate input failed to parse: %d errors", len(errors))
                return ValidationOutcome(valid=False, errors=errors)

        errors = self.collect_errors(estimate_input)
        if not isinstance(data, EstimateInput):
            # the received dict is what gets hashed, unknown keys included
            try:
                canonical_json(data)
            except (TypeError, ValueError):
                errors.append("Input must contain only JSON values and finite numbers")
        if errors:
            logger.warning("Estimate input rejected: %s", "; ".join(errors))
        return ValidationOutcome(valid=not errors, errors=errors)

    def collect_errors(self, estimate_input: EstimateInput) -> List[str]:
        errors: List[str] = []
        i = estimate_input

        # --- Identity and service ---
        if not i.customer_id or not i.customer_id.strip():
            errors.append("Customer ID is required")
        if i.move_date is None:
            errors.append("Move date is required")
        if i.service not in {s.value for s in ServiceType}:
            errors.append(f"Service type must be one of: {_choices(ServiceType)}")

        local_max = self.config.LOCAL_MAX_DISTANCE_MILES
        long_min = self.config.LONG_DISTANCE_MIN_MILES
        if i.service == ServiceType.LOCAL.value and i.distance > local_max:
            errors.append(f"Local moves must be {local_max:g} miles or less")
        if i.service == ServiceType.LONG_DISTANCE.value and i.distance <= long_min:
            errors.append(f"Long distance moves must be over {long_min:g} miles")

        # --- Job size ---
        if not _is_positive(i.total_weight):
            errors.append("Total weight must be greater than 0")
        if not _is_positive(i.total_volume):
            errors.append("Total volume must be greater than 0")
        if not _is_positive(i.estimated_duration):
            errors.append("Estimated duration must be greater than 0")
        if i.crew_size < 1:
            errors.append("Crew size must be at least 1")

        required_crew = self.minimum_crew_for(i.total_weight)
        if i.crew_size >= 1 and i.crew_size < required_crew:
            errors.append(
                f"Crew size of {i.crew_size} is too small for {i.total_weight:g} lbs "
                f"(minimum {required_crew} required)"
            )

        # --- Addresses ---
        if not i.pickup.address.strip():
            errors.append("Pickup address is required")
        if not i.delivery.address.strip():
            errors.append("Delivery address is required")

        # --- Non-negative numbers ---
        non_negative = [
            ("Distance", i.distance),
            ("Pickup floor level", i.pickup.floor_level),
            ("Pickup parking distance", i.pickup.parking_distance),
            ("Pickup stairs count", i.pickup.stairs_count),
            ("Delivery floor level", i.delivery.floor_level),
            ("Delivery parking distance", i.delivery.parking_distance),
            ("Delivery stairs count", i.delivery.stairs_count),
            ("Fragile items count", i.special_items.fragile_items),
            ("Valuable items count", i.special_items.valuable_items),
        ]
        for label, value in non_negative:
            if not math.isfinite(value):
                errors.append(f"{label} must be a finite number")
            elif value < 0:
                errors.append(f"{label} cannot be negative")

        for label, value in [
            ("Total weight", i.total_weight),
            ("Total volume", i.total_volume),
            ("Estimated duration", i.estimated_duration),
        ]:
            # NaN already fails the "greater than 0" checks above
            if math.isinf(value):
                errors.append(f"{label} must be a finite number")
        for label, value in self._inventory_numbers(i):
            if not math.isfinite(value):
                errors.append(f"{label} must be a finite number")

        # --- Enumerated tags ---
        difficulties = {d.value for d in AccessDifficulty}
        if i.pickup.access_difficulty not in difficulties:
            errors.append(f"Pickup access difficulty must be one of: {_choices(AccessDifficulty)}")
        if i.delivery.access_difficulty not in difficulties:
            errors.append(f"Delivery access difficulty must be one of: {_choices(AccessDifficulty)}")
        if i.seasonal_period not in {p.value for p in SeasonalPeriod}:
            errors.append(f"Seasonal period must be one of: {_choices(SeasonalPeriod)}")

        return errors

    def _inventory_numbers(self, i: EstimateInput):
        for r, room in enumerate(i.rooms or []):
            yield f"Room {r} total weight", room.total_weight
            yield f"Room {r} total volume", room.total_volume
            for n, item in enumerate(room.items):
                yield f"Room {r} item {n} weight", item.weight
                yield f"Room {r} item {n} volume", item.volume
                if item.estimated_value is not None:
                    yield f"Room {r} item {n} estimated value", item.estimated_value

    def minimum_crew_for(self, weight: float) -> int:
        """Smallest crew allowed for a weight, from the configured bands."""
        required = 1
        for threshold, crew in self.config.MINIMUM_CREW_BY_WEIGHT:
            if weight > threshold:
                required = max(required, crew)
        return required


def validate_input(data) -> ValidationOutcome:
    return InputValidator().validate(data)
