"""
Unit registry — maps add_per_unit unit names to counters over the input.

A counter takes (estimate_input, location). For handicap rules `location`
is the leg being priced; for pricing rules it is None and leg-scoped units
count both legs.
"""

from typing import Callable, Optional

from ..exceptions import ConfigurationError
from ..schemas import EstimateInput, Location

BASE_CREW_SIZE = 2              # base labor rates assume a 2-person crew
FRAGILE_ITEMS_INCLUDED = 5      # fragile items handled at no extra charge

UnitCounter = Callable[[EstimateInput, Optional[Location]], float]


def _legs(estimate_input, location):
    if location is not None:
        return (location,)
    return (estimate_input.pickup, estimate_input.delivery)


def _stairs(estimate_input, location):
    return sum(leg.stairs_count for leg in _legs(estimate_input, location))


def _floors(estimate_input, location):
    # ground floor is free
    return sum(max(0, leg.floor_level - 1) for leg in _legs(estimate_input, location))


def _parking_feet(estimate_input, location):
    return sum(leg.parking_distance for leg in _legs(estimate_input, location))


UNIT_COUNTERS: dict[str, UnitCounter] = {
    "hour": lambda i, loc: i.estimated_duration,
    "crew_hour": lambda i, loc: i.crew_size * i.estimated_duration,
    "extra_crew_hour": lambda i, loc: max(0, i.crew_size - BASE_CREW_SIZE) * i.estimated_duration,
    "mile": lambda i, loc: i.distance,
    "pound": lambda i, loc: i.total_weight,
    "hundredweight": lambda i, loc: i.total_weight / 100.0,
    "cubic_foot": lambda i, loc: i.total_volume,
    "stair": _stairs,
    "floor": _floors,
    "parking_foot": _parking_feet,
    "fragile_item": lambda i, loc: i.special_items.fragile_items,
    "extra_fragile_item": lambda i, loc: max(0, i.special_items.fragile_items - FRAGILE_ITEMS_INCLUDED),
    "valuable_item": lambda i, loc: i.special_items.valuable_items,
    "room": lambda i, loc: len(i.rooms or []),
}


def get_unit_counter(unit: str) -> UnitCounter:
    """Returns the counter for a unit name, or raises ConfigurationError."""
    if unit not in UNIT_COUNTERS:
        raise ConfigurationError(
            f"Unknown unit: {unit!r}. "
            f"Available: {list(UNIT_COUNTERS.keys())}"
        )
    return UNIT_COUNTERS[unit]


def has_unit(unit: str) -> bool:
    """Check if a unit name is registered."""
    return unit in UNIT_COUNTERS


def list_units() -> list[str]:
    """List all registered unit names."""
    return list(UNIT_COUNTERS.keys())


def count_units(unit: str, estimate_input: EstimateInput, location: Optional[Location] = None) -> float:
    return get_unit_counter(unit)(estimate_input, location)
