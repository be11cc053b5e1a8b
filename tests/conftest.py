"""
Shared test fixtures — the packaged default catalog and estimate input builders.
"""

import copy

import pytest

from moving_estimator.catalog_store import catalog_from_dict, load_catalog
from moving_estimator.config import DEFAULT_CATALOG_PATH
from moving_estimator.schemas import EstimateInput


def _sample_location(address: str) -> dict:
    """Ground floor, easy access, truck at the door."""
    return {
        "address": address,
        "floorLevel": 1,
        "elevatorAccess": False,
        "longCarry": False,
        "parkingDistance": 20,
        "accessDifficulty": "easy",
        "stairsCount": 0,
        "narrowHallways": False,
    }


def _sample_input_dict() -> dict:
    """
    A typical local move: 3 movers, 5 hours, 15 miles.
    Priced by the default catalog at 750 + 375 + 60 = 1185.00.
    """
    return {
        "customerId": "cust-1001",
        "service": "local",
        "moveDate": "2026-11-04",
        "pickup": _sample_location("100 Main St, Springfield"),
        "delivery": _sample_location("200 Oak Ave, Springfield"),
        "distance": 15,
        "estimatedDuration": 5,
        "totalWeight": 3000,
        "totalVolume": 400,
        "specialItems": {
            "piano": False,
            "antiques": False,
            "artwork": False,
            "fragileItems": 0,
            "valuableItems": 0,
        },
        "additionalServices": {
            "packing": False,
            "unpacking": False,
            "assembly": False,
            "storage": False,
            "cleaning": False,
        },
        "isWeekend": False,
        "isHoliday": False,
        "seasonalPeriod": "standard",
        "crewSize": 3,
        "specialtyCrewRequired": False,
    }


def _merge(base: dict, overrides: dict) -> dict:
    """Recursive dict merge; nested dicts are merged, everything else replaced."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@pytest.fixture
def input_dict():
    """Builder for raw camelCase input dicts: input_dict(totalWeight=4000, pickup={...})."""
    def build(**overrides):
        return _merge(_sample_input_dict(), overrides)
    return build


@pytest.fixture
def make_input(input_dict):
    """Builder for parsed EstimateInput models with camelCase overrides."""
    def build(**overrides):
        return EstimateInput.model_validate(input_dict(**overrides))
    return build


@pytest.fixture
def standard_input(make_input):
    return make_input()


@pytest.fixture
def minimal_local_input(make_input):
    """The smallest local job: 675 lbs, 75 cu ft, 2 movers, 2 miles, 1.5 hours."""
    return make_input(
        totalWeight=675,
        totalVolume=75,
        crewSize=2,
        distance=2,
        estimatedDuration=1.5,
    )


@pytest.fixture
def default_catalog():
    return load_catalog(DEFAULT_CATALOG_PATH)


@pytest.fixture
def make_catalog():
    """Builder for small in-memory catalogs from rule dicts."""
    def build(pricing_rules=(), location_handicaps=(), minimum_charge=None, rules_version="test-1"):
        return catalog_from_dict({
            "rulesVersion": rules_version,
            "pricingRules": list(pricing_rules),
            "locationHandicaps": list(location_handicaps),
            "minimumCharge": minimum_charge or {},
        })
    return build


@pytest.fixture
def rule():
    """Builder for one camelCase rule dict with sensible defaults."""
    def build(rule_id, priority=10, conditions=(), actions=None, **extra):
        data = {
            "id": rule_id,
            "name": rule_id.replace("_", " ").title(),
            "category": "base_pricing",
            "priority": priority,
            "conditions": list(conditions),
            "actions": list(actions) if actions is not None else [
                {"type": "add_fixed", "amount": 100, "target": "baseLabor"},
            ],
            "isActive": True,
            "applicableServices": ["local", "long_distance", "storage", "packing_only"],
        }
        data.update(extra)
        return data
    return build
