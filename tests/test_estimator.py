"""
Estimator end-to-end tests against the packaged default catalog.

Tests:
1-2.   Known prices and result shape
3-5.   Determinism, hash sensitivity, dict input hashed as received
6-7.   Breakdown identity and ledger ordering
8-9.   Minimum charge floor
10-12. Monotonic surcharges (weekend, piano, stairs)
13.    Service-tier ordering
14-16. Rejection paths, non-finite input
17-18. Configuration defects, default catalog lookup
"""

import pytest

from moving_estimator.estimator import Estimator, calculate_estimate, validate_input
from moving_estimator.exceptions import ConfigurationError
from moving_estimator.hasher import content_hash, input_hash
from moving_estimator.schemas import EstimateInput, EstimateResult, ValidationOutcome


def _price(estimate_input, catalog):
    result = Estimator().calculate(estimate_input, catalog, "estimator-1")
    assert isinstance(result, EstimateResult), getattr(result, "errors", result)
    return result


def _rule_ids(result):
    return [r.rule_id for r in result.calculations.applied_rules]


def _category_sum(result):
    b = result.calculations.breakdown
    return b.base_labor + b.materials + b.transportation + b.location_handicaps + b.special_services + b.overhead


# ============================================================
# 1-2. Known prices
# ============================================================

def test_standard_local_move_price(standard_input, default_catalog):
    """150/h * 5h + 75/h * 1 extra mover * 5h + 4/mi * 15mi."""
    result = _price(standard_input, default_catalog)
    calc = result.calculations
    assert calc.final_price == 1185.00
    assert calc.breakdown.base_labor == 1125
    assert calc.breakdown.transportation == 60
    assert _rule_ids(result) == ["base_labor_local", "crew_size_adjustment", "local_travel"]


def test_result_metadata(standard_input, default_catalog):
    result = _price(standard_input, default_catalog)
    meta = result.metadata
    assert meta.calculated_by == "estimator-1"
    assert meta.rules_version == default_catalog.rules_version
    assert meta.deterministic is True
    assert len(meta.result_hash) == 64
    assert len(meta.input_hash) == 64
    assert meta.methodology.engine == "moving-estimator"
    dumped = result.model_dump(by_alias=True)
    assert set(dumped["calculations"]) == {"finalPrice", "breakdown", "appliedRules"}


# ============================================================
# 3-5. Determinism
# ============================================================

def test_two_runs_are_identical(make_input, default_catalog):
    estimate_input = make_input(isWeekend=True, pickup={"stairsCount": 2, "narrowHallways": True})
    first = _price(estimate_input, default_catalog)
    second = _price(estimate_input, default_catalog)

    assert first.estimate_id != second.estimate_id
    assert first.calculations == second.calculations
    assert first.metadata.input_hash == second.metadata.input_hash
    assert first.metadata.result_hash == second.metadata.result_hash


def test_hash_sensitivity(make_input, default_catalog):
    light = _price(make_input(totalWeight=3000), default_catalog)
    heavy = _price(make_input(totalWeight=4000), default_catalog)
    assert light.metadata.input_hash != heavy.metadata.input_hash
    # weight does not move any local rule below 8000 lbs
    assert light.metadata.result_hash == heavy.metadata.result_hash

    weekend = _price(make_input(isWeekend=True), default_catalog)
    assert weekend.metadata.result_hash != light.metadata.result_hash


def test_dict_input_hashed_as_received(input_dict, default_catalog):
    """Fields the caller left out are not filled in before hashing."""
    data = input_dict()
    del data["specialtyCrewRequired"]
    result = calculate_estimate(data, default_catalog, "web")
    assert result.metadata.input_hash == content_hash(data)
    assert result.metadata.input_hash != input_hash(EstimateInput.model_validate(data))


# ============================================================
# 6-7. Breakdown identity and ordering
# ============================================================

@pytest.mark.parametrize("overrides", [
    {},
    {"isWeekend": True, "isHoliday": True, "seasonalPeriod": "peak"},
    {"pickup": {"narrowHallways": True, "accessDifficulty": "difficult"}},
    {"additionalServices": {"packing": True, "unpacking": True}, "specialItems": {"fragileItems": 12}},
    {"totalWeight": 675, "totalVolume": 75, "crewSize": 2, "distance": 2, "estimatedDuration": 1.5},
    {"service": "long_distance", "distance": 1234.5, "totalWeight": 9100, "crewSize": 4},
])
def test_breakdown_adds_up(make_input, default_catalog, overrides):
    result = _price(make_input(**overrides), default_catalog)
    calc = result.calculations
    assert round(_category_sum(result), 2) == calc.final_price
    assert calc.breakdown.total == calc.final_price


def test_ledger_order(make_input, default_catalog):
    estimate_input = make_input(
        isWeekend=True,
        specialItems={"piano": True},
        pickup={"stairsCount": 2},
        delivery={"longCarry": True, "accessDifficulty": "extreme"},
    )
    applied = _price(estimate_input, default_catalog).calculations.applied_rules
    for i, rule in enumerate(applied):
        assert rule.application_index == i
    for earlier, later in zip(applied, applied[1:]):
        assert earlier.priority <= later.priority
    ids = [r.rule_id for r in applied]
    assert ids.index("stairs_pickup") < ids.index("long_carry_delivery") < ids.index("weekend_surcharge")


# ============================================================
# 8-9. Minimum charge
# ============================================================

def test_minimal_local_move_hits_floor(minimal_local_input, default_catalog):
    """150 * 1.5h + 4 * 2mi = 233, lifted to the 400 local minimum."""
    result = _price(minimal_local_input, default_catalog)
    calc = result.calculations
    assert calc.final_price == 400.00
    assert _rule_ids(result)[-1] == "minimum_charge_local"
    assert calc.applied_rules[-1].price_impact == pytest.approx(167.0)
    assert calc.breakdown.overhead == pytest.approx(167.0)


def test_floor_absent_when_subtotal_above(standard_input, default_catalog):
    result = _price(standard_input, default_catalog)
    assert "minimum_charge_local" not in _rule_ids(result)
    assert result.calculations.final_price >= default_catalog.minimum_charge["local"]


# ============================================================
# 10-12. Monotonic surcharges
# ============================================================

def test_weekend_increases_price(make_input, default_catalog):
    weekday = _price(make_input(isWeekend=False), default_catalog)
    weekend = _price(make_input(isWeekend=True), default_catalog)
    assert weekend.calculations.final_price > weekday.calculations.final_price
    assert weekend.calculations.final_price == 1303.50
    assert "weekend_surcharge" in _rule_ids(weekend)


def test_piano_increases_price(make_input, default_catalog):
    without = _price(make_input(), default_catalog)
    with_piano = _price(make_input(specialItems={"piano": True}), default_catalog)
    assert with_piano.calculations.final_price == without.calculations.final_price + 350
    assert "piano_special_handling" in _rule_ids(with_piano)


def test_pickup_stairs_increase_price(make_input, default_catalog):
    flat = _price(make_input(), default_catalog)
    stairs = _price(make_input(pickup={"stairsCount": 2}), default_catalog)
    assert stairs.calculations.final_price == flat.calculations.final_price + 150
    assert stairs.calculations.breakdown.location_handicaps == 150
    assert "stairs_pickup" in _rule_ids(stairs)


# ============================================================
# 13. Service tiers
# ============================================================

def test_long_distance_weekend_beats_local(make_input, default_catalog):
    local = _price(make_input(service="local", distance=20, isWeekend=False), default_catalog)
    long_haul = _price(make_input(service="long_distance", distance=500, isWeekend=True), default_catalog)
    assert long_haul.calculations.final_price > local.calculations.final_price
    # 750 + 3750 + 375 + 1000 = 5875; +10% = 6462.5; +4% fuel = 6721
    assert long_haul.calculations.final_price == 6721.00


# ============================================================
# 14-16. Rejection
# ============================================================

def test_local_500_miles_rejected(make_input, default_catalog):
    result = Estimator().calculate(make_input(distance=500), default_catalog, "estimator-1")
    assert isinstance(result, ValidationOutcome)
    assert result.valid is False
    assert any("50 miles" in e for e in result.errors)
    assert not hasattr(result, "calculations")


def test_validate_input_standalone(make_input):
    outcome = validate_input(make_input(crewSize=0))
    assert outcome.valid is False
    assert "Crew size must be at least 1" in outcome.errors


def test_infinite_parking_distance_returns_outcome(input_dict, default_catalog):
    result = calculate_estimate(input_dict(pickup={"parkingDistance": float("inf")}), default_catalog, "web")
    assert isinstance(result, ValidationOutcome)
    assert "Pickup parking distance must be a finite number" in result.errors


# ============================================================
# 17-18. Configuration defects and default catalog
# ============================================================

def test_broken_rule_halts_estimate(make_catalog, rule, standard_input):
    catalog = make_catalog([
        rule("base"),
        rule("typo", conditions=[{"field": "pickup.stairCount", "operator": "greaterThan", "value": 0}]),
    ])
    with pytest.raises(ConfigurationError) as exc:
        Estimator().calculate(standard_input, catalog, "estimator-1")
    assert exc.value.rule_id == "typo"


def test_calculate_estimate_uses_active_catalog(input_dict):
    """No catalog given: the default store's snapshot is used. Dict input is parsed."""
    result = calculate_estimate(input_dict(), actor_id="web")
    assert isinstance(result, EstimateResult)
    assert result.calculations.final_price == 1185.00
    assert result.metadata.calculated_by == "web"
