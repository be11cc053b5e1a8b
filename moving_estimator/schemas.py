"""
Data contracts for the estimator — inputs, catalog rules, and results.

Wire names are camelCase (catalogs and inputs are authored that way by the
surrounding system). Python attributes are snake_case; both are accepted.

Value constraints (weight > 0, crew >= 1, known service...) are
NOT declared here — InputValidator collects every violation into one outcome.
These models only enforce shape and types.
"""

import enum
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


# --- Enums ---

class ServiceType(str, enum.Enum):
    LOCAL = "local"
    LONG_DISTANCE = "long_distance"
    STORAGE = "storage"
    PACKING_ONLY = "packing_only"


class AccessDifficulty(str, enum.Enum):
    EASY = "easy"
    MODERATE = "moderate"
    DIFFICULT = "difficult"
    EXTREME = "extreme"


class SeasonalPeriod(str, enum.Enum):
    PEAK = "peak"
    STANDARD = "standard"
    OFF_PEAK = "off_peak"


class RuleCategory(str, enum.Enum):
    BASE_PRICING = "base_pricing"
    CREW_ADJUSTMENTS = "crew_adjustments"
    WEIGHT_VOLUME = "weight_volume"
    DISTANCE = "distance"
    TIMING = "timing"
    SPECIAL_ITEMS = "special_items"
    LOCATION_HANDICAPS = "location_handicaps"
    ADDITIONAL_SERVICES = "additional_services"


class ConditionOperator(str, enum.Enum):
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    GREATER_THAN = "greaterThan"
    GREATER_THAN_OR_EQUAL = "greaterThanOrEqual"
    LESS_THAN = "lessThan"
    LESS_THAN_OR_EQUAL = "lessThanOrEqual"
    IN = "in"
    NOT_IN = "notIn"
    BETWEEN = "between"
    EXISTS = "exists"


class ActionType(str, enum.Enum):
    ADD_FIXED = "add_fixed"
    ADD_PERCENTAGE = "add_percentage"
    ADD_PER_UNIT = "add_per_unit"
    MULTIPLY = "multiply"


class BreakdownCategory(str, enum.Enum):
    BASE_LABOR = "baseLabor"
    MATERIALS = "materials"
    TRANSPORTATION = "transportation"
    LOCATION_HANDICAPS = "locationHandicaps"
    SPECIAL_SERVICES = "specialServices"
    OVERHEAD = "overhead"


class Leg(str, enum.Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# --- Estimate input ---

class Location(CamelModel):
    address: str = ""
    floor_level: int = 0
    elevator_access: bool = False
    long_carry: bool = False            # > 75 ft from truck to door
    parking_distance: float = 0.0       # feet
    access_difficulty: str = AccessDifficulty.EASY.value
    stairs_count: int = 0               # flights
    narrow_hallways: bool = False
    special_requirements: List[str] = Field(default_factory=list)


class SpecialItems(CamelModel):
    piano: bool = False
    antiques: bool = False
    artwork: bool = False
    fragile_items: int = 0
    valuable_items: int = 0


class AdditionalServices(CamelModel):
    packing: bool = False
    unpacking: bool = False
    assembly: bool = False
    storage: bool = False
    cleaning: bool = False


class InventoryItem(CamelModel):
    id: str
    name: str
    category: str = "general"
    weight: float = 0.0
    volume: float = 0.0
    quantity: int = 1
    fragile: bool = False
    valuable: bool = False
    estimated_value: Optional[float] = None
    packing_required: bool = False
    special_handling: bool = False
    condition: str = "good"   # excellent | good | fair | poor


class InventoryRoom(CamelModel):
    id: str
    type: str
    description: Optional[str] = None
    items: List[InventoryItem] = Field(default_factory=list)
    packing_required: bool = False
    total_weight: float = 0.0
    total_volume: float = 0.0


class EstimateInput(CamelModel):
    customer_id: Optional[str] = None
    service: Optional[str] = None
    move_date: Optional[date] = None

    pickup: Location
    delivery: Location

    distance: float                 # miles
    estimated_duration: float       # hours

    total_weight: float             # lbs
    total_volume: float             # cu ft
    rooms: Optional[List[InventoryRoom]] = None

    special_items: SpecialItems = Field(default_factory=SpecialItems)
    additional_services: AdditionalServices = Field(default_factory=AdditionalServices)

    is_weekend: bool = False
    is_holiday: bool = False
    seasonal_period: str = SeasonalPeriod.STANDARD.value

    crew_size: int
    specialty_crew_required: bool = False


# --- Rule catalog ---

class Condition(CamelModel):
    field: str
    operator: ConditionOperator
    value: Any = None
    values: Optional[Tuple[Any, ...]] = None

    @field_validator("value")
    @classmethod
    def _list_value_as_tuple(cls, v):
        return tuple(v) if isinstance(v, list) else v


class Action(CamelModel):
    type: ActionType
    amount: float
    target: BreakdownCategory
    description: str = ""
    unit: Optional[str] = None      # add_per_unit only, see rules/units.py


class PricingRule(CamelModel):
    id: str
    name: str
    description: str = ""
    category: RuleCategory
    priority: int
    conditions: Tuple[Condition, ...] = ()
    actions: Tuple[Action, ...] = ()
    is_active: bool = True
    applicable_services: Tuple[str, ...] = ()
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    version: str = "1.0.0"


class LocationHandicapRule(PricingRule):
    """Same shape as PricingRule; condition paths are relative to a Location."""
    category: RuleCategory = RuleCategory.LOCATION_HANDICAPS


class RuleCatalog(CamelModel):
    """Immutable snapshot. Publish a new instance instead of editing one."""
    rules_version: str
    pricing_rules: Tuple[PricingRule, ...] = ()
    location_handicaps: Tuple[LocationHandicapRule, ...] = ()
    minimum_charge: Mapping[str, float] = Field(default_factory=dict, validate_default=True)

    @field_validator("minimum_charge")
    @classmethod
    def _read_only_minimums(cls, v):
        return MappingProxyType(dict(v))

    @field_serializer("minimum_charge")
    def _dump_minimums(self, v):
        return dict(v)


# --- Results ---

class AppliedRule(CamelModel):
    rule_id: str
    rule_name: str
    priority: int
    price_impact: float
    application_index: int
    category: Optional[str] = None
    leg: Optional[Leg] = None
    calculation_details: str = ""


class Breakdown(CamelModel):
    base_labor: float = 0.0
    materials: float = 0.0
    transportation: float = 0.0
    location_handicaps: float = 0.0
    special_services: float = 0.0
    overhead: float = 0.0
    total: float = 0.0

    def subtotal(self) -> float:
        """Unrounded sum of the six categories, in fixed category order."""
        return (
            self.base_labor + self.materials + self.transportation
            + self.location_handicaps + self.special_services + self.overhead
        )


class Calculations(CamelModel):
    final_price: float
    breakdown: Breakdown
    applied_rules: List[AppliedRule]


class Methodology(CamelModel):
    engine: str
    engine_version: str


class EstimateMetadata(CamelModel):
    calculated_at: datetime
    calculated_by: str
    version: str
    rules_version: str
    deterministic: bool = True
    result_hash: str
    input_hash: str
    methodology: Methodology


class EstimateResult(CamelModel):
    estimate_id: str
    calculations: Calculations
    metadata: EstimateMetadata


class ValidationOutcome(CamelModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
