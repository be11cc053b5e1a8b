"""
Deterministic moving-job price estimator.

    from moving_estimator import calculate_estimate, load_catalog

    catalog = load_catalog("catalog.json")
    result = calculate_estimate(estimate_input, catalog, actor_id="user-42")
"""

from .catalog_store import CatalogStore, catalog_from_dict, get_active_rule_catalog, load_catalog
from .estimator import Estimator, calculate_estimate, validate_input
from .exceptions import ConfigurationError, PricingEngineError
from .rules.tracer import trace_rule
from .schemas import EstimateInput, EstimateResult, RuleCatalog, ValidationOutcome

__all__ = [
    "CatalogStore",
    "ConfigurationError",
    "EstimateInput",
    "EstimateResult",
    "Estimator",
    "PricingEngineError",
    "RuleCatalog",
    "ValidationOutcome",
    "calculate_estimate",
    "catalog_from_dict",
    "get_active_rule_catalog",
    "load_catalog",
    "trace_rule",
    "validate_input",
]
