"""
Catalog Store — loads rule catalogs and hands out the active snapshot.

Catalogs are authored as camelCase JSON by the rule-administration side.
A RuleCatalog is frozen once built; publishing a new version swaps the
store's reference, so estimates already running keep the snapshot they
were given.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .config import settings
from .exceptions import ConfigurationError
from .rules.units import has_unit, list_units
from .schemas import ActionType, RuleCatalog

logger = logging.getLogger(__name__)


def check_catalog(catalog: RuleCatalog) -> None:
    """
    Integrity checks beyond shape: duplicate rule ids, negative minimum
    charges, and add_per_unit actions without a known unit.
    Raises ConfigurationError on the first problem found.
    """
    for list_name, rules in (
        ("pricingRules", catalog.pricing_rules),
        ("locationHandicaps", catalog.location_handicaps),
    ):
        seen = set()
        for rule in rules:
            if rule.id in seen:
                raise ConfigurationError(f"Duplicate rule id in {list_name}", rule_id=rule.id)
            seen.add(rule.id)

            for action in rule.actions:
                if action.type is not ActionType.ADD_PER_UNIT:
                    continue
                if not action.unit:
                    raise ConfigurationError("add_per_unit action has no unit", rule_id=rule.id)
                if not has_unit(action.unit):
                    raise ConfigurationError(
                        f"Unknown unit: {action.unit!r}. Available: {list_units()}",
                        rule_id=rule.id,
                    )

    for service, amount in catalog.minimum_charge.items():
        if amount < 0:
            raise ConfigurationError(f"Minimum charge for {service} is negative: {amount}")


def catalog_from_dict(data: dict) -> RuleCatalog:
    """Build and check a RuleCatalog from its camelCase dict form."""
    try:
        catalog = RuleCatalog.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid rule catalog: {e}") from e
    check_catalog(catalog)
    return catalog


def load_catalog(path: Union[str, Path]) -> RuleCatalog:
    """Load a rule catalog JSON file."""
    filepath = Path(path)
    if not filepath.exists():
        raise FileNotFoundError(f"No rule catalog found at: {filepath}")

    with open(filepath, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Rule catalog {filepath} is not valid JSON: {e}") from e

    catalog = catalog_from_dict(data)
    logger.info(
        "Loaded rule catalog %s from %s (%d pricing rules, %d handicaps)",
        catalog.rules_version, filepath,
        len(catalog.pricing_rules), len(catalog.location_handicaps),
    )
    return catalog


class CatalogStore:
    """
    Holder for the active catalog. get_active_rule_catalog() returns the
    current snapshot; publish() replaces it.
    """

    def __init__(self, catalog: Optional[RuleCatalog] = None, path: Optional[Union[str, Path]] = None):
        self._lock = threading.Lock()
        self._catalog: Optional[RuleCatalog] = catalog
        self._path = Path(path or settings.CATALOG_PATH)

    def get_active_rule_catalog(self) -> RuleCatalog:
        """Current snapshot. Loaded from the configured path on first use."""
        with self._lock:
            if self._catalog is None:
                self._catalog = load_catalog(self._path)
            return self._catalog

    def publish(self, catalog: Union[RuleCatalog, dict]) -> RuleCatalog:
        """Make `catalog` the active snapshot. Dicts are parsed and checked first."""
        if isinstance(catalog, dict):
            catalog = catalog_from_dict(catalog)
        else:
            check_catalog(catalog)
        with self._lock:
            previous = self._catalog
            self._catalog = catalog
        logger.info(
            "Published rule catalog %s (was %s)",
            catalog.rules_version, previous.rules_version if previous else None,
        )
        return catalog

    def reload(self) -> RuleCatalog:
        """Re-read the catalog file and publish it."""
        return self.publish(load_catalog(self._path))


_default_store: Optional[CatalogStore] = None
_default_store_lock = threading.Lock()


def get_catalog_store() -> CatalogStore:
    """Process-wide store backed by settings.CATALOG_PATH."""
    global _default_store
    with _default_store_lock:
        if _default_store is None:
            _default_store = CatalogStore()
        return _default_store


def get_active_rule_catalog() -> RuleCatalog:
    return get_catalog_store().get_active_rule_catalog()
