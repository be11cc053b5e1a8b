"""
Engine exceptions.

Bad user input is never raised — it comes back as a ValidationOutcome.
Everything here signals a defect in catalog data and must reach the caller.
"""

from typing import Optional


class PricingEngineError(Exception):
    """Base exception for pricing engine errors"""
    pass


class ConfigurationError(PricingEngineError):
    """
    A catalog rule references an unknown field, operator, action type,
    target category or unit, or is otherwise malformed.

    Skipping such a rule would silently under- or over-charge a customer,
    so the whole computation halts instead.
    """

    def __init__(self, message: str, rule_id: Optional[str] = None):
        self.rule_id = rule_id
        if rule_id:
            message = f"[{rule_id}] {message}"
        super().__init__(message)
