"""
app/validators package marker.
"""

from app.validators.rule_expressions import RuleExpressionError
from app.validators.rule_validator import RuleValidator

__all__ = [
    "RuleExpressionError",
    "RuleValidator",
]
