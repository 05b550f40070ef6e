"""Actuator package.

This package contains the reconciliation engine of the extension, which
turns a validated provider config into a managed resource bundle.
"""

from .actuator import Actuator
from .plan import Action, Intent, Plan, Trigger, TRIGGER_INTENT, plan

__all__ = [
    "Actuator",
    "Action",
    "Intent",
    "Plan",
    "Trigger",
    "TRIGGER_INTENT",
    "plan",
]
