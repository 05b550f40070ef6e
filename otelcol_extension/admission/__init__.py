"""Admission package.

Validates the extension provider config of a Shoot before it is persisted.
"""

from .validator import ShootValidator, Webhook, shoot_validator_webhook

__all__ = ["ShootValidator", "Webhook", "shoot_validator_webhook"]
