"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps. No business rules live
here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - VersionedMixin: Optimistic locking version counter

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Rules (import from core.rules):
    - Rule, Signal, RuleSet: Ordered predicate + weight evaluation used by
      fraud, safety and moderation classifiers

Exceptions (import from core.exceptions):
    - BaseApplicationError, NotFoundError, ConflictError

Note:
    Django models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

from .exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
)
from .rules import Rule, RuleHit, RuleSet, Signal
from .services import BaseService, ServiceResult

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Rules
    "Rule",
    "RuleHit",
    "RuleSet",
    "Signal",
    # Exceptions
    "BaseApplicationError",
    "NotFoundError",
    "ConflictError",
]
