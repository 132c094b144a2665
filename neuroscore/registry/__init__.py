"""Registry modules for loading reference metadata."""

from neuroscore.registry.models import (
    DomainSpec,
    NormBand,
    NormSpec,
    ReferenceData,
    ScaleReference,
)
from neuroscore.registry.reference import (
    DEFAULT_REFERENCE_PATH,
    DEFAULT_SCHEMA_PATH,
    ReferenceNotFoundError,
    ReferenceRegistry,
    ReferenceValidationError,
    load_reference,
)

__all__ = [
    "DEFAULT_REFERENCE_PATH",
    "DEFAULT_SCHEMA_PATH",
    "DomainSpec",
    "NormBand",
    "NormSpec",
    "ReferenceData",
    "ReferenceNotFoundError",
    "ReferenceRegistry",
    "ReferenceValidationError",
    "ScaleReference",
    "load_reference",
]
