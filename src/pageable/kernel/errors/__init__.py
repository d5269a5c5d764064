"""Kernel error hierarchy — public re-export surface.

Hierarchy::

    BaseError
    ├── ApplicationError        (application.py)
    │   └── ConfigError
    │       ├── MissingRequiredSettingError
    │       └── InvalidSettingValueError
    └── InfrastructureError     (infrastructure.py)
        ├── UnknownFieldError
        └── InvalidOperandError

Malformed query parameters never raise; these errors cover configuration
misuse and data-source failures only.
"""

from pageable.kernel.errors.application import (
    ApplicationError,
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)
from pageable.kernel.errors.base import BaseError
from pageable.kernel.errors.infrastructure import (
    InfrastructureError,
    InvalidOperandError,
    UnknownFieldError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConfigError",
    "InfrastructureError",
    "InvalidOperandError",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "UnknownFieldError",
]
