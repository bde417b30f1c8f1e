"""
Core shared library for the storefront API.

This package contains the logic behind the web/ routes:
- exceptions: Custom exception hierarchy
- validators: Input validation functions
- pagination: Unified list pagination
- queries: Parameter-driven list queries and the ordered join
- config: Centralized configuration
"""

# Import in dependency order
from core.exceptions import (
    StorefrontError,
    StoreError,
    NotFoundError,
    AuthenticationError,
    AuthorizationError,
    ValidationError,
)

from core.validators import (
    validate_search_term,
    validate_sort,
    validate_date_string,
    slugify,
    pick_fields,
)

from core.pagination import (
    Page,
    PageRequest,
)

from core.config import config

__all__ = [
    # Exceptions
    "StorefrontError",
    "StoreError",
    "NotFoundError",
    "AuthenticationError",
    "AuthorizationError",
    "ValidationError",
    # Validators
    "validate_search_term",
    "validate_sort",
    "validate_date_string",
    "slugify",
    "pick_fields",
    # Pagination
    "Page",
    "PageRequest",
    # Config
    "config",
]
