"""
Category error taxonomy.
"""

from typing import Optional


class CategoryError(Exception):
    """Base exception for category tree errors."""
    pass


class CategoryNotFound(CategoryError):
    """A path (or id, or attribute key) does not resolve."""

    def __init__(self, path: str, detail: Optional[str] = None):
        self.path = path
        super().__init__(detail or f"Category not found: '{path}'")


class CategoryValidationError(CategoryError):
    """Missing or invalid input, raised before any backend call."""
    pass


class LeafConstraintViolation(CategoryError):
    """Leaf-only operation attempted on a category that has subcategories."""

    def __init__(self, path: str, detail: Optional[str] = None):
        self.path = path
        super().__init__(detail or f"Category '{path}' is not a leaf category")


class CategoryNetworkError(CategoryError):
    """Backend call failed (transport error or non-success status)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
