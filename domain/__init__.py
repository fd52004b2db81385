"""Affine Toolkit Domain Layer.

This package contains the core numeric logic organized by bounded contexts:
- transform: affine application, decomposition, spatial object ports
"""

from domain import transform

__all__ = ["transform"]
