"""Base types shared across the block index."""

from .base import CamelModel, StrictBaseModel

__all__ = [
    "CamelModel",
    "StrictBaseModel",
]
