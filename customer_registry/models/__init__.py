"""Models package marker.

Exposes Base and the model classes for simplified imports.
"""
from .database import Base, Customer, Product  # noqa: F401
