"""Customer registry: customer and product records with a Redis read-through cache."""

__version__ = "1.0.0"
