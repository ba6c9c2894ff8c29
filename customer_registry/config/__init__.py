"""Configuration package: settings, logging, database and cache wiring."""
