"""Shared helpers: error taxonomy and response envelopes."""
