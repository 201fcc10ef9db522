"""Ingestion layer.

Helpers that turn whatever the sensor endpoint sends into normalized,
numeric-or-missing values.
"""

__all__: list[str] = []
