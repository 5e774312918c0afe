"""Ingestion layer.

This package contains the adapters that fetch portal status feeds and turn
them into :class:`portalgw.models.portal.LocationState` values.
"""

__all__: list[str] = []
