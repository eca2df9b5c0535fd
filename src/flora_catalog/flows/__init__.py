"""
Prefect flows for cache maintenance.

Flows:
- warm: Run browse/search queries against all enabled sources to fill the cache

Usage (local):
    python -m flora_catalog.flows.warm

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    prefect deployment run 'warm-catalog/default'
"""
