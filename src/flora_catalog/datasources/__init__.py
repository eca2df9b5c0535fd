"""External data source integrations.

Each subdirectory is one provider with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants, low-level GET helpers
    └── {feature}.py      # Fetch functions (one per endpoint/concept)

Fetch functions are coroutines that return raw provider dicts and raise a
``FetchError`` subclass on failure. They never cache, throttle, or retry.

Adding a new datasource
-----------------------
1. Create ``datasources/{name}/`` with files above.
   See ``toxicshrooms/`` for a minimal example, ``inaturalist/`` for a richer one.

2. Write fetch coroutines on top of the shared HTTP helper::

       from flora_catalog.services import http

       async def fetch_something(query: str) -> list[dict[str, Any]]:
           data = await http.get_json(API_URL, {"q": query}, source="name")
           return data["results"]

3. Re-export public API in ``__init__.py`` with ``__all__``.

4. Wire into the catalog:
   - Add a tag to ``schemas.SourceTag`` and an id prefix to ``ID_PREFIXES``
   - Add a normalizer to ``normalize.NORMALIZERS``
   - Add a client class to ``sources.py`` and ``default_sources()``
   - Add an enabled flag to ``config.Settings.source_config()``

5. Add tests in ``tests/test_{name}.py``.
"""
