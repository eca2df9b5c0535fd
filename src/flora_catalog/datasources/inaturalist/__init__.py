"""iNaturalist community taxonomy source.

Public API:
  - client: API URLs, kingdom and category taxon ids
  - taxa: search_taxa, fetch_taxon, fetch_observations
"""

from flora_catalog.datasources.inaturalist.client import (
    CATEGORY_TAXON_IDS,
    FUNGI,
    PLANTAE,
)
from flora_catalog.datasources.inaturalist.taxa import (
    fetch_observations,
    fetch_taxon,
    search_taxa,
)

__all__ = [
    "CATEGORY_TAXON_IDS",
    "FUNGI",
    "PLANTAE",
    "fetch_observations",
    "fetch_taxon",
    "search_taxa",
]
