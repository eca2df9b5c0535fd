"""
Domain models for the flora catalog.

Pydantic models for normalized catalog data. These define the canonical
schema: the normalizer maps every provider response onto these, and nothing
downstream ever sees a raw provider payload.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

# =============================================================================
# Sentinels
# =============================================================================

NOT_AVAILABLE = "N/A"
NO_DESCRIPTION = "No description available."
PLACEHOLDER_IMAGE = "placeholder.png"

# =============================================================================
# Sources
# =============================================================================


class SourceTag(StrEnum):
    """External data providers."""

    PERENUAL = "perenual"
    INATURALIST = "inaturalist"
    TOXICSHROOMS = "toxicshrooms"


#: Record id prefix per source (``<prefix>_<native id>``).
ID_PREFIXES: dict[SourceTag, str] = {
    SourceTag.PERENUAL: "perenual",
    SourceTag.INATURALIST: "inat",
    SourceTag.TOXICSHROOMS: "toxic",
}

#: Declared deduplication priority, highest first.
DEFAULT_PRIORITY: tuple[SourceTag, ...] = (
    SourceTag.PERENUAL,
    SourceTag.INATURALIST,
    SourceTag.TOXICSHROOMS,
)


class Kingdom(StrEnum):
    """Taxonomic kingdoms the catalog can be restricted to."""

    PLANTAE = "plantae"
    FUNGI = "fungi"


class SourceConfig(BaseModel):
    """Per-source switch consulted once per search."""

    enabled: bool = True


def make_record_id(source: SourceTag, native_id: object) -> str:
    """Compose the app-wide record id from a source tag and native id."""
    return f"{ID_PREFIXES[source]}_{native_id}"


def parse_record_id(record_id: str) -> tuple[SourceTag, str]:
    """Split a record id into ``(source, native_id)``.

    Raises:
        ValueError: If the id carries no known source prefix.
    """
    prefix, sep, native = record_id.partition("_")
    if sep and native:
        for source, known in ID_PREFIXES.items():
            if prefix == known:
                return source, native
    msg = f"Record id has no known source prefix: {record_id!r}"
    raise ValueError(msg)


# =============================================================================
# Canonical record
# =============================================================================


class RecordAttributes(BaseModel):
    """Source-specific attribute bag.

    A strict superset of every field any source can fill. Fields a source
    does not provide keep their sentinel default so the UI can render
    best-effort regardless of origin.
    """

    model_config = {"frozen": True}

    # Care requirements (Perenual)
    cycle: str = NOT_AVAILABLE
    watering: str = NOT_AVAILABLE
    watering_period: str = NOT_AVAILABLE
    watering_benchmark: str = NOT_AVAILABLE
    sunlight: str = ""
    plant_type: str = NOT_AVAILABLE
    dimension: str = NOT_AVAILABLE
    growth_rate: str = NOT_AVAILABLE
    maintenance: str = NOT_AVAILABLE
    care_level: str = NOT_AVAILABLE
    flowers: bool = False
    flowering_season: str = NOT_AVAILABLE
    flower_color: str = NOT_AVAILABLE
    hardiness_min: str = NOT_AVAILABLE
    hardiness_max: str = NOT_AVAILABLE
    soil: str = ""
    propagation: str = ""
    attracts: str = ""
    origin: str = ""
    other_names: str = ""

    # Flags
    edible_fruit: bool = False
    edible_leaf: bool = False
    medicinal: bool = False
    invasive: bool = False
    tropical: bool = False
    indoor: bool = False
    cuisine: bool = False

    # Toxicity
    poisonous_to_humans: int = 0
    poisonous_to_pets: int = 0
    toxicity_type: str = NOT_AVAILABLE
    toxic_agent: str = NOT_AVAILABLE
    distribution: str = NOT_AVAILABLE

    # Taxonomy (iNaturalist)
    taxon_id: int = 0
    rank: str = NOT_AVAILABLE
    iconic_taxon_name: str = NOT_AVAILABLE
    kingdom: str = NOT_AVAILABLE
    phylum: str = NOT_AVAILABLE
    class_name: str = NOT_AVAILABLE
    order: str = NOT_AVAILABLE
    family: str = NOT_AVAILABLE
    genus: str = NOT_AVAILABLE
    is_active: bool = False
    endemic: bool = False
    threatened: bool = False
    introduced: bool = False
    native: bool = False
    observations_count: int = 0

    @property
    def is_toxic(self) -> bool:
        return self.poisonous_to_humans > 0 or self.toxicity_type != NOT_AVAILABLE

    @property
    def is_edible(self) -> bool:
        return self.edible_fruit or self.edible_leaf


class CanonicalRecord(BaseModel):
    """One plant or fungus entry, normalized across sources."""

    model_config = {"frozen": True}

    id: str = Field(..., description="Source prefix + native id, e.g. perenual_42")
    source: SourceTag
    common_name: str = NOT_AVAILABLE
    scientific_name: str = NOT_AVAILABLE
    description: str = NO_DESCRIPTION
    image_url: str = PLACEHOLDER_IMAGE
    external_reference_url: str = NOT_AVAILABLE
    attributes: RecordAttributes = Field(default_factory=RecordAttributes)

    @property
    def display_name(self) -> str:
        """Human-friendly name: common name if available, else scientific."""
        if self.common_name != NOT_AVAILABLE and self.scientific_name != NOT_AVAILABLE:
            return f"{self.common_name} ({self.scientific_name})"
        if self.common_name != NOT_AVAILABLE:
            return self.common_name
        return self.scientific_name

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe dict for the cache and favorites store."""
        return self.model_dump(mode="json")


# =============================================================================
# Search
# =============================================================================


class SearchOptions(BaseModel):
    """Options for a fan-out search."""

    page: int = Field(default=1, ge=1)
    kingdom: Kingdom | None = None
    filters: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Secondary detail data
# =============================================================================


class Observation(BaseModel):
    """A recent iNaturalist observation of a taxon."""

    id: int
    observed_on: str = NOT_AVAILABLE
    place_guess: str = NOT_AVAILABLE
    quality_grade: str = NOT_AVAILABLE
    observer: str = NOT_AVAILABLE
    photo_url: str = PLACEHOLDER_IMAGE
    url: str = NOT_AVAILABLE


class PestDisease(BaseModel):
    """A Perenual pest or disease summary."""

    id: int
    common_name: str = NOT_AVAILABLE
    scientific_name: str = NOT_AVAILABLE
    family: str = NOT_AVAILABLE
    host: str = ""
    image_url: str = PLACEHOLDER_IMAGE
