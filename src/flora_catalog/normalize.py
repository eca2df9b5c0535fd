"""
Provider payload -> ``CanonicalRecord`` translation.

This is the only module that knows what Perenual, iNaturalist, and Toxic
Shrooms JSON looks like. Every function here is total over records that carry
the provider's identifier: absent fields become sentinels, array-or-scalar
fields are flattened to display strings, and enum-like strings are lower-cased.

A record without an identifier (or that is not an object at all) raises
``MalformedResponse``; ``normalize_many`` drops those and keeps the rest.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any
from urllib.parse import quote

from flora_catalog.errors import MalformedResponse
from flora_catalog.schemas import (
    NO_DESCRIPTION,
    NOT_AVAILABLE,
    PLACEHOLDER_IMAGE,
    CanonicalRecord,
    Observation,
    PestDisease,
    RecordAttributes,
    SourceTag,
    make_record_id,
)

logger = logging.getLogger(__name__)

WIKIPEDIA_BASE = "https://en.wikipedia.org/wiki/"
INAT_TAXON_URL = "https://www.inaturalist.org/taxa/"
INAT_OBSERVATION_URL = "https://www.inaturalist.org/observations/"

LIST_SEPARATOR = ", "
TAXONOMY_RANKS = ("kingdom", "phylum", "class", "order", "family", "genus")

# =============================================================================
# Field helpers
# =============================================================================


def _text(value: Any, default: str = NOT_AVAILABLE) -> str:
    """Non-empty display string or ``default``."""
    if value is None or isinstance(value, (dict, list)):
        return default
    text = str(value).strip()
    return text or default


def _joined(value: Any, default: str = "", *, limit: int | None = None) -> str:
    """Flatten an array-or-scalar field into one display string."""
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value if v is not None and str(v).strip()]
        if limit is not None:
            items = items[:limit]
        return LIST_SEPARATOR.join(items) or default
    return _text(value, default)


def _enum(value: Any) -> str:
    """Enum-like value, trimmed and lower-cased (providers mix casing)."""
    text = _joined(value, NOT_AVAILABLE)
    return text if text == NOT_AVAILABLE else text.lower()


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def _count(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return max(int(value), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def _obj(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _first_url(photo: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        url = photo.get(key)
        if isinstance(url, str) and url.strip():
            return url.strip()
    return None


def wikipedia_url(name: str | None) -> str | None:
    """Deterministic Wikipedia link: whitespace runs -> ``_``, then URL-encode."""
    if not name or name == NOT_AVAILABLE or not name.strip():
        return None
    return WIKIPEDIA_BASE + quote(re.sub(r"\s+", "_", name.strip()), safe="")


def _reference_url(supplied: Any, *names: str) -> str:
    if isinstance(supplied, str) and supplied.strip():
        return supplied.strip()
    for name in names:
        url = wikipedia_url(name)
        if url:
            return url
    return NOT_AVAILABLE


def _require_mapping(source: SourceTag, raw: Any) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        msg = f"{source} record is not an object: {type(raw).__name__}"
        raise MalformedResponse(source, msg)
    return raw


# =============================================================================
# Perenual
# =============================================================================


def _benchmark(value: Any) -> str:
    bench = _obj(value)
    amount = _text(bench.get("value"), "")
    if not amount:
        return NOT_AVAILABLE
    unit = _text(bench.get("unit"), "")
    return f"{amount} {unit}".strip()


def normalize_perenual(raw: Any) -> CanonicalRecord:
    """Perenual ``species-list`` item or ``species/details`` payload."""
    data = _require_mapping(SourceTag.PERENUAL, raw)
    native_id = data.get("id")
    if native_id in (None, ""):
        raise MalformedResponse(SourceTag.PERENUAL, "Perenual record missing id")

    common = _text(data.get("common_name"))
    scientific = _joined(data.get("scientific_name"), NOT_AVAILABLE)
    image = _obj(data.get("default_image"))
    hardiness = _obj(data.get("hardiness"))

    attributes = RecordAttributes(
        cycle=_enum(data.get("cycle")),
        watering=_enum(data.get("watering")),
        watering_period=_text(data.get("watering_period")),
        watering_benchmark=_benchmark(data.get("watering_general_benchmark")),
        sunlight=_joined(data.get("sunlight")),
        plant_type=_text(data.get("type")),
        dimension=_text(data.get("dimension")),
        growth_rate=_enum(data.get("growth_rate")),
        maintenance=_enum(data.get("maintenance")),
        care_level=_enum(data.get("care_level")),
        flowers=_flag(data.get("flowers")),
        flowering_season=_text(data.get("flowering_season")),
        flower_color=_text(data.get("flower_color")),
        hardiness_min=_text(hardiness.get("min")),
        hardiness_max=_text(hardiness.get("max")),
        soil=_joined(data.get("soil")),
        propagation=_joined(data.get("propagation")),
        attracts=_joined(data.get("attracts")),
        origin=_joined(data.get("origin")),
        other_names=_joined(data.get("other_name"), limit=3),
        edible_fruit=_flag(data.get("edible_fruit")),
        edible_leaf=_flag(data.get("edible_leaf")),
        medicinal=_flag(data.get("medicinal")),
        invasive=_flag(data.get("invasive")),
        tropical=_flag(data.get("tropical")),
        indoor=_flag(data.get("indoor")),
        cuisine=_flag(data.get("cuisine")),
        poisonous_to_humans=_count(data.get("poisonous_to_humans")),
        poisonous_to_pets=_count(data.get("poisonous_to_pets")),
        kingdom="Plantae",
    )

    return CanonicalRecord(
        id=make_record_id(SourceTag.PERENUAL, native_id),
        source=SourceTag.PERENUAL,
        common_name=common,
        scientific_name=scientific,
        description=_text(data.get("description"), NO_DESCRIPTION),
        image_url=_first_url(image, "regular_url", "original_url", "medium_url")
        or PLACEHOLDER_IMAGE,
        external_reference_url=_reference_url(None, common, scientific),
        attributes=attributes,
    )


def normalize_pest(raw: Any) -> PestDisease:
    """Perenual ``pest-disease-list`` item."""
    data = _require_mapping(SourceTag.PERENUAL, raw)
    if data.get("id") in (None, ""):
        raise MalformedResponse(SourceTag.PERENUAL, "Pest/disease record missing id")

    images = data.get("images")
    first = _obj(images[0]) if isinstance(images, list) and images else {}
    return PestDisease(
        id=_count(data.get("id")),
        common_name=_text(data.get("common_name")),
        scientific_name=_text(data.get("scientific_name")),
        family=_text(data.get("family")),
        host=_joined(data.get("host")),
        image_url=_first_url(first, "regular_url", "original_url") or PLACEHOLDER_IMAGE,
    )


# =============================================================================
# iNaturalist
# =============================================================================


def _taxonomy(taxon: Mapping[str, Any]) -> dict[str, str]:
    ranks = {rank: NOT_AVAILABLE for rank in TAXONOMY_RANKS}
    ancestors = taxon.get("ancestors")
    entries = [a for a in ancestors if isinstance(a, Mapping)] if isinstance(ancestors, list) else []
    for entry in [*entries, taxon]:
        rank = _enum(entry.get("rank"))
        if rank in ranks:
            ranks[rank] = _text(entry.get("name"))
    return ranks


def normalize_inaturalist(raw: Any) -> CanonicalRecord:
    """iNaturalist ``/taxa`` result."""
    taxon = _require_mapping(SourceTag.INATURALIST, raw)
    native_id = taxon.get("id")
    if native_id in (None, ""):
        raise MalformedResponse(SourceTag.INATURALIST, "iNaturalist taxon missing id")

    scientific = _text(taxon.get("name"))
    common = _text(taxon.get("preferred_common_name"), scientific)

    image = _first_url(
        _obj(taxon.get("default_photo")),
        "medium_url",
        "original_url",
        "large_url",
        "small_url",
        "url",
    )
    if image is None:
        photos = taxon.get("taxon_photos")
        if isinstance(photos, list) and photos:
            image = _first_url(
                _obj(_obj(photos[0]).get("photo")),
                "medium_url",
                "original_url",
                "large_url",
                "url",
            )

    ranks = _taxonomy(taxon)
    attributes = RecordAttributes(
        taxon_id=_count(native_id),
        rank=_enum(taxon.get("rank")),
        iconic_taxon_name=_text(taxon.get("iconic_taxon_name")),
        kingdom=ranks["kingdom"],
        phylum=ranks["phylum"],
        class_name=ranks["class"],
        order=ranks["order"],
        family=ranks["family"],
        genus=ranks["genus"],
        is_active=_flag(taxon.get("is_active")),
        endemic=_flag(taxon.get("endemic")),
        threatened=_flag(taxon.get("threatened")),
        introduced=_flag(taxon.get("introduced")),
        native=_flag(taxon.get("native")),
        observations_count=_count(taxon.get("observations_count")),
    )

    return CanonicalRecord(
        id=make_record_id(SourceTag.INATURALIST, native_id),
        source=SourceTag.INATURALIST,
        common_name=common,
        scientific_name=scientific,
        description=_text(taxon.get("wikipedia_summary"), NO_DESCRIPTION),
        image_url=image or PLACEHOLDER_IMAGE,
        external_reference_url=_reference_url(taxon.get("wikipedia_url"), common, scientific),
        attributes=attributes,
    )


def normalize_observation(raw: Any) -> Observation:
    """iNaturalist ``/observations`` result."""
    obs = _require_mapping(SourceTag.INATURALIST, raw)
    obs_id = obs.get("id")
    if obs_id in (None, ""):
        raise MalformedResponse(SourceTag.INATURALIST, "Observation missing id")

    photos = obs.get("photos")
    photo = _obj(photos[0]) if isinstance(photos, list) and photos else {}
    user = _obj(obs.get("user"))
    return Observation(
        id=_count(obs_id),
        observed_on=_text(obs.get("observed_on")),
        place_guess=_text(obs.get("place_guess")),
        quality_grade=_enum(obs.get("quality_grade")),
        observer=_text(user.get("login")),
        photo_url=_first_url(photo, "url", "medium_url") or PLACEHOLDER_IMAGE,
        url=f"{INAT_OBSERVATION_URL}{obs_id}",
    )


# =============================================================================
# Toxic Shrooms
# =============================================================================


def slugify(name: str) -> str:
    """Whitespace runs -> ``_`` (the Toxic Shrooms native id)."""
    return re.sub(r"\s+", "_", name.strip())


def _toxic_image(value: Any) -> str:
    img = _text(value, "")
    if img.startswith("//"):
        return "https:" + img
    if img.startswith("http"):
        return img
    return PLACEHOLDER_IMAGE


def normalize_toxicshrooms(raw: Any) -> CanonicalRecord:
    """Toxic Shrooms ``/api/mushrooms`` item. The name is the identifier."""
    data = _require_mapping(SourceTag.TOXICSHROOMS, raw)
    scientific = _text(data.get("name"), "")
    if not scientific:
        raise MalformedResponse(SourceTag.TOXICSHROOMS, "Toxic Shrooms record missing name")

    common = _text(data.get("commonname"), scientific)
    agent = _text(data.get("agent"), "Unknown")
    distribution = _joined(data.get("distribution"), "Unknown")

    attributes = RecordAttributes(
        toxicity_type=_enum(data.get("type")),
        toxic_agent=agent if agent != "Unknown" else "Unknown toxins",
        distribution=distribution,
        kingdom="Fungi",
    )

    return CanonicalRecord(
        id=make_record_id(SourceTag.TOXICSHROOMS, slugify(scientific)),
        source=SourceTag.TOXICSHROOMS,
        common_name=common,
        scientific_name=scientific,
        description=f"Toxic agent: {agent}. Distribution: {distribution}",
        image_url=_toxic_image(data.get("img")),
        external_reference_url=_reference_url(None, common, scientific),
        attributes=attributes,
    )


# =============================================================================
# Dispatch
# =============================================================================

NORMALIZERS: dict[SourceTag, Callable[[Any], CanonicalRecord]] = {
    SourceTag.PERENUAL: normalize_perenual,
    SourceTag.INATURALIST: normalize_inaturalist,
    SourceTag.TOXICSHROOMS: normalize_toxicshrooms,
}


def normalize(source: SourceTag | str, raw: Any) -> CanonicalRecord:
    """
    Map one raw provider record to a ``CanonicalRecord``.

    Raises:
        ValueError: Unknown source tag (programmer error).
        MalformedResponse: ``raw`` is not an object or lacks its identifier.
    """
    try:
        normalizer = NORMALIZERS[SourceTag(source)]
    except ValueError:
        msg = f"No normalizer for source {source!r}"
        raise ValueError(msg) from None
    return normalizer(raw)


def normalize_many(source: SourceTag | str, raws: Iterable[Any]) -> list[CanonicalRecord]:
    """Normalize a batch, dropping (and logging) structurally broken records."""
    records: list[CanonicalRecord] = []
    for raw in raws:
        try:
            records.append(normalize(source, raw))
        except MalformedResponse as e:
            logger.warning("Dropping malformed %s record: %s", source, e)
    return records
