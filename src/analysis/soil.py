"""
Static soil reference descriptions keyed by common soil-type names.
"""

from __future__ import annotations

import re

SOIL_DETAILS: dict[str, str] = {
    "red": "Red soil (lateritic): iron-oxide rich, often well-drained, sometimes low organic matter; good for certain crops after amendment.",
    "lateritic": "Lateritic soils: deeply weathered, iron/aluminium rich, often red; may be nutrient-poor and hard when dry.",
    "black": "Black soil (regur): high clay and organic content, retains moisture well; very fertile for cotton and many crops.",
    "regur": "Regur: Indian black cotton soil, high in clay and moisture retention; expansive when wet/dry cycles occur.",
    "grey": "Grey soil: may indicate silt or organic-rich layers; can be poorly drained and require stabilization for engineering uses.",
    "desert": "Desert sand: well-sorted, very rounded grains, low fines; poor cohesion and typically unsuitable for structural fill without treatment.",
    "sandy": "Sandy soil: coarse-grained, drains quickly, low cohesion and low nutrient retention; good drainage but poor water holding.",
    "silty": "Silty soil: fine-grained, can be prone to erosion and compaction; moderate fertility but may be poorly drained.",
    "clay": "Clay soil: fine particles, high plasticity, can hold water and swell/shrink; may require stabilization for construction.",
    "loam": "Loam: balanced mix of sand, silt, and clay; often fertile and good for agriculture and landscaping.",
    "peat": "Peaty soil: high organic matter, very compressible and water-retentive; poor for most engineering uses without treatment.",
    "gravelly": "Gravelly soil: coarse mixed with larger clasts; good drainage and bearing but variable compaction properties.",
    "volcanic": "Volcanic soils: derived from volcanic ash or materials; can be fertile but variable in drainage and chemistry.",
    "saline": "Saline soils: high soluble salts; problematic for most crops and may require leaching and management.",
    "alluvial": "Alluvial soils: deposited by rivers, often layered with sands and silts; can be fertile and variable in texture.",
    "coastal": "Coastal sands and soils: marine-influenced, may contain shell fragments and salt; consider salt corrosion and drainage.",
    "riverine": "Riverine deposits: fluvial sands and silts; variable sorting and often stratified by flow events.",
    "dune": "Dune sand: well-sorted wind-blown sand, typically rounded grains and low fines; unstable for construction without stabilization.",
    "loess": "Loess: wind-blown silt deposits, typically very porous and subject to collapse when wetted; fertile but geotechnically sensitive.",
    "ochre": "Ochre/iron-rich soils: rich in iron oxide, usually well-drained but may indicate oxidation conditions.",
    "green": "Greenish soils: may indicate glauconite or marine minerals; check for marine origin and geochemistry.",
}


def normalize_soil_key(soil_type: str | None) -> str:
    """
    Reduce free-form user input to a lookup key.

    Lower-cases, keeps the first ``,;|``-separated item and then its first
    word: ``"Red Laterite, gravel"`` → ``"red"``.
    """
    raw = (soil_type or "").strip().lower()
    first_item = re.split(r"[,;|]", raw, maxsplit=1)[0].strip()
    words = first_item.split()
    return words[0] if words else ""


def lookup_soil_details(soil_type: str | None) -> str | None:
    """Reference description for ``soil_type``, or ``None`` if unknown."""
    return SOIL_DETAILS.get(normalize_soil_key(soil_type))
