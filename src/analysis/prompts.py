"""
Prompt construction and text formatting for the analysis and report flows.
"""

from __future__ import annotations

import re

from .config import ANALYSIS_PENDING, DEFAULT_FILENAME, FEATURES_PENDING, GRAIN_SIZE_MIDPOINTS
from .grains import classify_size, classify_sorting

ANALYSIS_PROMPT_TEMPLATE = """You are a geological assistant. Analyze the provided image of a soil/sand sample to generate a comprehensive report.
Input metadata:
Location provided by user: {location}
Filename: {filename}
SoilType provided by user: {soil_type}

Task:
1. Identify the likely soil type, color, texture, and grain characteristics.
2. Estimate the likely geographical region or specific location type.
3. Generate specific approximate coordinates (latitude, longitude) for a representative location.
4. Identify 5 REAL-WORLD LOCATIONS (Global or Regional) where this specific sand/soil type is highly abundant and famous.
5. List "5 Most Important Facts" about this soil type (strictly 5 lines).
6. Estimate grain counts for the size buckets {buckets} (micrometres), as exactly {n_buckets} integers.
7. Generate a "Detailed Analysis".

Output Format:
Return pure JSON with the following structure (no markdown code blocks):
{{
  "soilType": "Identified soil type",
  "estimatedLocation": "Name of the estimated location/region",
  "coordinates": {{"lat": 12.34, "lng": 56.78}},
  "likelyLocations": [
    {{"name": "Location Name 1", "coordinates": {{"lat": 0, "lng": 0}}}},
    {{"name": "Location Name 2", "coordinates": {{"lat": 0, "lng": 0}}}},
    {{"name": "Location Name 3", "coordinates": {{"lat": 0, "lng": 0}}}},
    {{"name": "Location Name 4", "coordinates": {{"lat": 0, "lng": 0}}}},
    {{"name": "Location Name 5", "coordinates": {{"lat": 0, "lng": 0}}}}
  ],
  "grainCounts": [0, 0, 0, 0, 0],
  "keyFeatures": "1. Fact one...\\n2. Fact two...\\n3. Fact three...\\n4. Fact four...\\n5. Fact five...",
  "analysisText": "Detailed textual analysis..."
}}"""

REPORT_SECTIONS: list[str] = [
    "Sample Overview",
    "Grain Size Analysis",
    "Grain Shape & Texture",
    "Soil Type Identification",
    "Mineralogical Composition",
    "Bacterial & Microbial Possibility (Inference-Based)",
    "Depositional Environment Interpretation",
    "Application-Based Suitability",
    "Limitations & Assumptions",
    "Conclusion",
]


def _join(values) -> str | None:
    if isinstance(values, list) and values:
        return ", ".join(str(v) for v in values)
    return None


def build_analysis_prompt(
    location: str | None,
    filename: str | None,
    soil_type: str | None,
) -> str:
    """
    Render the vision prompt asking for the JSON analysis envelope.

    Missing metadata is rendered as ``'Unknown'``.
    """
    return ANALYSIS_PROMPT_TEMPLATE.format(
        location=location or "Unknown",
        filename=filename or DEFAULT_FILENAME,
        soil_type=soil_type or "Unknown",
        buckets=", ".join(str(m) for m in GRAIN_SIZE_MIDPOINTS),
        n_buckets=len(GRAIN_SIZE_MIDPOINTS),
    )


def build_report_prompt(analysis: dict) -> str:
    """
    Render the detailed-report prompt from an analysis dict.

    Args:
        analysis: Dict as returned by :func:`runner.analyze_sample`.

    Returns:
        Prompt text for the text model list.
    """
    soil = analysis.get("soilType") or "Unknown"
    if analysis.get("soilDetails"):
        soil = f"{soil} - {analysis['soilDetails']}"

    lines = [
        "You are an expert geologist, sedimentologist, and coastal engineer.",
        "Using the provided image-analysis data and parameters, generate a "
        "comprehensive, structured, and scientifically accurate detailed report.",
        "",
        "Input Data:",
        f"Average grain size (µm): {analysis.get('averageSize') or 'Unknown'}",
        f"Grain size distribution: {_join(analysis.get('grainSizes')) or 'Unknown'}",
        f"Grain counts: {_join(analysis.get('grainCounts')) or 'Unknown'}",
        f"Observed soil color/texture: {soil}",
        f"Location: {analysis.get('location') or 'Unknown'}",
        "Assumptions/fallbacks: Where values are missing, reasonable geological "
        "estimates were used; clearly state where estimates apply.",
        "",
        "Report Structure:",
        *(f"{i}. {section}" for i, section in enumerate(REPORT_SECTIONS, start=1)),
        "",
        "Output Requirements: Use clear headings and subheadings, simple but "
        "scientific language, professional tone, and indicate assumptions or "
        "fallbacks clearly.",
    ]
    return "\n".join(lines)


def local_report(analysis: dict) -> str:
    """
    Deterministic summary report used when no model answers.

    Only values present in ``analysis`` are used; classes are derived from
    the grain histogram.
    """
    average = analysis.get("averageSize")
    counts = analysis.get("grainCounts")
    size_class = classify_size(average)
    sorting = classify_sorting(counts if isinstance(counts, list) else None)
    soil = analysis.get("soilType") or "Unspecified"

    lines = [
        "SUMMARY",
        f"- Average grain size of {average or 'N/A'} µm ({size_class}), "
        f"{sorting.lower()} sorting, and {soil} soil type.",
        "- Confidence level is moderate due to image-based methods; laboratory "
        "verification is recommended for critical applications.",
        "",
        "1. SAMPLE OVERVIEW",
        "- Method: Camera/image-based detection and automated grain analysis.",
        f"- Sample quality: {analysis.get('quality') or 'Good'}.",
        f"- Total grains analyzed: {analysis.get('totalGrains') or 'N/A'}.",
        f"- Location context: {analysis.get('location') or 'Not specified'}.",
        "",
        "2. GRAIN SIZE ANALYSIS",
        f"- Size buckets (µm): {_join(analysis.get('grainSizes')) or 'Not available.'}",
        f"- Counts: {_join(counts) or 'Not available.'}",
        f"- Sorting: {sorting}.",
    ]
    if analysis.get("soilDetails"):
        lines += ["", "3. SOIL TYPE IDENTIFICATION", f"- {analysis['soilDetails']}"]
    return "\n".join(lines)


def format_details(features: str | None, analysis_text: str | None) -> str:
    """
    Combine key features and analysis text into the report body.

    Markdown ``#`` headers are stripped; bold section titles are kept.
    """
    text = (
        f"**Most Important Features**\n{features or FEATURES_PENDING}\n\n"
        f"**Detailed Analysis**\n{analysis_text or ANALYSIS_PENDING}"
    )
    return re.sub(r"#{1,6}\s?", "", text).strip()
