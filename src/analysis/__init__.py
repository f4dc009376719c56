"""
Analysis package - sample analysis, reports and voice chat.

Public API surface:

    Grain statistics:
        placeholder_grain_counts, weighted_average_size, classify_size,
        classify_sorting, dominant_size

    Soil reference:
        lookup_soil_details

    Prompts:
        build_analysis_prompt, build_report_prompt, local_report

    Runner:
        analyze_sample, answer_prompt, generate_report, voice_chat
"""

from .grains import (
    classify_size,
    classify_sorting,
    dominant_size,
    placeholder_grain_counts,
    weighted_average_size,
)
from .prompts import build_analysis_prompt, build_report_prompt, local_report
from .runner import analyze_sample, answer_prompt, generate_report, voice_chat
from .soil import lookup_soil_details

__all__ = [
    # grains
    "placeholder_grain_counts",
    "weighted_average_size",
    "classify_size",
    "classify_sorting",
    "dominant_size",
    # soil
    "lookup_soil_details",
    # prompts
    "build_analysis_prompt",
    "build_report_prompt",
    "local_report",
    # runner
    "analyze_sample",
    "answer_prompt",
    "generate_report",
    "voice_chat",
]
