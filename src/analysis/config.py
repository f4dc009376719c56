"""
Analysis-layer configuration: grain classes, fallback texts and defaults.

Centralizes constants shared by grains.py, prompts.py and runner.py.
"""

from config.model_params import GRAIN_SIZE_MIDPOINTS, PLACEHOLDER_COUNT_RANGE  # noqa: F401

# ---------------------------------------------------------------------------
# Grain size classes (upper bound in µm → label), checked in order
# ---------------------------------------------------------------------------

SIZE_CLASSES: list[tuple[float, str]] = [
    (63, "Very fine"),
    (250, "Fine"),
    (2000, "Medium to Coarse"),
]
SIZE_CLASS_ABOVE: str = "Very coarse"

# Sorting from the max/min bucket-count ratio (upper bound → label)
SORTING_CLASSES: list[tuple[float, str]] = [
    (2, "Well sorted"),
    (5, "Moderately sorted"),
]
SORTING_CLASS_ABOVE: str = "Poorly sorted"

# ---------------------------------------------------------------------------
# Analysis defaults
# ---------------------------------------------------------------------------

DEFAULT_QUALITY: str = "Good"
DEFAULT_FILENAME: str = "uploaded_image"
DEFAULT_IMAGE_MIME: str = "image/jpeg"

# Shown when no model produced a usable analysis
FALLBACK_DETAILS: str = """**Most Important Soil Features**
1. Grain Size & Texture: Determines water retention and drainage capabilities essential for agriculture and construction.
2. Mineral Composition: Indicates the geological origin (e.g., quartz, feldspar) and chemical stability.
3. pH & Fertility: Chemical properties that dictate suitability for different types of vegetation or crops.
4. Permeability & Porosity: Critical for groundwater movement and foundation stability in engineering.
5. Regional Significance: Reflects the local sedimentary environment and climatic history of the area.

**Detailed Analysis**
(Automated analysis could not be completed at this time. Please retry for live AI insights.)"""

FEATURES_PENDING: str = "Feature analysis pending."
ANALYSIS_PENDING: str = "Analysis pending."

VOICE_NOT_UNDERSTOOD: str = "Sorry, I could not understand the audio."
