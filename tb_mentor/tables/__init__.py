"""Table normalization, subtype detection and rendering."""

from .enrichment import enrich_table_result
from .normalizer import normalize_table
from .renderers import first_present, render_generic, render_table
from .subtypes import detect_table_subtype

__all__ = [
    "detect_table_subtype",
    "enrich_table_result",
    "first_present",
    "normalize_table",
    "render_generic",
    "render_table",
]
