"""
Situationship AI - relationship analysis of chat screenshots.

This package provides:
- Upload ingestion and validation (Pillow)
- Chunking of screenshots into fixed-size groups
- Bounded fan-out / fan-in over async analysis calls
- Claude-backed group analysis and merge calls
- Parsing of the merged analysis into template sections
"""

from .chunking import chunk_items

from .fanout import (
    AnalysisFailure,
    DEFAULT_MAX_CONCURRENT,
    fan_out_fan_in,
)

from .uploads import (
    UploadItem,
    UploadError,
    load_upload,
    MAX_UPLOAD_BYTES,
    MAX_IMAGE_DIMENSION,
)

from .analyst import (
    RelationshipAnalyst,
    EmptyResponseError,
    MODELS,
    DEFAULT_MODEL,
    resolve_model,
)

from .pipeline import (
    AnalysisRun,
    DEFAULT_CHUNK_SIZE,
    analyze_uploads,
    run_analysis,
)

from .report import (
    AnalysisReport,
    ReportSection,
    parse_analysis,
)

__all__ = [
    # Chunking
    "chunk_items",
    # Fan-out
    "AnalysisFailure",
    "DEFAULT_MAX_CONCURRENT",
    "fan_out_fan_in",
    # Uploads
    "UploadItem",
    "UploadError",
    "load_upload",
    "MAX_UPLOAD_BYTES",
    "MAX_IMAGE_DIMENSION",
    # Analyst
    "RelationshipAnalyst",
    "EmptyResponseError",
    "MODELS",
    "DEFAULT_MODEL",
    "resolve_model",
    # Pipeline
    "AnalysisRun",
    "DEFAULT_CHUNK_SIZE",
    "analyze_uploads",
    "run_analysis",
    # Report
    "AnalysisReport",
    "ReportSection",
    "parse_analysis",
]
