from __future__ import annotations

from .config import SubtranslateConfig, derive_output_path
from .pipeline import SubtitlePipeline

__all__ = ["SubtranslateConfig", "SubtitlePipeline", "derive_output_path"]

__version__ = "0.1.0"
