from __future__ import annotations

from .types import SubtitleBlock
from .srt_codec import fit_block_text, parse_srt, serialize_srt, read_srt, write_srt

__all__ = ["SubtitleBlock", "fit_block_text", "parse_srt", "serialize_srt", "read_srt", "write_srt"]
