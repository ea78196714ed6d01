from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List

from subtranslate.errors import ContentError

from .types import SubtitleBlock

logger = logging.getLogger(__name__)

_INDEX_PATTERN = re.compile(r"^\d+$")
# 一个或多个空行（允许只含空白字符）
_BLANK_LINES_PATTERN = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)*")
TIME_SEPARATOR = "-->"


def _normalize(raw_text: str) -> str:
    text = raw_text.lstrip("\ufeff")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _parse_block(candidate: str) -> SubtitleBlock | None:
    lines = candidate.split("\n")
    if len(lines) < 2:
        return None
    index = lines[0].strip()
    time = lines[1].strip()
    text = "\n".join(lines[2:])
    if not _INDEX_PATTERN.match(index) or TIME_SEPARATOR not in time:
        return None
    if not text.strip():
        return None
    return SubtitleBlock(index=index, time=time, text=text)


def parse_srt(raw_text: str) -> List[SubtitleBlock]:
    """
    将 SRT 文本解析为有序的字幕块列表。

    - 统一换行符，按空行切分候选块；
    - 序号行不是正整数、时间行缺少 "-->"、或正文为空的块会被静默丢弃；
    - 若最终一个有效块都没有，抛出 ContentError。
    """
    normalized = _normalize(raw_text).strip()
    blocks: List[SubtitleBlock] = []
    dropped = 0
    if normalized:
        for candidate in _BLANK_LINES_PATTERN.split(normalized):
            block = _parse_block(candidate.strip("\n"))
            if block is None:
                dropped += 1
                continue
            blocks.append(block)

    if dropped:
        logger.debug("Dropped %d malformed or empty subtitle block(s)", dropped)
    if not blocks:
        raise ContentError(
            "No valid subtitle blocks were found in the file. Please check the file format."
        )
    return blocks


def fit_block_text(text: str) -> str:
    """
    把任意文本整理成可以安全放进一个字幕块的正文。

    块内不能出现空行，否则写出后会被切成两个块；首尾空白一并去掉。
    文本为空或只含空白时返回空字符串，由调用方决定如何处理。
    """
    normalized = _normalize(text).strip()
    return _BLANK_LINES_PATTERN.sub("\n", normalized)


def serialize_srt(blocks: Iterable[SubtitleBlock]) -> str:
    """
    将字幕块列表渲染回 SRT 文本：块之间以空行分隔，并以一个空行结尾。
    """
    rendered = [f"{block.index}\n{block.time}\n{block.text}" for block in blocks]
    return "\n\n".join(rendered) + "\n\n"


def read_srt(path: str | Path) -> List[SubtitleBlock]:
    in_path = Path(path).expanduser().resolve()
    # utf-8-sig 会自动去掉 BOM
    raw_text = in_path.read_text(encoding="utf-8-sig")
    return parse_srt(raw_text)


def write_srt(blocks: Iterable[SubtitleBlock], path: str | Path) -> Path:
    srt_text = serialize_srt(blocks)
    out_path = Path(path).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(srt_text, encoding="utf-8")
    return out_path
