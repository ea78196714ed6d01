from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class SubtitleBlock:
    """
    单条字幕块，对应 SRT 中的一个时间轴块。

    index 与 time 均按原文件中的字符串原样保留，只有 text 会被翻译。
    """

    index: str
    time: str
    text: str

    def with_text(self, text: str) -> "SubtitleBlock":
        return replace(self, text=text)
