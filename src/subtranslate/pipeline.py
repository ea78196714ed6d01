from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, TypeVar

from .chunking import DEFAULT_CHAR_BUDGET, split_into_batches
from .config import SubtranslateConfig, derive_output_path
from .errors import SubtranslateError
from .subtitles import SubtitleBlock, fit_block_text, parse_srt, serialize_srt, write_srt
from .translate.factory import get_translation_engine
from .translate.translator import TranslationEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RunState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    PARSING = "parsing"
    CHUNKING = "chunking"
    TRANSLATING = "translating"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS: Dict[RunState, FrozenSet[RunState]] = {
    RunState.IDLE: frozenset({RunState.READING}),
    RunState.READING: frozenset({RunState.PARSING, RunState.FAILED}),
    RunState.PARSING: frozenset({RunState.CHUNKING, RunState.FAILED}),
    RunState.CHUNKING: frozenset({RunState.TRANSLATING, RunState.FAILED}),
    RunState.TRANSLATING: frozenset(
        {RunState.TRANSLATING, RunState.FINALIZING, RunState.FAILED}
    ),
    RunState.FINALIZING: frozenset({RunState.DONE, RunState.FAILED}),
    RunState.DONE: frozenset(),
    RunState.FAILED: frozenset(),
}


class InvalidStateTransition(RuntimeError):
    pass


@dataclass(frozen=True)
class ProgressEvent:
    state: RunState
    percent: int
    message: str
    chunk_index: Optional[int] = None
    chunk_total: Optional[int] = None


ProgressCallback = Callable[[ProgressEvent], None]


class RunProgress:
    """
    单次翻译运行的状态机。

    只允许 _TRANSITIONS 中声明的状态迁移；百分比单调不减，
    每次迁移都会通知 progress_callback（若提供）。
    """

    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self.state = RunState.IDLE
        self.percent = 0
        self._callback = callback

    def advance(
        self,
        state: RunState,
        percent: int,
        message: str,
        chunk_index: Optional[int] = None,
        chunk_total: Optional[int] = None,
    ) -> ProgressEvent:
        if state not in _TRANSITIONS[self.state]:
            raise InvalidStateTransition(
                f"Cannot move from {self.state.value} to {state.value}"
            )
        self.state = state
        self.percent = max(self.percent, percent)
        event = ProgressEvent(
            state=state,
            percent=self.percent,
            message=message,
            chunk_index=chunk_index,
            chunk_total=chunk_total,
        )
        if self._callback is not None:
            self._callback(event)
        return event

    def fail(self, message: str) -> None:
        if self.state in {RunState.IDLE, RunState.DONE, RunState.FAILED}:
            return
        self.advance(RunState.FAILED, self.percent, message)


def chunk_percent(chunk_index: int, chunk_total: int) -> int:
    """
    将第 chunk_index 批（从 1 开始）映射到 5%~95% 的进度区间。
    """
    return int(chunk_index / chunk_total * 90 + 0.5) + 5


class SubtitlePipeline:
    """
    字幕翻译主流程：解析 -> 分批 -> 逐批翻译 -> 重组。

    各批次严格串行提交；任一批次抛出异常即整体失败，不产出任何部分结果。
    """

    def __init__(
        self,
        engine: TranslationEngine,
        char_budget: int = DEFAULT_CHAR_BUDGET,
        progress_callback: Optional[ProgressCallback] = None,
        lang_suffix: str = "pt",
    ) -> None:
        self.engine = engine
        self.char_budget = char_budget
        self.progress_callback = progress_callback
        self.lang_suffix = lang_suffix
        self._progress = RunProgress()
        self._block_count = 0

    @classmethod
    def from_config(
        cls,
        config: SubtranslateConfig,
        progress_callback: Optional[ProgressCallback] = None,
        engine: TranslationEngine | None = None,
    ) -> "SubtitlePipeline":
        if engine is None:
            engine = get_translation_engine(config)
        return cls(
            engine,
            char_budget=config.char_budget,
            progress_callback=progress_callback,
            lang_suffix=config.lang_suffix,
        )

    @property
    def state(self) -> RunState:
        return self._progress.state

    @property
    def progress(self) -> int:
        return self._progress.percent

    @property
    def block_count(self) -> int:
        """最近一次运行解析出的字幕块数。"""
        return self._block_count

    def _translate_batch(self, batch: Sequence[SubtitleBlock]) -> List[SubtitleBlock]:
        texts = [block.text for block in batch]
        translations = self.engine.translate_texts(texts)
        if len(translations) != len(batch):
            raise SubtranslateError(
                f"Translation engine returned {len(translations)} text(s) for a batch of {len(batch)}."
            )
        result: List[SubtitleBlock] = []
        for block, text in zip(batch, translations):
            fitted = fit_block_text(text)
            if not fitted:
                # 译文为空时保留原文，保证输出块数与输入一致
                logger.warning("Empty translation for subtitle %s, keeping original text", block.index)
                fitted = block.text
            result.append(block.with_text(fitted))
        return result

    def _run(
        self,
        read: Callable[[], str],
        finish: Callable[[List[SubtitleBlock]], T],
    ) -> T:
        progress = RunProgress(self.progress_callback)
        self._progress = progress
        self._block_count = 0
        progress.advance(RunState.READING, 0, "正在读取文件...")
        try:
            raw_text = read()
            progress.advance(RunState.PARSING, 5, "正在解析 SRT 内容...")
            blocks = parse_srt(raw_text)
            self._block_count = len(blocks)
            progress.advance(RunState.CHUNKING, 5, f"共 {len(blocks)} 条字幕，正在分批...")
            batches = split_into_batches(blocks, self.char_budget)

            translated: List[SubtitleBlock] = []
            total = len(batches)
            for i, batch in enumerate(batches, start=1):
                progress.advance(
                    RunState.TRANSLATING,
                    chunk_percent(i, total),
                    f"正在翻译第 {i}/{total} 批...",
                    chunk_index=i,
                    chunk_total=total,
                )
                translated.extend(self._translate_batch(batch))

            progress.advance(RunState.FINALIZING, 100, "正在生成译文文件...")
            result = finish(translated)
        except Exception as exc:
            logger.error("Subtitle translation failed: %s", exc)
            progress.fail(str(exc))
            raise
        progress.advance(RunState.DONE, 100, "翻译完成")
        return result

    def translate_srt(self, raw_text: str) -> str:
        return self._run(lambda: raw_text, serialize_srt)

    def translate_file(
        self,
        input_path: str | Path,
        output_path: str | Path | None = None,
    ) -> Path:
        """
        读取 input_path，翻译后写出译文 SRT，返回输出路径。

        未指定 output_path 时按 derive_output_path 推导（name.srt -> name.pt.srt）。
        失败时不会写出任何文件。
        """
        in_path = Path(input_path).expanduser().resolve()
        if output_path is not None:
            out_path = Path(output_path).expanduser().resolve()
        else:
            out_path = derive_output_path(in_path, self.lang_suffix)
        return self._run(
            lambda: in_path.read_text(encoding="utf-8-sig"),
            lambda blocks: write_srt(blocks, out_path),
        )
