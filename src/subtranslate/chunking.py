from __future__ import annotations

from typing import Iterable, List

from .subtitles import SubtitleBlock

# 约 1000 token 的经验值，保证单次请求远低于服务上限
DEFAULT_CHAR_BUDGET = 3750


def split_into_batches(
    blocks: Iterable[SubtitleBlock],
    budget: int = DEFAULT_CHAR_BUDGET,
) -> List[List[SubtitleBlock]]:
    """
    按字符预算将字幕块贪心地切分为若干批次。

    - 当前批次非空且加入下一块会超出预算时，先结束当前批次；
    - 单块超出预算时独占一个批次，绝不在块内拆分；
    - 所有批次按顺序拼接后与输入完全一致。
    """
    if isinstance(budget, bool) or not isinstance(budget, int) or budget <= 0:
        raise ValueError(f"budget must be a positive integer, got {budget!r}")

    batches: List[List[SubtitleBlock]] = []
    current_batch: List[SubtitleBlock] = []
    current_len = 0
    for block in blocks:
        block_len = len(block.text)
        if current_batch and current_len + block_len > budget:
            batches.append(current_batch)
            current_batch = []
            current_len = 0
        current_batch.append(block)
        current_len += block_len
    if current_batch:
        batches.append(current_batch)
    return batches
