from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from subtranslate.errors import ServiceCardinalityError, ServiceFormatError

# 部分模型即使被要求只返回 JSON，也会包一层 ```json ... ```
_CODE_FENCE_PATTERN = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


@dataclass(frozen=True)
class TranslationUnit:
    """
    发送给翻译服务的最小单元。

    id 是该批次内从 0 开始的位置编号，而不是字幕文件里的 index，
    这样校验响应时只需信任我们自己分配的编号空间。
    """

    id: int
    text: str

    def to_payload(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text}


def build_units(texts: Sequence[str]) -> List[TranslationUnit]:
    return [TranslationUnit(id=i, text=text) for i, text in enumerate(texts)]


def units_to_json(units: Sequence[TranslationUnit]) -> str:
    return json.dumps([unit.to_payload() for unit in units], ensure_ascii=False)


def parse_response(raw: str) -> Any:
    """
    将服务返回的原始文本解析为 JSON。

    解析失败视为 ServiceFormatError（可重试 / 可降级），而不是致命错误。
    """
    content = (raw or "").strip()
    fenced = _CODE_FENCE_PATTERN.match(content)
    if fenced:
        content = fenced.group(1).strip()
    try:
        return json.loads(content)
    except json.JSONDecodeError as parse_err:
        snippet = content[:200]
        raise ServiceFormatError(
            f"Translation service returned non-JSON content (first 200 chars): {snippet}"
        ) from parse_err


def _coerce_id(value: Any) -> int | float | None:
    # bool 是 int 的子类，需要单独排除
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def validate_response(payload: Any, expected_count: int) -> Dict[int, str]:
    """
    按顺序校验服务响应，并返回 {id: text} 映射。

    1. 必须是对象数组；
    2. 数组长度必须等于输入条数；
    3. 每个对象都要有数值型 id 与字符串 text；
    4. 按 id 去重（后写覆盖）后，id 集合必须恰好是 0..n-1。
    """
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise ServiceFormatError("Translation service response is not an array of objects.")

    if len(payload) != expected_count:
        raise ServiceCardinalityError(
            f"Translation service returned {len(payload)} item(s), expected {expected_count}."
        )

    translations: Dict[Any, str] = {}
    for item in payload:
        item_id = _coerce_id(item.get("id"))
        text = item.get("text")
        if item_id is None or not isinstance(text, str):
            raise ServiceFormatError(
                f"Translation service returned an item without numeric 'id' and string 'text': {item!r}"
            )
        translations[item_id] = text

    if set(translations) != set(range(expected_count)):
        missing = sorted(set(range(expected_count)) - set(translations))
        raise ServiceCardinalityError(
            f"Translation service response ids do not match the request (missing ids: {missing})."
        )
    return translations


def collect_translations(payload: List[Any], expected_count: int) -> Dict[int, str]:
    """
    宽松模式：只收集合法且 id 落在 0..n-1 内的条目，其余忽略。
    """
    translations: Dict[int, str] = {}
    for item in payload:
        if not isinstance(item, dict):
            continue
        item_id = _coerce_id(item.get("id"))
        text = item.get("text")
        if not isinstance(item_id, int) or not isinstance(text, str):
            continue
        if 0 <= item_id < expected_count:
            translations[item_id] = text
    return translations
