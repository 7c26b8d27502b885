"""模型响应 JSON 提取

模型输出一律视为不可信文本，依次尝试：
1. 整体直接解析
2. Markdown 代码块（```json ... ```）内的内容
3. 第一个 { / [ 到最后一个 } / ] 之间的切片
全部失败时抛出 ResponseParseError。
"""

import json
import re
from typing import Any

from .exceptions import ResponseParseError

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


def _try_load(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return False, None


def _outer_slice(text: str) -> str | None:
    """截取最外层的 JSON 对象或数组，以先出现的开括号为准"""
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return None
    start = min(starts)
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer)
    if end <= start:
        return None
    return text[start : end + 1]


def extract_json_payload(text: str | None, purpose: str = "") -> Any:
    """从模型响应中提取 JSON 值

    Args:
        text: 模型原始输出
        purpose: 调用用途，仅用于错误信息

    Returns:
        解析得到的 dict / list / 标量

    Raises:
        ResponseParseError: 无法提取有效 JSON
    """
    if not text or not text.strip():
        raise ResponseParseError(purpose, "空响应")

    stripped = text.strip()
    ok, value = _try_load(stripped)
    if ok:
        return value

    for block in _JSON_FENCE_RE.findall(stripped):
        ok, value = _try_load(block)
        if ok:
            return value

    candidate = _outer_slice(stripped)
    if candidate is not None:
        ok, value = _try_load(candidate)
        if ok:
            return value

    raise ResponseParseError(purpose, f"无法提取 JSON（长度 {len(stripped)}）")
