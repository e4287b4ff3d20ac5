"""从模型输出的自由文本中提取 JSON 对象。

模型经常在 JSON 前后附带说明文字（甚至 markdown 代码块），
这里不信任输出格式，只取第一个括号平衡、且能解析为对象的子串。
解析结果是带标签的 ParseOk / ParseFailure，调用方据此决定默认值。
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Tuple, Union


@dataclass(frozen=True)
class ParseOk:
    value: Dict[str, Any]


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ParseResult = Union[ParseOk, ParseFailure]


def _balanced_spans(text: str) -> Iterator[Tuple[int, int]]:
    """依次产出每个以 '{' 开头、括号平衡的区间 [start, end)。

    字符串字面量内部的括号与转义字符不参与计数。
    """

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = -1
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    end = i + 1
                    break
        if end != -1:
            yield start, end
        start = text.find("{", start + 1)


def extract_json_object(text: str) -> ParseResult:
    if not isinstance(text, str) or not text.strip():
        return ParseFailure("empty output")
    saw_candidate = False
    for start, end in _balanced_spans(text):
        saw_candidate = True
        try:
            value = json.loads(text[start:end])
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return ParseOk(value)
    if not saw_candidate:
        return ParseFailure("no JSON object found")
    return ParseFailure("no parseable JSON object found")
