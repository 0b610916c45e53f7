"""
评论拆分（Comment Chunker）。

很多平台对单条评论有长度上限，超长的 plan/apply 输出需要拆成多条：
- 非最后一段以 `sep_end` 结尾（负责关闭当前打开的 ``` 代码块）
- 非第一段以 `sep_start` 开头（负责重新打开代码块）
- 所有段的 body 顺序拼接后等于原文
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CommentSegment:
    """一段待提交的评论：`text` 为最终提交内容，`body` 为其中来自原文的部分。"""

    text: str
    body: str
    index: int
    is_first: bool
    is_last: bool


def split_comment(comment: str, max_size: int, sep_end: str, sep_start: str) -> list[CommentSegment]:
    """
    按 `max_size` 拆分评论，每段（含 sep_end/sep_start）长度都不超过 `max_size`。

    切分点优先选窗口后半部分里最后一个换行（保持行完整），找不到就硬切。
    """
    if len(comment) <= max_size:
        return [CommentSegment(text=comment, body=comment, index=0, is_first=True, is_last=True)]

    window = max_size - len(sep_end) - len(sep_start)
    if window <= 0:
        raise ValueError(f"max_size {max_size} leaves no room for comment separators")

    bodies: list[str] = []
    start = 0
    while len(comment) - start > window:
        end = start + window
        newline = comment.rfind("\n", start + window // 2, end)
        if newline != -1:
            end = newline + 1
        bodies.append(comment[start:end])
        start = end
    bodies.append(comment[start:])

    segments: list[CommentSegment] = []
    last = len(bodies) - 1
    for i, body in enumerate(bodies):
        text = body
        if i < last:
            text += sep_end
        if i > 0:
            text = sep_start + text
        segments.append(CommentSegment(text=text, body=body, index=i, is_first=i == 0, is_last=i == last))
    return segments
