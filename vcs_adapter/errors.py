"""
VCS 层错误类型。

约定：
- 所有错误都直接抛给调用方（orchestration 层决定重试/告警/放弃）
- 本层不做重试，也不做“静默恢复”
- 错误信息必须带上足够的上下文（Content-Type 原值、平台返回的失败原因）
"""

from __future__ import annotations


class VCSError(RuntimeError):
    """VCS 层所有错误的基类。"""

    pass


class MalformedIdentifierError(VCSError, ValueError):
    """repo full name 无法解析（只在严格模式 `require_repo_full_name` 下抛出）。"""

    def __init__(self, full_name: str) -> None:
        super().__init__(f"malformed repo full name {full_name!r}")
        self.full_name = full_name


class AuthenticationError(VCSError):
    """Webhook 请求的 Basic 鉴权失败。"""

    def __init__(self) -> None:
        super().__init__("authentication failed")


class UnsupportedContentTypeError(VCSError):
    def __init__(self, content_type: str) -> None:
        super().__init__(f'webhook request has unsupported Content-Type "{content_type}"')
        self.content_type = content_type


class AmbiguousWorkItemError(VCSError):
    """PR 关联了多个 work item，无法确定评论目标。"""

    def __init__(self, pull_num: int, work_item_ids: list[str]) -> None:
        super().__init__(
            f"pull request {pull_num} linked to more than one work item ({', '.join(work_item_ids)}) - ignoring"
        )
        self.pull_num = pull_num
        self.work_item_ids = work_item_ids


class TransportError(VCSError):
    """网络错误 / 超时 / 平台返回非 2xx / 响应体不是预期的 JSON。"""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MergeRejectedError(VCSError):
    """平台拒绝合并；reason 保留平台返回的原文。"""

    def __init__(self, reason: str) -> None:
        super().__init__(f"could not merge pull request: {reason}")
        self.reason = reason


class MissingSourceCommitError(VCSError):
    """PR 没有 lastMergeSourceCommit（例如还没完成第一次合并计算），无法确定要比较的 commit。"""

    def __init__(self, pull_num: int) -> None:
        super().__init__(f"pull request {pull_num} has no lastMergeSourceCommit")
        self.pull_num = pull_num
