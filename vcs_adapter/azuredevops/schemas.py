"""
Azure DevOps REST API schemas（Pydantic）。

说明：
- 字段名在 Python 侧用 snake_case，序列化/反序列化走 camelCase alias
- 所有字段都是可选的：请求体用 `exclude_none=True` 序列化，未设置的字段不出现在 JSON 里
  （Azure DevOps 对“字段缺失”和“字段为空”的处理不同）
- 字段只覆盖当前 adapter 需要的子集，后续可按需补充
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

API_VERSION = "5.1-preview.1"


class AzureDevopsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """请求体：camelCase + 去掉未设置字段。"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PullRequestVote(IntEnum):
    APPROVED = 10
    APPROVED_WITH_SUGGESTIONS = 5
    NONE = 0
    WAITING_FOR_AUTHOR = -5
    REJECTED = -10


class PullRequestMergeStatus(str, Enum):
    NOT_SET = "notSet"
    QUEUED = "queued"
    CONFLICTS = "conflicts"
    SUCCEEDED = "succeeded"
    REJECTED_BY_POLICY = "rejectedByPolicy"
    FAILURE = "failure"


class GitStatusState(str, Enum):
    NOT_SET = "notSet"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ERROR = "error"
    NOT_APPLICABLE = "notApplicable"


class GitPullRequestMergeStrategy(str, Enum):
    NO_FAST_FORWARD = "noFastForward"
    SQUASH = "squash"
    REBASE = "rebase"
    REBASE_MERGE = "rebaseMerge"


class VersionControlChangeType(str, Enum):
    """`changeType` 可能是逗号分隔的组合，例如 `edit, rename`。"""

    ADD = "add"
    EDIT = "edit"
    RENAME = "rename"
    DELETE = "delete"
    SOURCE_RENAME = "sourceRename"


class IdentityRef(AzureDevopsModel):
    id: str | None = None
    descriptor: str | None = None
    display_name: str | None = None
    unique_name: str | None = None
    url: str | None = None
    image_url: str | None = None


class IdentityRefWithVote(IdentityRef):
    """PR reviewer。vote 取值见 `PullRequestVote`。"""

    vote: int | None = None
    is_required: bool | None = None
    reviewer_url: str | None = None


class ResourceRef(AzureDevopsModel):
    """PR 上关联的 work item 引用（id 为字符串）。"""

    id: str | None = None
    url: str | None = None


class GitCommitRef(AzureDevopsModel):
    commit_id: str | None = None
    url: str | None = None


class GitPullRequestCompletionOptions(AzureDevopsModel):
    bypass_policy: bool | None = None
    bypass_reason: str | None = None
    delete_source_branch: bool | None = None
    merge_commit_message: str | None = None
    merge_strategy: GitPullRequestMergeStrategy | None = None
    squash_merge: bool | None = None
    transition_work_items: bool | None = None
    triggered_by_auto_complete: bool | None = None


class GitPullRequest(AzureDevopsModel):
    pull_request_id: int | None = None
    status: str | None = None
    title: str | None = None
    description: str | None = None
    source_ref_name: str | None = None
    target_ref_name: str | None = None
    merge_status: str | None = None
    merge_failure_message: str | None = None
    created_by: IdentityRef | None = None
    last_merge_source_commit: GitCommitRef | None = None
    last_merge_target_commit: GitCommitRef | None = None
    reviewers: list[IdentityRefWithVote | None] | None = None
    work_item_refs: list[ResourceRef] | None = None
    auto_complete_set_by: IdentityRef | None = None
    completion_options: GitPullRequestCompletionOptions | None = None
    url: str | None = None


class GitItem(AzureDevopsModel):
    path: str | None = None
    git_object_type: str | None = None
    url: str | None = None


class GitChange(AzureDevopsModel):
    change_id: int | None = None
    change_type: str | None = None
    item: GitItem | None = None
    source_server_item: str | None = None


class GitCommitChanges(AzureDevopsModel):
    change_counts: dict[str, int] | None = None
    changes: list[GitChange] | None = None


class GitStatusContext(AzureDevopsModel):
    genre: str | None = None
    name: str | None = None


class GitStatus(AzureDevopsModel):
    context: GitStatusContext | None = None
    description: str | None = None
    state: GitStatusState | None = None
    target_url: str | None = None


class WorkItemComment(AzureDevopsModel):
    id: int | None = None
    text: str | None = None


class AzureDevopsWebhookEvent(AzureDevopsModel):
    """
    Service Hook 的外层结构（最小子集）。

    eventType 例如：git.pullrequest.created / git.pullrequest.updated / workitem.commented
    resource 的结构随 eventType 变化，这里保留原始 dict，由下游按需解析。
    """

    id: str | None = None
    event_type: str
    publisher_id: str | None = None
    resource: dict[str, Any] = {}
