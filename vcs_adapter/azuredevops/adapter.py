"""
Azure DevOps <-> VCS domain adapter。

职责：
- 集中维护“平台词汇 <-> 统一模型”的映射表（状态、投票、merge status）
- 只做数据归一化，不发 HTTP 请求
"""

from __future__ import annotations

from vcs_adapter.azuredevops.schemas import GitChange
from vcs_adapter.azuredevops.schemas import GitPullRequest
from vcs_adapter.azuredevops.schemas import GitStatusState
from vcs_adapter.azuredevops.schemas import PullRequestMergeStatus
from vcs_adapter.azuredevops.schemas import PullRequestVote
from vcs_adapter.azuredevops.schemas import VersionControlChangeType
from vcs_adapter.models import CommitStatus
from vcs_adapter.models import PullRequest
from vcs_adapter.models import PullRequestState
from vcs_adapter.models import Repo

COMMIT_STATUS_TO_GIT_STATUS_STATE: dict[CommitStatus, GitStatusState] = {
    CommitStatus.PENDING: GitStatusState.PENDING,
    CommitStatus.SUCCESS: GitStatusState.SUCCEEDED,
    CommitStatus.FAILED: GitStatusState.FAILED,
}

# denylist：queued / notSet / failure 等过渡状态不阻塞自动化
UNMERGEABLE_STATUSES: frozenset[str] = frozenset(
    {PullRequestMergeStatus.CONFLICTS.value, PullRequestMergeStatus.REJECTED_BY_POLICY.value}
)


def to_git_status_state(state: CommitStatus) -> GitStatusState:
    """映射不到的值一律落到 `error`，绝不默认为 succeeded。"""
    return COMMIT_STATUS_TO_GIT_STATUS_STATE.get(state, GitStatusState.ERROR)


def is_approved(pull: GitPullRequest) -> bool:
    """所有非空 reviewer 的 vote 都必须恰好是 APPROVED；没有 reviewer 视为通过。"""
    for reviewer in pull.reviewers or []:
        if reviewer is None:
            continue
        if reviewer.vote != PullRequestVote.APPROVED:
            return False
    return True


def is_mergeable(merge_status: str | None) -> bool:
    return merge_status not in UNMERGEABLE_STATUSES


def is_rename(change: GitChange) -> bool:
    flags = [flag.strip() for flag in (change.change_type or "").split(",")]
    return VersionControlChangeType.RENAME.value in flags


def modified_paths_from_changes(changes: list[GitChange]) -> list[str]:
    """
    把 commit changes 转为文件路径列表（保持平台返回顺序，不去重）。

    rename 的文件额外带上原路径：文件从某个目录移走时，那个目录也需要重新 plan。
    """
    files: list[str] = []
    for change in changes:
        if change.item is not None and change.item.path:
            files.append(change.item.path)
        if is_rename(change) and change.source_server_item:
            files.append(change.source_server_item)
    return files


def _strip_ref(ref_name: str | None) -> str:
    return (ref_name or "").removeprefix("refs/heads/")


def build_pull_request_from_azuredevops(repo: Repo, pull: GitPullRequest) -> PullRequest:
    """GitPullRequest -> 平台无关的 `PullRequest`。"""
    if pull.pull_request_id is None:
        raise ValueError("Azure DevOps pull request is missing pullRequestId")
    head_commit = pull.last_merge_source_commit.commit_id if pull.last_merge_source_commit else None
    author = pull.created_by.unique_name if pull.created_by else None
    return PullRequest(
        num=pull.pull_request_id,
        head_commit=head_commit or "",
        url=pull.url or "",
        head_branch=_strip_ref(pull.source_ref_name),
        base_branch=_strip_ref(pull.target_ref_name),
        author=author or "",
        state=PullRequestState.OPEN if pull.status == "active" else PullRequestState.CLOSED,
        base_repo=repo,
    )
