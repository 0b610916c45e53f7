"""
VCS Client 统一接口。

- `VCSClient` Protocol：orchestration 层只依赖这个接口
- 每个平台一个实现（当前：`vcs_adapter.azuredevops.client.AzureDevopsClient`）
- 实现类只持有不可变的连接配置，可被多个调用方并发使用
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from vcs_adapter.models import CommitStatus
from vcs_adapter.models import PullRequest
from vcs_adapter.models import Repo


@runtime_checkable
class VCSClient(Protocol):
    """PR 自动化所需的最小平台能力集合。"""

    async def get_modified_files(self, repo: Repo, pull: PullRequest) -> list[str]: ...

    async def pull_is_approved(self, repo: Repo, pull: PullRequest) -> bool: ...

    async def pull_is_mergeable(self, repo: Repo, pull: PullRequest) -> bool: ...

    async def update_status(
        self,
        repo: Repo,
        pull: PullRequest,
        state: CommitStatus,
        src: str,
        description: str,
        url: str,
    ) -> None: ...

    async def merge_pull(self, pull: PullRequest) -> None: ...

    async def create_comment(self, repo: Repo, pull_num: int, comment: str) -> None: ...

    async def get_pull_request(self, repo: Repo, num: int) -> PullRequest: ...
