"""
VCS 领域模型（Pydantic）。

用途：
- 与具体代码托管平台无关的 Repo / PullRequest / CommitStatus
- 每次调用由调用方构造并传入，本层不持久化、不缓存
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class VCSHostType(str, Enum):
    """支持的代码托管平台类型。"""

    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET_CLOUD = "bitbucket_cloud"
    BITBUCKET_SERVER = "bitbucket_server"
    AZURE_DEVOPS = "azure_devops"


class VCSHost(BaseModel):
    model_config = ConfigDict(frozen=True)

    hostname: str
    type: VCSHostType


class Repo(BaseModel):
    """
    仓库标识（构造后不可变）。

    full_name 的段数取决于平台：
    - GitHub / GitLab: `owner/repo`（GitLab 的 owner 可能包含多级 group）
    - Azure DevOps: `organization/project/repo`
    """

    model_config = ConfigDict(frozen=True)

    full_name: str
    owner: str
    name: str
    clone_url: str = ""
    vcs_host: VCSHost | None = None


class PullRequestState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class PullRequest(BaseModel):
    """一次调用所需的 PR 信息（由 orchestration 层提供）。"""

    model_config = ConfigDict(frozen=True)

    num: int
    head_commit: str = ""
    url: str = ""
    head_branch: str = ""
    base_branch: str = ""
    author: str = ""
    state: PullRequestState = PullRequestState.OPEN
    base_repo: Repo | None = None


class CommitStatus(Enum):
    """调用方视角的 commit 状态；各平台在自己的 adapter 里映射成原生字符串。"""

    PENDING = 0
    SUCCESS = 1
    FAILED = 2
