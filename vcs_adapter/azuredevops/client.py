"""
Azure DevOps API 客户端（外部系统连接器）。

约定：
- 这里只做“HTTP 调用 + 错误处理 + schema 校验”，平台词汇的映射在 `adapter.py`
- 发生错误时**直接抛错**，不要吞异常；本层不做重试（由 orchestration 层决定）
- 每个请求都带 `api-version`；请求体里未设置的字段不出现
- 实例只持有不可变配置，可被多个协程并发复用
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
import markdown
from pydantic import BaseModel
from pydantic import ValidationError

from vcs_adapter.azuredevops.adapter import build_pull_request_from_azuredevops
from vcs_adapter.azuredevops.adapter import is_approved
from vcs_adapter.azuredevops.adapter import is_mergeable
from vcs_adapter.azuredevops.adapter import modified_paths_from_changes
from vcs_adapter.azuredevops.adapter import to_git_status_state
from vcs_adapter.azuredevops.schemas import API_VERSION
from vcs_adapter.azuredevops.schemas import GitChange
from vcs_adapter.azuredevops.schemas import GitCommitChanges
from vcs_adapter.azuredevops.schemas import GitCommitRef
from vcs_adapter.azuredevops.schemas import GitPullRequest
from vcs_adapter.azuredevops.schemas import GitPullRequestCompletionOptions
from vcs_adapter.azuredevops.schemas import GitPullRequestMergeStrategy
from vcs_adapter.azuredevops.schemas import GitStatus
from vcs_adapter.azuredevops.schemas import GitStatusContext
from vcs_adapter.azuredevops.schemas import IdentityRef
from vcs_adapter.azuredevops.schemas import PullRequestMergeStatus
from vcs_adapter.azuredevops.schemas import WorkItemComment
from vcs_adapter.config import DEFAULT_AZUREDEVOPS_HOSTNAME
from vcs_adapter.errors import AmbiguousWorkItemError
from vcs_adapter.errors import MergeRejectedError
from vcs_adapter.errors import MissingSourceCommitError
from vcs_adapter.errors import TransportError
from vcs_adapter.models import CommitStatus
from vcs_adapter.models import PullRequest
from vcs_adapter.models import Repo
from vcs_adapter.vcs.comment import split_comment
from vcs_adapter.vcs.repo_name import require_repo_full_name

logger = logging.getLogger(__name__)

STATUS_GENRE = "Atlantis Bot"
AUTOMERGE_COMMIT_MSG = "[Atlantis] Automatically merging after successful apply"

# 与 GitHub 保持一致；Azure DevOps 没有公开 work item 评论的长度上限
MAX_COMMENT_LENGTH = 65536

COMMENT_SEP_END = (
    "\n```\n</details>"
    "\n<br>\n\n**Warning**: Output length greater than max comment size. Continued in next comment."
)
COMMENT_SEP_START = "Continued from previous comment.\n<details><summary>Show Output</summary>\n\n```diff\n"

AUTOMATION_IDENTITY = IdentityRef(
    descriptor="Atlantis Terraform Pull Request Automation",
    id="atlantis",
    image_url="https://github.com/runatlantis/atlantis/raw/master/runatlantis.io/.vuepress/public/hero.png",
)

DEFAULT_CHANGES_PAGE_SIZE = 100

ModelT = TypeVar("ModelT", bound=BaseModel)


def markdown_to_html(text: str) -> str:
    """work item 评论不支持 markdown，只支持 HTML。"""
    return markdown.markdown(text, extensions=["fenced_code", "tables"])


class AzureDevopsClient:
    """Azure DevOps 的 `VCSClient` 实现。"""

    def __init__(
        self,
        hostname: str,
        token: str,
        http_client: httpx.AsyncClient,
        changes_page_size: int = DEFAULT_CHANGES_PAGE_SIZE,
    ) -> None:
        """
        - hostname: `dev.azure.com` 或自建 Azure DevOps Server 的域名
        - token: Personal Access Token（Basic 鉴权，用户名为空）
        - http_client: 复用的 httpx.AsyncClient（超时在创建时设置）
        - changes_page_size: 拉取 commit changes 时每页条数
        """
        if hostname == DEFAULT_AZUREDEVOPS_HOSTNAME:
            self._base_url = f"https://{DEFAULT_AZUREDEVOPS_HOSTNAME}"
        else:
            self._base_url = f"https://{hostname.rstrip('/')}"
        self._auth = httpx.BasicAuth(username="", password=token.strip())
        self._http_client = http_client
        self._changes_page_size = changes_page_size

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self._base_url}/{path}"
        query: dict[str, Any] = {"api-version": API_VERSION}
        if params:
            query.update(params)
        logger.info(f"Azure DevOps request: {method} {url}")
        try:
            response = await self._http_client.request(method, url, params=query, json=json, auth=self._auth)
        except httpx.HTTPError as exc:
            logger.error(f"Azure DevOps HTTP error: {method} {url}: {exc!r}")
            raise TransportError(f"Azure DevOps request failed: {method} {url}: {exc!r}") from exc
        if response.status_code >= 400:
            logger.error(f"Azure DevOps API error {response.status_code}: {method} {url}")
            raise TransportError(
                f"Azure DevOps API error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.error(f"Azure DevOps returned non-JSON response {response.status_code}: {method} {url}")
            raise TransportError(
                f"Azure DevOps API returned invalid response {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _parse(model: type[ModelT], data: Any) -> ModelT:
        """响应体不符合 schema 时同样按 TransportError 抛出。"""
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise TransportError(f"Azure DevOps API returned invalid {model.__name__}: {exc}") from exc

    async def _get_pull(self, owner: str, project: str, repo_name: str, num: int) -> GitPullRequest:
        data = await self._request(
            "GET",
            f"{owner}/{project}/_apis/git/repositories/{repo_name}/pullrequests/{num}",
            params={"includeWorkItemRefs": "true"},
        )
        return self._parse(GitPullRequest, data)

    async def _get_commit_changes(self, owner: str, project: str, repo_name: str, commit_id: str) -> list[GitChange]:
        """
        拉取 commit 的全部 changes（top/skip 分页）。

        服务端可能把 `top` 截到比请求更小的值，所以短页不一定是最后一页：
        `changeCounts` 的合计大于已拿到的条数时继续翻页；空页一定结束。
        """
        all_changes: list[GitChange] = []
        skip = 0
        while True:
            data = await self._request(
                "GET",
                f"{owner}/{project}/_apis/git/repositories/{repo_name}/commits/{commit_id}/changes",
                params={"top": self._changes_page_size, "skip": skip},
            )
            result = self._parse(GitCommitChanges, data)
            page = result.changes or []
            if not page:
                break
            all_changes.extend(page)
            total = sum(result.change_counts.values()) if result.change_counts else 0
            if len(page) < self._changes_page_size and total <= len(all_changes):
                break
            skip += len(page)
        return all_changes

    async def get_modified_files(self, repo: Repo, pull: PullRequest) -> list[str]:
        """
        返回 PR 最新 source commit 修改的文件（相对仓库根目录）。

        rename 的文件会额外返回原路径。
        """
        owner, project, repo_name = require_repo_full_name(repo.full_name)
        ad_pull = await self._get_pull(owner, project, repo_name, pull.num)
        commit_id = ad_pull.last_merge_source_commit.commit_id if ad_pull.last_merge_source_commit else None
        if not commit_id:
            raise MissingSourceCommitError(pull.num)
        changes = await self._get_commit_changes(owner, project, repo_name, commit_id)
        return modified_paths_from_changes(changes)

    async def create_comment(self, repo: Repo, pull_num: int, comment: str) -> None:
        """
        在 PR 关联的 work item 上发评论。

        PR 上的评论没有 webhook 事件，只有 work item 上的评论有，所以评论发到 work item：
        - 关联多个 work item：抛 `AmbiguousWorkItemError`，一条都不发
        - 没有关联 work item：跳过
        - 超长评论拆成多条，逐条转成 HTML 后按顺序提交；遇到第一个失败即停止（已提交的不回滚）
        """
        owner, project, repo_name = require_repo_full_name(repo.full_name)
        ad_pull = await self._get_pull(owner, project, repo_name, pull_num)
        work_item_refs = ad_pull.work_item_refs or []
        if len(work_item_refs) > 1:
            raise AmbiguousWorkItemError(pull_num, [ref.id or "" for ref in work_item_refs])
        if not work_item_refs:
            logger.warning(f"Pull request {pull_num} in {repo.full_name} has no linked work item, comment skipped")
            return

        work_item_id = int(work_item_refs[0].id or "")
        segments = split_comment(comment, MAX_COMMENT_LENGTH, COMMENT_SEP_END, COMMENT_SEP_START)
        for segment in segments:
            payload = WorkItemComment(text=markdown_to_html(segment.text)).to_payload()
            await self._request("POST", f"{owner}/{project}/_apis/wit/workItems/{work_item_id}/comments", json=payload)
        logger.info(f"Posted {len(segments)} comment(s) to work item {work_item_id}")

    async def pull_is_approved(self, repo: Repo, pull: PullRequest) -> bool:
        owner, project, repo_name = require_repo_full_name(repo.full_name)
        try:
            ad_pull = await self._get_pull(owner, project, repo_name, pull.num)
        except TransportError as exc:
            raise TransportError(f"getting pull request: {exc}", status_code=exc.status_code) from exc
        return is_approved(ad_pull)

    async def pull_is_mergeable(self, repo: Repo, pull: PullRequest) -> bool:
        owner, project, repo_name = require_repo_full_name(repo.full_name)
        try:
            ad_pull = await self._get_pull(owner, project, repo_name, pull.num)
        except TransportError as exc:
            raise TransportError(f"getting pull request: {exc}", status_code=exc.status_code) from exc
        return is_mergeable(ad_pull.merge_status)

    async def get_azuredevops_pull_request(self, repo: Repo, num: int) -> GitPullRequest:
        """返回 Azure DevOps 原始的 PR 对象（含 reviewers / workItemRefs 等平台字段）。"""
        owner, project, repo_name = require_repo_full_name(repo.full_name)
        return await self._get_pull(owner, project, repo_name, num)

    async def get_pull_request(self, repo: Repo, num: int) -> PullRequest:
        ad_pull = await self.get_azuredevops_pull_request(repo, num)
        try:
            return build_pull_request_from_azuredevops(repo, ad_pull)
        except ValueError as exc:
            raise TransportError(f"getting pull request: {exc}") from exc

    async def update_status(
        self,
        repo: Repo,
        pull: PullRequest,
        state: CommitStatus,
        src: str,
        description: str,
        url: str,
    ) -> None:
        """在 PR head commit 上创建一条 status；url 为空时不发送 targetUrl。"""
        status = GitStatus(
            context=GitStatusContext(genre=STATUS_GENRE, name=src),
            description=description,
            state=to_git_status_state(state),
            target_url=url or None,
        )
        owner, project, repo_name = require_repo_full_name(repo.full_name)
        await self._request(
            "POST",
            f"{owner}/{project}/_apis/git/repositories/{repo_name}/commits/{pull.head_commit}/statuses",
            json=status.to_payload(),
        )

    async def merge_pull(self, pull: PullRequest) -> None:
        """
        以 noFastForward 策略完成（合并）PR，并流转关联的 work item。

        如果分支策略不允许 noFastForward，合并会失败（暂未处理 branch policy）。
        """
        if pull.base_repo is None:
            raise ValueError(f"pull request {pull.num} has no base repo")
        completion_options = GitPullRequestCompletionOptions(
            bypass_policy=False,
            bypass_reason="",
            delete_source_branch=False,
            merge_commit_message=AUTOMERGE_COMMIT_MSG,
            merge_strategy=GitPullRequestMergeStrategy.NO_FAST_FORWARD,
            squash_merge=False,
            transition_work_items=True,
            triggered_by_auto_complete=False,
        )
        merge_request = GitPullRequest(
            status="completed",
            last_merge_source_commit=GitCommitRef(commit_id=pull.head_commit) if pull.head_commit else None,
            auto_complete_set_by=AUTOMATION_IDENTITY,
            completion_options=completion_options,
        )
        owner, project, repo_name = require_repo_full_name(pull.base_repo.full_name)
        try:
            data = await self._request(
                "PATCH",
                f"{owner}/{project}/_apis/git/repositories/{repo_name}/pullrequests/{pull.num}",
                json=merge_request.to_payload(),
            )
        except TransportError as exc:
            raise TransportError(f"merging pull request: {exc}", status_code=exc.status_code) from exc

        result = self._parse(GitPullRequest, data)
        if result.merge_status != PullRequestMergeStatus.SUCCEEDED.value:
            raise MergeRejectedError(result.merge_failure_message or "")
        logger.info(f"Merged pull request {pull.num} in {pull.base_repo.full_name}")
