"""
本地 Mock Azure DevOps API server（只覆盖 `AzureDevopsClient` 用到的接口）。

用途：
- 在没有真实 Azure DevOps 的情况下，本地跑通：
  get PR -> get commit changes（分页）-> create status -> complete PR -> work item comment
- 集成测试里通过 `httpx.ASGITransport` 直接挂载

启动：
  python -m vcs_adapter.dev.mock_azuredevops_server
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

import uvicorn
from fastapi import FastAPI
from fastapi import HTTPException
from fastapi import Request

SOURCE_COMMIT_ID = "b60280bc6e62e2f880f1b63c1e24987664d3bda3"


def _default_pull_request() -> dict[str, Any]:
    return {
        "pullRequestId": 1,
        "status": "active",
        "title": "Add staging environment",
        "sourceRefName": "refs/heads/feature/staging",
        "targetRefName": "refs/heads/main",
        "mergeStatus": "succeeded",
        "createdBy": {"id": "d6245f20", "displayName": "Normal Paulk", "uniqueName": "fabrikamfiber16@hotmail.com"},
        "lastMergeSourceCommit": {"commitId": SOURCE_COMMIT_ID},
        "reviewers": [{"id": "d6245f20", "displayName": "Normal Paulk", "vote": 10}],
        "workItemRefs": [{"id": "42", "url": "https://dev.azure.com/fabrikam/_apis/wit/workItems/42"}],
    }


def _default_changes() -> list[dict[str, Any]]:
    return [
        {"changeType": "edit", "item": {"gitObjectType": "blob", "path": "/staging/main.tf"}},
        {"changeType": "add", "item": {"gitObjectType": "blob", "path": "/staging/variables.tf"}},
        {
            "changeType": "rename",
            "item": {"gitObjectType": "blob", "path": "/staging/outputs.tf"},
            "sourceServerItem": "/dev/outputs.tf",
        },
    ]


@dataclass
class MockAzureDevopsState:
    """mock server 的内存状态：返回的数据 + 收到的写请求。"""

    pull_request: dict[str, Any] = field(default_factory=_default_pull_request)
    changes: list[dict[str, Any]] = field(default_factory=_default_changes)
    statuses: list[dict[str, Any]] = field(default_factory=list)
    merges: list[dict[str, Any]] = field(default_factory=list)
    comments: list[dict[str, Any]] = field(default_factory=list)
    # 模拟服务端对 top 的截断；None 表示不截断
    max_page_size: int | None = None


def create_app(state: MockAzureDevopsState | None = None) -> FastAPI:
    mock = state or MockAzureDevopsState()
    app = FastAPI(title="Mock Azure DevOps API", version="0.1.0")

    def _require_api_version(request: Request) -> None:
        if "api-version" not in request.query_params:
            raise HTTPException(status_code=400, detail="api-version is required")

    @app.get("/{org}/{project}/_apis/git/repositories/{repo}/pullrequests/{num}")
    async def get_pull_request(org: str, project: str, repo: str, num: int, request: Request) -> dict[str, Any]:
        _require_api_version(request)
        if num != mock.pull_request.get("pullRequestId"):
            raise HTTPException(status_code=404, detail=f"pull request {num} not found")
        return mock.pull_request

    @app.patch("/{org}/{project}/_apis/git/repositories/{repo}/pullrequests/{num}")
    async def complete_pull_request(org: str, project: str, repo: str, num: int, request: Request) -> dict[str, Any]:
        _require_api_version(request)
        body = await request.json()
        mock.merges.append(body)
        return {**mock.pull_request, **body, "pullRequestId": num}

    @app.get("/{org}/{project}/_apis/git/repositories/{repo}/commits/{commit_id}/changes")
    async def get_changes(
        org: str, project: str, repo: str, commit_id: str, request: Request, top: int = 100, skip: int = 0
    ) -> dict[str, Any]:
        _require_api_version(request)
        if mock.max_page_size is not None:
            top = min(top, mock.max_page_size)
        page = mock.changes[skip : skip + top]
        change_counts = Counter(change["changeType"] for change in mock.changes)
        return {"changeCounts": dict(change_counts), "changes": page}

    @app.post("/{org}/{project}/_apis/git/repositories/{repo}/commits/{commit_id}/statuses")
    async def create_status(org: str, project: str, repo: str, commit_id: str, request: Request) -> dict[str, Any]:
        _require_api_version(request)
        body = await request.json()
        mock.statuses.append({"commitId": commit_id, **body})
        return body

    @app.post("/{org}/{project}/_apis/wit/workItems/{work_item_id}/comments")
    async def create_work_item_comment(
        org: str, project: str, work_item_id: int, request: Request
    ) -> dict[str, Any]:
        _require_api_version(request)
        body = await request.json()
        comment = {"id": len(mock.comments) + 1, "workItemId": work_item_id, "text": body.get("text")}
        mock.comments.append(comment)
        return {"id": comment["id"], "text": comment["text"]}

    @app.get("/__debug__/requests")
    async def debug_requests() -> dict[str, object]:
        return {"statuses": mock.statuses, "merges": mock.merges, "comments": mock.comments}

    return app


app = create_app()


def main() -> None:
    uvicorn.run(app, host="127.0.0.1", port=9003)


if __name__ == "__main__":
    main()
