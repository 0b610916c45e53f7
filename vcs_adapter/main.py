"""
FastAPI 服务入口。

这里做三件事：
- 加载配置（严格校验环境变量）
- 组装外部依赖（HTTP Client / Azure DevOps Client）
- 装配路由（health + azuredevops webhook）

注意：
- 业务流程不写在这里（由 orchestration 层通过 `handler` 注入）
- `httpx.AsyncClient` 会被复用（避免每个请求新建连接），超时默认 10 秒

启动：
  uvicorn --factory vcs_adapter.main:build_app
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from vcs_adapter.azuredevops.client import AzureDevopsClient
from vcs_adapter.azuredevops.schemas import AzureDevopsWebhookEvent
from vcs_adapter.azuredevops.webhook import AzureDevopsWebhookHandler
from vcs_adapter.azuredevops.webhook import build_azuredevops_webhook_router
from vcs_adapter.config import AppConfig
from vcs_adapter.config import load_config_from_env
from vcs_adapter.vcs.client import VCSClient

logger = logging.getLogger(__name__)


def build_azuredevops_client(config: AppConfig, http_client: httpx.AsyncClient) -> AzureDevopsClient:
    return AzureDevopsClient(
        hostname=config.azuredevops.hostname,
        token=config.azuredevops.token,
        http_client=http_client,
    )


async def log_event(event: AzureDevopsWebhookEvent) -> None:
    """默认 handler：只记录事件（真正的处理由 orchestration 层注入）。"""
    logger.info(f"Azure DevOps webhook event: type={event.event_type}, id={event.id}")


def build_app(config: AppConfig | None = None, handler: AzureDevopsWebhookHandler | None = None) -> FastAPI:
    """创建并返回 FastAPI app（便于测试/复用）。"""

    # 1) 配置：缺失会直接抛错，启动失败（这是期望行为）
    if config is None:
        config = load_config_from_env(os.environ)

    # 2) 可复用的 HTTP client：固定超时，超时以 TransportError 的形式抛给调用方
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(config.http_timeout_seconds))

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await http_client.aclose()

    app = FastAPI(title="VCS Adapter", version="0.1.0", lifespan=lifespan)
    vcs_client: VCSClient = build_azuredevops_client(config=config, http_client=http_client)
    app.state.vcs_client = vcs_client

    @app.get("/health")
    async def health() -> dict[str, str]:
        """健康检查：用于 k8s / LB 探活。"""
        return {"status": "ok"}

    app.include_router(build_azuredevops_webhook_router(config=config.azuredevops, handler=handler or log_event))
    return app
