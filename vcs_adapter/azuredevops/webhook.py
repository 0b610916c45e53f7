"""
Azure DevOps Webhook（Service Hook）接入层。

职责：
- `AzureDevopsRequestValidator`：校验 Basic 鉴权 + Content-Type，返回原始 payload bytes
- `build_azuredevops_webhook_router`：把校验失败映射成 4xx，解析 payload，过滤事件，调用业务 handler

Azure DevOps 的 Service Hook 不支持签名，只能配置 Basic 鉴权的用户名/密码。
"""

from __future__ import annotations

import base64
import binascii
import hmac
from collections.abc import Awaitable, Callable

from fastapi import APIRouter
from fastapi import HTTPException
from fastapi import Request
from fastapi.security.utils import get_authorization_scheme_param
from pydantic import ValidationError

from vcs_adapter.azuredevops.schemas import AzureDevopsWebhookEvent
from vcs_adapter.config import AzureDevopsConfig
from vcs_adapter.errors import AuthenticationError
from vcs_adapter.errors import UnsupportedContentTypeError

AzureDevopsWebhookHandler = Callable[[AzureDevopsWebhookEvent], Awaitable[None]]

HANDLED_EVENT_TYPES: frozenset[str] = frozenset(
    {
        "git.pullrequest.created",
        "git.pullrequest.updated",
        "git.pullrequest.merged",
        "workitem.commented",
    }
)


class AzureDevopsRequestValidator:
    """校验单个 webhook 请求。"""

    async def validate(self, request: Request, user: bytes | None, password: bytes | None) -> bytes:
        """
        - user/password 都为空：不校验鉴权
        - 鉴权失败：抛 `AuthenticationError`，不读取 body
        - Content-Type 不是 application/json：抛 `UnsupportedContentTypeError`
        - 成功：返回原始 body（不做解码/trim）
        """
        if user or password:
            await self._check_basic_auth(request, user or b"", password or b"")

        content_type = request.headers.get("Content-Type", "")
        if content_type.split(";", 1)[0].strip().lower() != "application/json":
            raise UnsupportedContentTypeError(content_type)
        return await request.body()

    async def _check_basic_auth(self, request: Request, user: bytes, password: bytes) -> None:
        """凭据按原始字节比较（不做 ASCII/UTF-8 解码），非 ASCII 的用户名/密码也能通过。"""
        scheme, param = get_authorization_scheme_param(request.headers.get("Authorization"))
        if scheme.lower() != "basic" or not param:
            raise AuthenticationError()
        try:
            decoded = base64.b64decode(param, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise AuthenticationError() from exc
        got_user, separator, got_password = decoded.partition(b":")
        if not separator:
            raise AuthenticationError()
        user_ok = hmac.compare_digest(got_user, user)
        password_ok = hmac.compare_digest(got_password, password)
        if not (user_ok and password_ok):
            raise AuthenticationError()


def build_azuredevops_webhook_router(
    config: AzureDevopsConfig,
    handler: AzureDevopsWebhookHandler,
    validator: AzureDevopsRequestValidator | None = None,
) -> APIRouter:
    """创建 Azure DevOps webhook 路由。"""
    router = APIRouter()
    request_validator = validator or AzureDevopsRequestValidator()
    user = config.webhook_user.encode("utf-8")
    password = config.webhook_password.encode("utf-8")

    @router.post("/azuredevops/webhook")
    async def azuredevops_webhook(request: Request) -> dict[str, str]:
        # 1) 鉴权 + Content-Type
        try:
            body = await request_validator.validate(request, user, password)
        except AuthenticationError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        except UnsupportedContentTypeError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        # 2) 解析 payload（出错直接 4xx，便于发现问题）
        try:
            event = AzureDevopsWebhookEvent.model_validate_json(body)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail="Invalid webhook payload") from exc
        if event.event_type not in HANDLED_EVENT_TYPES:
            return {"status": "ignored"}

        # 3) 交给业务 handler
        await handler(event)
        return {"status": "ok"}

    return router
