"""
应用配置加载。

设计目标：
- **严格**：缺少必要环境变量就直接报错（避免“看起来跑了其实没配置好”）
- **类型安全**：使用 Pydantic 校验，减少运行时踩坑
- **可测试**：核心加载函数接收 `environ` 显式输入，便于单元测试
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, Field

DEFAULT_AZUREDEVOPS_HOSTNAME = "dev.azure.com"
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0


class AzureDevopsConfig(BaseModel):
    """
    Azure DevOps 连接配置。

    - webhook_user / webhook_password：Service Hook 里配置的 Basic 鉴权；都为空表示不校验
    """

    hostname: str = DEFAULT_AZUREDEVOPS_HOSTNAME
    token: str = Field(min_length=1)
    webhook_user: str = ""
    webhook_password: str = ""


class AppConfig(BaseModel):
    azuredevops: AzureDevopsConfig
    http_timeout_seconds: float = Field(default=DEFAULT_HTTP_TIMEOUT_SECONDS, gt=0)


def load_config_from_env(environ: Mapping[str, str]) -> AppConfig:
    """
    从环境变量加载并校验配置。

    - **输入**：`environ`（例如 `os.environ`）
    - **输出**：`AppConfig`
    - **失败**：缺失/为空、或 webhook 账号密码只配了一半，抛 `ValueError`
    """
    required_keys: tuple[str, ...] = ("AZUREDEVOPS_TOKEN",)
    missing: list[str] = [key for key in required_keys if not environ.get(key)]
    if missing:
        raise ValueError(f"Missing required env vars: {', '.join(missing)}")

    webhook_user = environ.get("AZUREDEVOPS_WEBHOOK_USER", "")
    webhook_password = environ.get("AZUREDEVOPS_WEBHOOK_PASSWORD", "")
    if bool(webhook_user) != bool(webhook_password):
        raise ValueError(
            "AZUREDEVOPS_WEBHOOK_USER and AZUREDEVOPS_WEBHOOK_PASSWORD must be set together"
        )

    return AppConfig(
        azuredevops=AzureDevopsConfig(
            hostname=environ.get("AZUREDEVOPS_HOSTNAME") or DEFAULT_AZUREDEVOPS_HOSTNAME,
            token=environ["AZUREDEVOPS_TOKEN"],
            webhook_user=webhook_user,
            webhook_password=webhook_password,
        ),
        http_timeout_seconds=environ.get("VCS_HTTP_TIMEOUT_SECONDS") or DEFAULT_HTTP_TIMEOUT_SECONDS,
    )
