from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from vcs_adapter.azuredevops.client import AzureDevopsClient
from vcs_adapter.config import AppConfig
from vcs_adapter.config import AzureDevopsConfig
from vcs_adapter.main import build_app
from vcs_adapter.vcs.client import VCSClient


def test_build_app_health_and_webhook() -> None:
    config = AppConfig(azuredevops=AzureDevopsConfig(token="t"))
    app = build_app(config=config)
    assert isinstance(app.state.vcs_client, AzureDevopsClient)
    assert isinstance(app.state.vcs_client, VCSClient)

    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "ok"}
        response = client.post("/azuredevops/webhook", json={"eventType": "git.pullrequest.updated"})
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


def test_build_app_requires_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AZUREDEVOPS_TOKEN", raising=False)
    with pytest.raises(ValueError):
        build_app()
