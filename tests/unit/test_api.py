"""Tests for ohmyfix.api -- HTTP routes via FastAPI's TestClient."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from ohmyfix import __version__
from ohmyfix.core.llm.config import ModelConfig
from ohmyfix.core.llm.providers import ProviderError

REPLY = (
    "Error: let a = 1\n"
    "Missing semicolon.\n"
    "Solution: ```javascript\nlet a = 1;\n```\n"
    "Error: console.log(b)\n"
    "Solution: ```javascript\nconsole.log(a);\n```"
)
CODE = "let a = 1\nconsole.log(b)\n"


@pytest.fixture
def fix_log(monkeypatch):
    import ohmyfix.api._shared as shared

    log = MagicMock()
    monkeypatch.setattr(shared, "_fix_log", log)
    return log


@pytest.fixture
def client(fix_log):
    from ohmyfix.api.server import create_app

    return TestClient(create_app())


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy", "version": __version__}

    def test_requests_are_logged(self, client, fix_log):
        client.post("/api/review/parse", json={"response": "No errors found"})
        fix_log.http_request.assert_called_once()
        assert fix_log.http_request.call_args.kwargs["path"] == "/api/review/parse"


class TestParse:
    def test_findings(self, client):
        data = client.post("/api/review/parse", json={"response": REPLY}).json()
        assert data["no_errors"] is False
        assert [f["erroneous_line"] for f in data["findings"]] == ["let a = 1", "console.log(b)"]
        assert data["findings"][0]["description"] == "Missing semicolon."

    def test_sentinel(self, client):
        data = client.post("/api/review/parse", json={"response": "No errors found"}).json()
        assert data["no_errors"] is True
        assert data["findings"] == []

    def test_missing_field(self, client):
        assert client.post("/api/review/parse", json={}).status_code == 422


class TestApply:
    def test_accept_all(self, client):
        data = client.post("/api/review/apply", json={"code": CODE, "response": REPLY}).json()
        assert data["code"] == "let a = 1;\nconsole.log(a);\n"
        assert data["outcome"]["applied"] == 2

    def test_accept_subset(self, client):
        data = client.post(
            "/api/review/apply", json={"code": CODE, "response": REPLY, "accept": [1]}
        ).json()
        assert data["code"] == "let a = 1\nconsole.log(a);\n"
        assert data["summary"] == "2 found, 1 applied, 1 skipped, 0 unmatched"
        assert [f["status"] for f in data["outcome"]["findings"]] == ["skipped", "applied"]

    def test_accept_none(self, client):
        data = client.post(
            "/api/review/apply", json={"code": CODE, "response": REPLY, "accept": []}
        ).json()
        assert data["code"] == CODE


class TestSnippet:
    def test_reviews_with_model(self, client):
        with patch("ohmyfix.core.llm.config.load_model_config", return_value=ModelConfig()), \
             patch("ohmyfix.core.reviewer.Reviewer.request_review", new=AsyncMock(return_value=REPLY)):
            data = client.post("/api/review/snippet", json={"code": CODE}).json()
        assert data["code"] == "let a = 1;\nconsole.log(a);\n"

    def test_provider_failure_is_502(self, client):
        with patch("ohmyfix.core.llm.config.load_model_config", return_value=ModelConfig()), \
             patch("ohmyfix.core.reviewer.Reviewer.request_review",
                   new=AsyncMock(side_effect=ProviderError("no key"))):
            resp = client.post("/api/review/snippet", json={"code": CODE})
        assert resp.status_code == 502
        assert resp.json()["detail"] == "no key"


class TestSettings:
    @pytest.fixture
    def settings_file(self, tmp_path):
        settings_file = tmp_path / "settings.json"
        with patch("ohmyfix.cli.settings_manager.SETTINGS_DIR", tmp_path), \
             patch("ohmyfix.cli.settings_manager.SETTINGS_FILE", settings_file):
            yield settings_file

    def test_get_defaults(self, client, settings_file):
        data = client.get("/api/settings").json()
        assert data["api_port"] == 8765
        assert data["extensions"] == ".js"

    def test_update(self, client, settings_file, fix_log):
        resp = client.post("/api/settings", json={"auto_accept": True, "extensions": ".js,.ts"})
        assert resp.json() == {"status": "success", "updated": ["auto_accept", "extensions"]}
        saved = json.loads(settings_file.read_text())
        assert saved["auto_accept"] is True
        assert saved["extensions"] == ".js,.ts"
        fix_log.settings_change.assert_called_once()

    def test_update_out_of_range(self, client, settings_file):
        resp = client.post("/api/settings", json={"api_port": 80})
        assert resp.status_code == 422
        assert not settings_file.exists()
