"""
Tests for the generation CLI.
"""
import json

import httpx
import pytest

from services.generation import cli
from services.generation.orchestrator import GenerationOrchestrator


@pytest.fixture
def patched_orchestrator(monkeypatch, fast_settings, fake_sleep, make_transport):
    """Route CLI generations through a mock transport."""
    def install(handler):
        transport = make_transport(handler)

        def build(store, settings=None):
            return GenerationOrchestrator(store, settings=fast_settings, transport=transport, sleep=fake_sleep)

        monkeypatch.setattr(cli, "GenerationOrchestrator", build)
        return transport
    return install


@pytest.mark.unit
class TestParser:
    def test_required_arguments(self):
        args = cli.build_parser().parse_args(["make a workflow", "--provider", "groq", "--model", "llama3"])
        assert args.prompt == "make a workflow"
        assert args.provider == "groq"
        assert args.api_key is None
        assert args.log_level == "WARNING"

    def test_unknown_provider_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["p", "--provider", "bard", "--model", "m"])


@pytest.mark.services
class TestRun:
    @pytest.mark.asyncio
    async def test_missing_api_key(self, monkeypatch, capsys):
        monkeypatch.delenv("MISTRAL_API_KEY", raising=False)
        args = cli.build_parser().parse_args(["p", "--provider", "mistral", "--model", "m"])

        assert await cli.run(args) == 1
        assert "MISTRAL_API_KEY" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_writes_output_file(self, monkeypatch, tmp_path, capsys, patched_orchestrator):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        transport = patched_orchestrator(lambda request: httpx.Response(
            200, json={"choices": [{"message": {"content": '{"nodes": []}'}}]}
        ))
        output = tmp_path / "workflow.json"
        args = cli.build_parser().parse_args(
            ["p", "--provider", "openai", "--model", "gpt-4o", "--output", str(output)]
        )

        assert await cli.run(args) == 0
        assert json.loads(output.read_text(encoding="utf-8")) == {"nodes": []}
        assert transport.requests[0].headers["authorization"] == "Bearer sk-test"
        assert "⏳ Generating with OpenAI (GPT)..." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_provider_error_exit_code(self, capsys, patched_orchestrator):
        patched_orchestrator(lambda request: httpx.Response(401, json={"error": {"message": "bad key"}}))
        args = cli.build_parser().parse_args(
            ["p", "--provider", "openai", "--model", "gpt-4o", "--api-key", "sk-bad"]
        )

        assert await cli.run(args) == 1
        assert "Generation failed" in capsys.readouterr().out
