"""
Tests for the research CLI
"""
import pytest

import cli_research
from web_research.core.memory import ResearchResult
from web_research.core.models import Finding
from web_research.core.orchestrator import ResearchConfigurationError


class TestParseArgs:
    def test_defaults(self):
        args = cli_research.parse_args(["best JS bundlers"])
        assert args.task == "best JS bundlers"
        assert args.max_steps is None
        assert args.mode is None
        assert args.provider is None

    def test_options(self):
        args = cli_research.parse_args([
            "bundlers", "--max-steps", "12", "--max-findings", "4", "--mode", "thorough",
            "--start-url", "https://bundlers.tooling.report", "--provider", "ollama", "--model", "llama3",
        ])
        assert (args.max_steps, args.max_findings, args.mode) == (12, 4, "thorough")
        assert args.start_url == "https://bundlers.tooling.report"
        assert (args.provider, args.model) == ("ollama", "llama3")

    def test_unknown_mode_rejected(self):
        with pytest.raises(SystemExit):
            cli_research.parse_args(["bundlers", "--mode", "turbo"])


class TestFormatResult:
    def test_success(self):
        result = ResearchResult(
            success=True,
            result="Vite wins",
            findings=[Finding(title="Vite", url="https://vitejs.dev", summary="Fast dev server")],
            steps_taken=7,
            replans_used=1,
        )
        text = cli_research.format_result(result)
        assert "Research finished in 7 steps" in text
        assert "Replans: 1" in text
        assert "1. Vite" in text
        assert "https://vitejs.dev" in text
        assert "Fast dev server" in text
        assert "Vite wins" in text

    def test_failure(self):
        text = cli_research.format_result(ResearchResult(success=False, error="Max steps reached", steps_taken=35))
        assert "stopped after 35 steps: Max steps reached" in text
        assert "(none)" in text


class TestMain:
    """Exit codes of the CLI entry point."""

    @pytest.fixture(autouse=True)
    def quiet(self, monkeypatch):
        monkeypatch.setattr(cli_research, "configure_from_config", lambda: None)
        monkeypatch.setattr(cli_research, "create_provider", lambda provider, model: object())

    @pytest.mark.asyncio
    async def test_success(self, monkeypatch, capsys):
        calls = []

        async def fake_run(task, model, **kwargs):
            calls.append((task, kwargs))
            return ResearchResult(success=True, result="done", steps_taken=3)

        monkeypatch.setattr(cli_research, "run_web_research", fake_run)

        code = await cli_research.main(["bundlers", "--max-steps", "5"])

        assert code == 0
        assert calls[0][0] == "bundlers"
        assert calls[0][1]["max_steps"] == 5
        assert "Research finished in 3 steps" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_failed_run(self, monkeypatch):
        async def fake_run(task, model, **kwargs):
            return ResearchResult(success=False, error="Max steps reached")

        monkeypatch.setattr(cli_research, "run_web_research", fake_run)
        assert await cli_research.main(["bundlers"]) == 1

    @pytest.mark.asyncio
    async def test_configuration_error(self, monkeypatch, capsys):
        async def fake_run(task, model, **kwargs):
            raise ResearchConfigurationError("A language model is required for web research")

        monkeypatch.setattr(cli_research, "run_web_research", fake_run)

        assert await cli_research.main(["bundlers"]) == 2
        assert "Configuration error" in capsys.readouterr().out
