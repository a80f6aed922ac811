"""Test CLI commands."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from llm_factory.cli import cli
from llm_factory.exceptions import AllCandidatesExhaustedError
from llm_factory.schemas import GenerationResult, UsageMetadata
from llm_factory.streaming import StreamWithMetadata

METADATA = UsageMetadata(model="gpt-4o", input_tokens=1000, output_tokens=2000, cost=0.0225)


async def aiter_items(items):
    for item in items:
        yield item


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def factory():
    with patch("llm_factory.cli.LLMFactory") as factory_cls:
        instance = MagicMock()
        factory_cls.return_value = instance
        yield instance


class TestCLICommands:
    """Test CLI commands"""

    def test_version_command(self, runner):
        """Test version command."""
        with patch("llm_factory.cli.get_version", return_value="1.0.0"):
            result = runner.invoke(cli, ["version"])

            assert result.exit_code == 0
            assert "1.0.0" in result.output

    def test_version_json_format(self, runner):
        """Test version command with JSON format."""
        with patch("llm_factory.cli.get_version", return_value="1.0.0"):
            result = runner.invoke(cli, ["version", "--format", "json"])

            assert result.exit_code == 0
            output = json.loads(result.output)
            assert output["version"] == "1.0.0"

    def test_help_command(self, runner):
        """Test help command."""
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "Usage:" in result.output

    def test_cost_command(self, runner):
        result = runner.invoke(cli, ["cost", "gpt-4o", "1000", "2000"])

        assert result.exit_code == 0
        assert result.output.strip() == "$0.022500"

    def test_cost_unknown_model(self, runner):
        result = runner.invoke(cli, ["cost", "not-a-model", "1", "1"])

        assert result.exit_code == 1
        assert "No pricing information available for model: not-a-model" in result.output

    def test_cost_rejects_negative_tokens(self, runner):
        result = runner.invoke(cli, ["cost", "gpt-4o", "-5", "1"])

        assert result.exit_code == 2

    def test_models_json(self, runner, factory):
        factory.supported_models.return_value = ["gpt-4o", "claude-3-5-haiku-latest"]
        factory.router.provider_name_for.side_effect = lambda m: "openai" if m == "gpt-4o" else "anthropic"
        factory.router.is_available.side_effect = lambda m: m == "gpt-4o"

        result = runner.invoke(cli, ["models", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {"model": "gpt-4o", "provider": "openai", "available": True},
            {"model": "claude-3-5-haiku-latest", "provider": "anthropic", "available": False},
        ]

    def test_generate_command(self, runner, factory):
        factory.generate = AsyncMock(return_value=GenerationResult(text="Hello", metadata=METADATA))

        result = runner.invoke(
            cli, ["generate", "hi", "-m", "gpt-4.1-nano", "-m", "gpt-4o", "--retries", "2"]
        )

        assert result.exit_code == 0
        assert "Hello" in result.output
        assert "[gpt-4o] input=1000 output=2000 cost=$0.022500" in result.output
        factory.generate.assert_awaited_once_with(
            model=["gpt-4.1-nano", "gpt-4o"],
            prompt="hi",
            temperature=None,
            max_tokens=None,
            retries=2,
        )

    def test_generate_stream_command(self, runner, factory):
        factory.generate_stream.return_value = StreamWithMetadata(
            stream=aiter_items(["Hel", "lo"]), get_metadata=AsyncMock(return_value=METADATA)
        )

        result = runner.invoke(cli, ["generate", "hi", "-m", "gpt-4o", "--stream"])

        assert result.exit_code == 0
        assert "Hello" in result.output
        assert "retries" not in factory.generate_stream.call_args.kwargs

    def test_generate_failure(self, runner, factory):
        factory.generate = AsyncMock(
            side_effect=AllCandidatesExhaustedError("gpt-4o", RuntimeError("down"))
        )

        result = runner.invoke(cli, ["generate", "hi", "-m", "gpt-4o"])

        assert result.exit_code == 1
        assert "All models failed after retries. Last model: gpt-4o" in result.output

    def test_generate_requires_model(self, runner):
        result = runner.invoke(cli, ["generate", "hi"])

        assert result.exit_code == 2
