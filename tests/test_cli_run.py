"""Tests for the evalbench run CLI command.

get_adapter is patched in the run_cmd module with a resolver that maps
provider names to in-memory adapters, so no provider SDK is touched.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from evalbench.adapters.base import AdapterTurnResult, BaseAdapter, TokenUsage
from evalbench.cli.main import app
from evalbench.errors import UnknownProviderError
from evalbench.storage.json_store import RecordStore

runner = CliRunner()


class CLIFakeAdapter(BaseAdapter):
    """Returns a canned reply; raises when the last message contains fail_on."""

    def __init__(self, reply: str, fail_on: str | None = None) -> None:
        super().__init__()
        self.reply = reply
        self.fail_on = fail_on
        self.call_count = 0

    async def generate_text(self, messages, config):
        self.call_count += 1
        if self.fail_on is not None and self.fail_on in messages[-1].content:
            raise RuntimeError("provider exploded")
        usage = TokenUsage(input_tokens=3, output_tokens=2, total_tokens=5)
        return AdapterTurnResult(content=self.reply, usage=usage, raw_response={}, finish_reason="stop")

    async def generate_structured(self, prompt, system, schema, config):
        return schema.model_validate(json.loads(self.reply)).model_dump(by_alias=True)


def _resolver(gen: BaseAdapter, judge: BaseAdapter):
    adapters = {"fake.gen": gen, "fake.judge": judge}

    def resolve(provider, api_key=None):
        if provider not in adapters:
            raise UnknownProviderError(provider, ["anthropic", "openai"])
        return adapters[provider]

    return resolve


SUITE = """\
generation:
  provider: {provider}
  model: gen-model
judge:
  provider: fake.judge
  model: judge-model
rubric:
  metrics:
    score: number
    passed: boolean
dataset:
  - id: a
    input: first question
  - id: b
    input: second question
"""


@pytest.fixture
def project(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "evalbench.yaml").write_text("log_format: console\n", encoding="utf-8")
    return tmp_path


def _write_suite(root: Path, provider: str = "fake.gen", content: str | None = None) -> Path:
    path = root / "suite.yaml"
    path.write_text(content if content is not None else SUITE.format(provider=provider), encoding="utf-8")
    return path


def _judge() -> CLIFakeAdapter:
    return CLIFakeAdapter('{"score": 4, "passed": true}')


class TestRunCommand:
    def test_json_output(self, project: Path):
        suite = _write_suite(project)
        resolver = _resolver(CLIFakeAdapter("Here you go."), _judge())
        with patch("evalbench.cli.run_cmd.get_adapter", side_effect=resolver):
            result = runner.invoke(app, ["run", str(suite), "--json"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["report"]["total_runs"] == 2
        assert payload["report"]["metrics"]["score"]["stats"]["avg"] == 4.0
        assert payload["report"]["metrics"]["passed"]["distribution"] == {"true": 2, "false": 0}
        assert [r["dataset_entry_id"] for r in payload["results"]] == ["a", "b"]
        assert payload["failures"] == []
        assert payload["cancelled"] is False
        assert payload["run_id"].startswith("run_")
        assert {r["run_id"] for r in payload["results"]} == {payload["run_id"]}
        assert payload["prompt_version"] is None
        assert payload["usage"] == {"input_tokens": 6, "output_tokens": 4, "total_tokens": 10}

    def test_records_persisted(self, project: Path):
        suite = _write_suite(project)
        with patch("evalbench.cli.run_cmd.get_adapter", side_effect=_resolver(CLIFakeAdapter("ok"), _judge())):
            result = runner.invoke(app, ["run", str(suite), "--json"])

        assert result.exit_code == 0, result.output
        store = RecordStore(project)
        assert len(store.transcripts) == 2
        assert len(store.results) == 2

    def test_rich_report(self, project: Path):
        suite = _write_suite(project)
        with patch("evalbench.cli.run_cmd.get_adapter", side_effect=_resolver(CLIFakeAdapter("ok"), _judge())):
            result = runner.invoke(app, ["run", str(suite)])

        assert result.exit_code == 0, result.output
        assert "Runs: 2" in result.output
        assert "score" in result.output
        assert "Results saved under" in result.output
        assert "Run: run_" in result.output
        assert "Generation usage: 10 tokens" in result.output

    def test_prompt_version_from_suite_and_override(self, project: Path):
        suite = _write_suite(project, content="prompt_version: v1\n" + SUITE.format(provider="fake.gen"))
        with patch("evalbench.cli.run_cmd.get_adapter", side_effect=_resolver(CLIFakeAdapter("ok"), _judge())):
            from_suite = runner.invoke(app, ["run", str(suite), "--json"])
            overridden = runner.invoke(app, ["run", str(suite), "--json", "--prompt-version", "v2"])

        assert json.loads(from_suite.stdout)["prompt_version"] == "v1"
        payload = json.loads(overridden.stdout)
        assert payload["prompt_version"] == "v2"
        assert {r["prompt_version"] for r in payload["results"]} == {"v2"}
        stored = RecordStore(project).transcripts.where("prompt_version", "v2")
        assert len(stored) == 2

    def test_limit(self, project: Path):
        suite = _write_suite(project)
        gen = CLIFakeAdapter("ok")
        with patch("evalbench.cli.run_cmd.get_adapter", side_effect=_resolver(gen, _judge())):
            result = runner.invoke(app, ["run", str(suite), "--json", "--limit", "1"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["report"]["total_runs"] == 1
        assert gen.call_count == 1

    def test_entry_failure_exits_1(self, project: Path):
        suite = _write_suite(project)
        resolver = _resolver(CLIFakeAdapter("ok", fail_on="second"), _judge())
        with patch("evalbench.cli.run_cmd.get_adapter", side_effect=resolver):
            result = runner.invoke(app, ["run", str(suite)])

        assert result.exit_code == 1
        assert "1 entry failed" in result.output
        assert "provider exploded" in result.output
        assert "Runs: 1" in result.output

    def test_unknown_provider_exits_2(self, project: Path):
        suite = _write_suite(project, provider="nowhere")
        gen = CLIFakeAdapter("ok")
        with patch("evalbench.cli.run_cmd.get_adapter", side_effect=_resolver(gen, _judge())):
            result = runner.invoke(app, ["run", str(suite)])

        assert result.exit_code == 2
        assert "Configuration error" in result.output
        assert gen.call_count == 0

    def test_invalid_suite_exits_1(self, project: Path):
        suite = _write_suite(project, content="generaton: {}\n")
        result = runner.invoke(app, ["run", str(suite)])
        assert result.exit_code == 1
        assert "Suite validation errors" in result.output

    def test_missing_suite_file(self, project: Path):
        result = runner.invoke(app, ["run", str(project / "nope.yaml")])
        assert result.exit_code == 1
        assert "Suite file not found" in result.output

    def test_empty_dataset(self, project: Path):
        suite = _write_suite(project, content="generation: {}\n")
        result = runner.invoke(app, ["run", str(suite)])
        assert result.exit_code == 1
        assert "no dataset entries" in result.output
