import json
from unittest.mock import patch

from typer.testing import CliRunner

from transmute import __version__
from transmute.main import app
from transmute.testing import FakeLLM

runner = CliRunner()


class TestMakeTransformer:
    def test_creates_module(self, tmp_path):
        result = runner.invoke(
            app,
            [
                "make-transformer",
                "article summarizer",
                "--output-dir",
                str(tmp_path),
                "--prompt",
                'Summarize the "article"',
            ],
        )

        assert result.exit_code == 0, result.output
        module = tmp_path / "article_summarizer.py"
        source = module.read_text()
        assert "class ArticleSummarizer(BaseTransformer):" in source
        assert 'prompt: str = "Summarize the \\"article\\""' in source
        compile(source, str(module), "exec")

    def test_refuses_to_overwrite(self, tmp_path):
        (tmp_path / "summarizer.py").write_text("# existing")

        result = runner.invoke(app, ["make-transformer", "Summarizer", "-o", str(tmp_path)])

        assert result.exit_code == 1
        assert (tmp_path / "summarizer.py").read_text() == "# existing"

    def test_force_overwrites(self, tmp_path):
        (tmp_path / "summarizer.py").write_text("# existing")

        result = runner.invoke(
            app, ["make-transformer", "Summarizer", "-o", str(tmp_path), "--force"]
        )

        assert result.exit_code == 0
        assert "class Summarizer" in (tmp_path / "summarizer.py").read_text()

    def test_invalid_name(self, tmp_path):
        result = runner.invoke(app, ["make-transformer", "123 bad", "-o", str(tmp_path)])

        assert result.exit_code == 1


class TestRun:
    def test_requires_exactly_one_source(self):
        result = runner.invoke(app, ["run", "summarize"])

        assert result.exit_code == 1
        assert "exactly one" in result.output

    @patch("transmute.core.transformers.pipeline.LiteLLM")
    def test_runs_transformer_on_text(self, mock_litellm, tmp_path):
        mock_litellm.return_value = FakeLLM(responses=["A short summary."])
        config_file = tmp_path / "config.yaml"
        config_file.write_text("cache:\n  enabled: false\n")

        result = runner.invoke(
            app, ["run", "summarize", "--text", "Long article text", "--config", str(config_file), "--json"]
        )

        assert result.exit_code == 0, result.output
        start = result.output.index("{")
        data = json.loads(result.output[start:])
        assert data["status"] == "completed"
        assert data["data"] == "A short summary."

    @patch("transmute.core.transformers.pipeline.LiteLLM")
    def test_failed_transformation_exits_with_error(self, mock_litellm, tmp_path):
        mock_litellm.return_value = FakeLLM(responses=[RuntimeError("provider down")])
        config_file = tmp_path / "config.yaml"
        config_file.write_text("cache:\n  enabled: false\n")

        result = runner.invoke(
            app, ["run", "summarize", "--text", "Long article text", "--config", str(config_file)]
        )

        assert result.exit_code == 1
        assert "provider down" in result.output

    def test_unknown_transformer(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        result = runner.invoke(
            app, ["run", "nope", "--text", "x", "--config", str(config_file)]
        )

        assert result.exit_code == 1
        assert "InvalidConfigurationError" in result.output

    def test_invalid_config_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("not_a_section: 1\n")

        result = runner.invoke(
            app, ["run", "summarize", "--text", "x", "--config", str(config_file)]
        )

        assert result.exit_code == 1


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
