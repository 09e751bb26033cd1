"""Unit tests for the stylemix CLI."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner, Result

from stylemix.cli import cli
from stylemix.cli.handlers import FAILURE_PREFIX, map_exception_to_exit
from stylemix.cli.utils import default_output_path
from stylemix.core.config import Config
from stylemix.core.image_gen import ImageResult
from stylemix.utils.exceptions import (
    ConfigurationError,
    MalformedInputError,
    PreconditionError,
    QuotaExceededError,
)


def _run_cli(*args: str) -> Result:
    runner = CliRunner()
    return runner.invoke(cli, list(args))


@pytest.fixture
def cli_config(tmp_path: Path):
    """Patch Config.from_env in the CLI to a config with no env key and a temp store."""
    config = Config(gemini_api_key="", credential_store_path=tmp_path / "creds.json")
    with patch("stylemix.cli.commands.Config") as mock_config_cls:
        mock_config_cls.from_env.return_value = config
        yield config


def _fake_round(png_b64: str, prompt: str = "synthesized prompt"):
    def side_effect(credential, inputs, session, *, enhance=False, config=None, on_stage=None):
        if on_stage is not None:
            on_stage("prompt")
            on_stage("image")
        session.prompt = prompt
        session.image = ImageResult(png_b64, 1.2, "img-model", prompt, inputs.subject is not None)
        session.edit_suggestion = ""
        return session

    return side_effect


@pytest.mark.unit
class TestGenerateCommand:
    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_goal_only_writes_image(self, mock_validate, mock_round, cli_config, tmp_path, png_b64, png_bytes):
        mock_round.side_effect = _fake_round(png_b64)
        out_file = tmp_path / "out.png"

        result = _run_cli("generate", "--goal", "a cat", "--api-key", "AIza-key", "--out", str(out_file))

        assert result.exit_code == 0, result.output
        assert out_file.read_bytes() == png_bytes
        assert str(out_file) in result.output
        mock_validate.assert_called_once_with("AIza-key", cli_config)
        args, kwargs = mock_round.call_args
        assert args[0] == "AIza-key"
        assert args[1].goal == "a cat"
        assert kwargs["enhance"] is False

    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_subject_is_loaded_as_data_uri(self, _mock_validate, mock_round, cli_config, tmp_path, png_b64, png_bytes):
        mock_round.side_effect = _fake_round(png_b64)
        subject = tmp_path / "subject.png"
        subject.write_bytes(png_bytes)

        result = _run_cli(
            "generate", "--subject", str(subject), "--api-key", "k", "--out", str(tmp_path / "o.png"), "-q"
        )

        assert result.exit_code == 0, result.output
        inputs = mock_round.call_args.args[1]
        assert inputs.subject.startswith("data:image/png;base64,")
        assert inputs.style is None

    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_no_inputs_exit_2(self, mock_validate, mock_round, cli_config):
        result = _run_cli("generate", "--api-key", "k")
        assert result.exit_code == 2
        mock_validate.assert_not_called()
        mock_round.assert_not_called()

    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential")
    def test_no_key_anywhere_exit_2(self, mock_validate, mock_round, cli_config, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        result = _run_cli("generate", "--goal", "g", "-q")
        assert result.exit_code == 2
        assert "API key" in result.output
        mock_validate.assert_not_called()

    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_stored_key_used(self, mock_validate, mock_round, cli_config, tmp_path, png_b64, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        cli_config.credential_store_path.write_text('{"gemini-api-key": "stored-key"}')
        mock_round.side_effect = _fake_round(png_b64)

        result = _run_cli("generate", "--goal", "g", "--out", str(tmp_path / "o.png"), "-q")

        assert result.exit_code == 0, result.output
        assert mock_round.call_args.args[0] == "stored-key"

    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential", return_value=False)
    def test_invalid_stored_key_is_cleared(self, _mock_validate, mock_round, cli_config, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        cli_config.credential_store_path.write_text('{"gemini-api-key": "stale"}')

        result = _run_cli("generate", "--goal", "g", "-q")

        assert result.exit_code == 2
        assert "invalid" in result.output.lower()
        assert not cli_config.credential_store_path.exists()
        mock_round.assert_not_called()

    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_valid_key_is_stored(self, _mock_validate, mock_round, cli_config, tmp_path, png_b64):
        mock_round.side_effect = _fake_round(png_b64)
        _run_cli("generate", "--goal", "g", "--api-key", "fresh", "--out", str(tmp_path / "o.png"), "-q")
        assert "fresh" in cli_config.credential_store_path.read_text()

    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_service_error_exit_1(self, _mock_validate, mock_round, cli_config):
        mock_round.side_effect = QuotaExceededError()
        result = _run_cli("generate", "--goal", "g", "--api-key", "k", "-q")
        assert result.exit_code == 1
        assert FAILURE_PREFIX in result.output
        assert "Quota" in result.output

    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_save_prompt(self, _mock_validate, mock_round, cli_config, tmp_path, png_b64):
        mock_round.side_effect = _fake_round(png_b64, prompt="the prompt")
        prompt_file = tmp_path / "prompt.txt"
        result = _run_cli(
            "generate", "--goal", "g", "--api-key", "k",
            "--out", str(tmp_path / "o.png"), "--save-prompt", str(prompt_file),
        )
        assert result.exit_code == 0, result.output
        assert prompt_file.read_text() == "the prompt"


@pytest.mark.unit
class TestEnhanceCommand:
    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_session_carries_previous_prompt(self, _mock_validate, mock_round, cli_config, tmp_path, png_b64):
        seen = {}
        fake = _fake_round(png_b64, prompt="refined")

        def recording(credential, inputs, session, **kwargs):
            seen.update(prompt=session.prompt, suggestion=session.edit_suggestion, enhance=kwargs["enhance"])
            return fake(credential, inputs, session, **kwargs)

        mock_round.side_effect = recording
        previous = tmp_path / "prev.txt"
        previous.write_text("old prompt\n")

        result = _run_cli(
            "enhance", "--goal", "g", "--api-key", "k",
            "--previous-prompt-file", str(previous), "--suggestion", "add a moon",
            "--out", str(tmp_path / "o.png"), "-q",
        )

        assert result.exit_code == 0, result.output
        assert seen == {"prompt": "old prompt", "suggestion": "add a moon", "enhance": True}

    @patch("stylemix.cli.commands.GenerationSession")
    @patch("stylemix.cli.commands.run_round")
    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_session_built_from_flags(self, _mock_validate, mock_round, mock_session_cls, cli_config, tmp_path, png_b64):
        session = MagicMock()
        session.image = ImageResult(png_b64, 1.0, "m", "p", False)
        session.prompt = "p"
        mock_session_cls.return_value = session

        result = _run_cli(
            "enhance", "--goal", "g", "--api-key", "k", "-p", "old prompt",
            "-e", "  add a moon ", "--out", str(tmp_path / "o.png"), "-q",
        )

        assert result.exit_code == 0, result.output
        mock_session_cls.assert_called_once_with(prompt="old prompt", edit_suggestion="add a moon")

    def test_requires_previous_prompt(self, cli_config):
        result = _run_cli("enhance", "--goal", "g", "--suggestion", "x")
        assert result.exit_code == 2
        assert "previous prompt" in result.output.lower()

    def test_requires_suggestion(self, cli_config):
        result = _run_cli("enhance", "--goal", "g", "-p", "old")
        assert result.exit_code == 2
        assert "suggestion" in result.output.lower()

    def test_prompt_flags_are_exclusive(self, cli_config, tmp_path):
        previous = tmp_path / "prev.txt"
        previous.write_text("old")
        result = _run_cli(
            "enhance", "-p", "old", "--previous-prompt-file", str(previous), "-e", "x", "--goal", "g"
        )
        assert result.exit_code == 2


@pytest.mark.unit
class TestKeyCommands:
    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_validate_key_stores(self, mock_validate, cli_config):
        result = _run_cli("validate-key", "AIza-good")
        assert result.exit_code == 0, result.output
        assert "AIza-good" in cli_config.credential_store_path.read_text()

    @patch("stylemix.cli.commands.validate_credential", return_value=True)
    def test_validate_key_no_save(self, mock_validate, cli_config):
        result = _run_cli("validate-key", "AIza-good", "--no-save")
        assert result.exit_code == 0, result.output
        assert not cli_config.credential_store_path.exists()

    @patch("stylemix.cli.commands.validate_credential", return_value=False)
    def test_validate_key_invalid(self, mock_validate, cli_config):
        result = _run_cli("validate-key", "AIza-bad")
        assert result.exit_code == 2
        assert "invalid" in result.output.lower()

    def test_forget_key(self, cli_config):
        cli_config.credential_store_path.write_text('{"gemini-api-key": "k"}')
        result = _run_cli("forget-key")
        assert result.exit_code == 0
        assert not cli_config.credential_store_path.exists()


@pytest.mark.unit
class TestServerCommands:
    @patch("stylemix.ui.gradio_app.launch")
    def test_ui_passes_options(self, mock_launch):
        result = _run_cli("ui", "--port", "9000", "--host", "0.0.0.0", "--share")
        assert result.exit_code == 0, result.output
        mock_launch.assert_called_once_with(server_name="0.0.0.0", server_port=9000, share=True)

    @patch("uvicorn.run")
    def test_relay_runs_uvicorn(self, mock_run):
        result = _run_cli("relay", "--port", "8123")
        assert result.exit_code == 0, result.output
        _, kwargs = mock_run.call_args
        assert kwargs == {"host": "127.0.0.1", "port": 8123}


@pytest.mark.unit
class TestExitMapping:
    def test_input_errors_are_2(self):
        code, msg = map_exception_to_exit(PreconditionError("need a key", field="credential"))
        assert code == 2
        assert msg == "need a key (field: credential)"
        assert map_exception_to_exit(MalformedInputError("bad uri"))[0] == 2
        assert map_exception_to_exit(ConfigurationError("bad config"))[0] == 2
        assert map_exception_to_exit(FileNotFoundError("nope"))[0] == 2

    def test_service_errors_are_1_with_prefix(self):
        code, msg = map_exception_to_exit(QuotaExceededError())
        assert code == 1
        assert msg.startswith(FAILURE_PREFIX)

    def test_unclassified_is_1_with_prefix(self):
        code, msg = map_exception_to_exit(ConnectionError("reset by peer"))
        assert code == 1
        assert msg == FAILURE_PREFIX + "reset by peer"

    def test_default_output_path(self):
        assert default_output_path("jpeg").endswith(".jpg")
        assert default_output_path("").endswith(".png")
        assert default_output_path("png").startswith("stylemix_")
