"""Tests for the CLI entry point, commands and token resolution."""

import subprocess
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from crossreview_cli.auth import provider_login_command, resolve_host_token, resolve_target_token
from crossreview_cli.cli import main
from crossreview_cli.commands.config import mask_secrets
from crossreview_core.errors import ConfigurationError, ReviewCancelled, VcsError
from crossreview_core.models import RunResult
from crossreview_core.target import parse_target


def _make_config(**defaults):
    return {
        "defaults": {"max_diff_bytes": 120000, "comment_language": "ko", **defaults},
        "hosts": {"github.com": {"token": "ghp_secret"}},
        "providers": {"openai": {"api_key": "sk-secret", "model": "gpt-4o"}},
    }


def _patch_config(mocker, config=None):
    cfg = config or _make_config()
    mocker.patch("crossreview_core.config.load_config", return_value=cfg)
    return cfg


def _patch_pipeline(mocker, result=None, error=None):
    pipeline_cls = mocker.patch("crossreview_cli.commands.review.ReviewPipeline")
    if error is not None:
        pipeline_cls.return_value.execute.side_effect = error
    else:
        pipeline_cls.return_value.execute.return_value = result or RunResult(status="completed", head_sha="a" * 40)
    return pipeline_cls


class TestReviewCommand:
    def test_passes_options_to_pipeline(self, mocker):
        _patch_config(mocker)
        pipeline_cls = _patch_pipeline(mocker)

        result = CliRunner().invoke(
            main, ["review", "https://github.com/acme/widgets/pull/42", "--dry-run", "--force", "--yes"]
        )

        assert result.exit_code == 0, result.output
        options = pipeline_cls.return_value.execute.call_args.args[0]
        assert options.url == "https://github.com/acme/widgets/pull/42"
        assert options.dry_run is True
        assert options.force is True
        assert pipeline_cls.call_args.kwargs["token_resolver"] is resolve_target_token

    def test_yes_selects_auto_confirmer(self, mocker):
        _patch_config(mocker)
        pipeline_cls = _patch_pipeline(mocker)

        CliRunner().invoke(main, ["review", "https://github.com/acme/widgets/pull/42", "-y"])

        assert type(pipeline_cls.call_args.kwargs["confirmer"]).__name__ == "AutoConfirmer"

    def test_interactive_confirmer_by_default(self, mocker):
        _patch_config(mocker)
        pipeline_cls = _patch_pipeline(mocker)

        CliRunner().invoke(main, ["review", "https://github.com/acme/widgets/pull/42"])

        assert type(pipeline_cls.call_args.kwargs["confirmer"]).__name__ == "StdinConfirmer"

    def test_skipped_run_is_reported(self, mocker):
        _patch_config(mocker)
        _patch_pipeline(mocker, result=RunResult(status="skipped", head_sha="0123456789abcdef"))

        result = CliRunner().invoke(main, ["review", "https://github.com/acme/widgets/pull/42"])

        assert result.exit_code == 0
        assert "Already reviewed 0123456789ab" in result.output
        assert "--force" in result.output

    def test_configuration_error_is_usage_error(self, mocker):
        _patch_config(mocker)
        _patch_pipeline(mocker, error=ConfigurationError("missing VCS token for host 'github.com'"))

        result = CliRunner().invoke(main, ["review", "https://github.com/acme/widgets/pull/42"])

        assert result.exit_code == 2
        assert "missing VCS token" in result.output

    def test_cancelled_exits_one(self, mocker):
        _patch_config(mocker)
        _patch_pipeline(mocker, error=ReviewCancelled())

        result = CliRunner().invoke(main, ["review", "https://github.com/acme/widgets/pull/42"])

        assert result.exit_code == 1
        assert "cancelled by user" in result.output

    def test_vcs_error_is_click_exception(self, mocker):
        _patch_config(mocker)
        _patch_pipeline(mocker, error=VcsError("github: failed to create comment: Forbidden", status_code=403))

        result = CliRunner().invoke(main, ["review", "https://github.com/acme/widgets/pull/42"])

        assert result.exit_code == 1
        assert "[403] github: failed to create comment" in result.output

    def test_bad_config_file_is_usage_error(self, mocker):
        mocker.patch("crossreview_core.config.load_config", side_effect=ConfigurationError("Config file not found: x"))

        result = CliRunner().invoke(main, ["--config", "x", "review", "https://github.com/acme/widgets/pull/42"])

        assert result.exit_code == 2
        assert "Config file not found" in result.output

    def test_url_is_required(self, mocker):
        _patch_config(mocker)
        result = CliRunner().invoke(main, ["review"])
        assert result.exit_code == 2


class TestConfigCommand:
    def test_prints_masked_config_and_backends(self, mocker):
        _patch_config(mocker)
        mocker.patch(
            "crossreview_cli.commands.config.describe_backends",
            return_value={"openai": "api", "anthropic": "not configured", "gemini": "cli (gemini)"},
        )
        mocker.patch("crossreview_cli.commands.config.resolve_host_token", return_value=("ghp_secret", "inline"))

        result = CliRunner().invoke(main, ["config"])

        assert result.exit_code == 0, result.output
        assert "ghp_secret" not in result.output
        assert "sk-secret" not in result.output
        assert "model: gpt-4o" in result.output
        assert "cli (gemini)" in result.output
        assert "github.com" in result.output
        assert "inline" in result.output

    def test_mask_secrets_leaves_original_untouched(self):
        config = _make_config()
        masked = mask_secrets(config)
        assert masked["hosts"]["github.com"]["token"] == "***"
        assert masked["providers"]["openai"]["api_key"] == "***"
        assert config["hosts"]["github.com"]["token"] == "ghp_secret"

    def test_empty_secrets_are_not_masked(self):
        masked = mask_secrets({"hosts": {"h": {"token": None, "token_env": "X"}}})
        assert masked["hosts"]["h"] == {"token": None, "token_env": "X"}


class TestAuthCommand:
    def test_runs_gh_login(self, mocker):
        _patch_config(mocker)
        mocker.patch("crossreview_cli.commands.auth.shutil.which", return_value="/usr/bin/gh")
        run = mocker.patch("crossreview_cli.commands.auth.subprocess.run", return_value=MagicMock(returncode=0))

        result = CliRunner().invoke(main, ["auth", "github"])

        assert result.exit_code == 0, result.output
        run.assert_called_once_with(["gh", "auth", "login"])

    def test_self_hosted_gitlab_passes_hostname(self, mocker):
        _patch_config(mocker)
        mocker.patch("crossreview_cli.commands.auth.shutil.which", return_value="/usr/bin/glab")
        run = mocker.patch("crossreview_cli.commands.auth.subprocess.run", return_value=MagicMock(returncode=0))

        CliRunner().invoke(main, ["auth", "gitlab", "--host", "git.internal"])

        run.assert_called_once_with(["glab", "auth", "login", "--hostname", "git.internal"])

    def test_missing_tool(self, mocker):
        _patch_config(mocker)
        mocker.patch("crossreview_cli.commands.auth.shutil.which", return_value=None)

        result = CliRunner().invoke(main, ["auth", "gitlab"])

        assert result.exit_code == 1
        assert "'glab' is not installed" in result.output

    def test_login_failure(self, mocker):
        _patch_config(mocker)
        mocker.patch("crossreview_cli.commands.auth.shutil.which", return_value="/usr/bin/gh")
        mocker.patch("crossreview_cli.commands.auth.subprocess.run", return_value=MagicMock(returncode=3))

        result = CliRunner().invoke(main, ["auth", "github"])

        assert result.exit_code == 1
        assert "exit code 3" in result.output

    def test_codex_login_by_default(self, mocker):
        _patch_config(mocker)
        mocker.patch("crossreview_cli.commands.auth.shutil.which", return_value="/usr/bin/codex")
        run = mocker.patch("crossreview_cli.commands.auth.subprocess.run", return_value=MagicMock(returncode=0))

        result = CliRunner().invoke(main, ["auth", "codex"])

        assert result.exit_code == 0, result.output
        run.assert_called_once_with(["codex", "login"])
        assert "OpenAI/Codex login completed" in result.output

    def test_provider_auth_command_from_config(self, mocker):
        config = _make_config()
        config["providers"]["gemini"] = {"auth_command": ["gemini", "auth", "--browser"]}
        _patch_config(mocker, config)
        mocker.patch("crossreview_cli.commands.auth.shutil.which", return_value="/usr/bin/gemini")
        run = mocker.patch("crossreview_cli.commands.auth.subprocess.run", return_value=MagicMock(returncode=0))

        result = CliRunner().invoke(main, ["auth", "gemini"])

        assert result.exit_code == 0, result.output
        run.assert_called_once_with(["gemini", "auth", "--browser"])
        assert "Login with Google" in result.output

    def test_provider_command_override(self, mocker):
        config = _make_config()
        config["providers"]["anthropic"] = {"enabled": False, "command": "claude-beta"}
        _patch_config(mocker, config)
        which = mocker.patch("crossreview_cli.commands.auth.shutil.which", return_value="/opt/claude-beta")
        run = mocker.patch("crossreview_cli.commands.auth.subprocess.run", return_value=MagicMock(returncode=0))

        result = CliRunner().invoke(main, ["auth", "claude"])

        assert result.exit_code == 0, result.output
        which.assert_called_once_with("claude-beta")
        run.assert_called_once_with(["claude-beta", "login"])

    def test_missing_provider_cli(self, mocker):
        _patch_config(mocker)
        mocker.patch("crossreview_cli.commands.auth.shutil.which", return_value=None)
        run = mocker.patch("crossreview_cli.commands.auth.subprocess.run")

        result = CliRunner().invoke(main, ["auth", "claude"])

        assert result.exit_code == 1
        assert "'claude' is not installed" in result.output
        run.assert_not_called()

    def test_provider_login_failure(self, mocker):
        _patch_config(mocker)
        mocker.patch("crossreview_cli.commands.auth.shutil.which", return_value="/usr/bin/codex")
        mocker.patch("crossreview_cli.commands.auth.subprocess.run", return_value=MagicMock(returncode=1))

        result = CliRunner().invoke(main, ["auth", "codex"])

        assert result.exit_code == 1
        assert "OpenAI/Codex login failed with exit code 1" in result.output

    def test_host_rejected_for_providers(self, mocker):
        _patch_config(mocker)
        result = CliRunner().invoke(main, ["auth", "codex", "--host", "git.internal"])
        assert result.exit_code == 2

    def test_unknown_target(self, mocker):
        _patch_config(mocker)
        result = CliRunner().invoke(main, ["auth", "bitbucket"])
        assert result.exit_code == 2


class TestProviderLoginCommand:
    def test_default_is_command_login(self):
        assert provider_login_command(None, "codex") == ["codex", "login"]
        assert provider_login_command({"command": "/opt/codex"}, "codex") == ["/opt/codex", "login"]

    def test_auth_command_string_is_split(self):
        cfg = {"command": "claude", "auth_command": "claude setup-token --long"}
        assert provider_login_command(cfg, "claude") == ["claude", "setup-token", "--long"]

    def test_empty_auth_command_falls_back(self):
        assert provider_login_command({"auth_command": []}, "gemini") == ["gemini", "login"]


class TestResolveHostToken:
    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch):
        for name in ("GITHUB_TOKEN", "GITLAB_TOKEN", "MY_TOKEN"):
            monkeypatch.delenv(name, raising=False)

    def test_inline_token_wins(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert resolve_host_token("github", "github.com", {"token": "inline-token"}) == ("inline-token", "inline")

    def test_token_env(self, monkeypatch):
        monkeypatch.setenv("MY_TOKEN", "from-env")
        assert resolve_host_token("github", "github.com", {"token_env": "MY_TOKEN"}) == ("from-env", "env:MY_TOKEN")

    def test_token_command(self, mocker):
        run = mocker.patch(
            "crossreview_cli.auth.subprocess.run",
            return_value=subprocess.CompletedProcess([], 0, stdout="cmd-token\n", stderr=""),
        )
        token, source = resolve_host_token("gitlab", "gitlab.com", {"token_command": "pass show gitlab"})
        assert token == "cmd-token"
        assert source == "cmd:pass show gitlab"
        assert run.call_args.args[0] == ["pass", "show", "gitlab"]

    def test_conventional_env_var_by_platform(self, mocker, monkeypatch):
        mocker.patch("crossreview_cli.auth.subprocess.run", side_effect=FileNotFoundError)
        monkeypatch.setenv("GITLAB_TOKEN", "gl-token")
        assert resolve_host_token("gitlab", "gitlab.com", None) == ("gl-token", "env:GITLAB_TOKEN")
        assert resolve_host_token("github", "github.com", None) == (None, None)

    def test_gh_cli_fallback(self, mocker):
        run = mocker.patch(
            "crossreview_cli.auth.subprocess.run",
            return_value=subprocess.CompletedProcess([], 0, stdout="gho_abc\n", stderr=""),
        )
        assert resolve_host_token("github", "github.com", {}) == ("gho_abc", "cmd:gh auth token")
        run.assert_called_once()

    def test_enterprise_host_passes_hostname(self, mocker):
        run = mocker.patch(
            "crossreview_cli.auth.subprocess.run",
            return_value=subprocess.CompletedProcess([], 0, stdout="t\n", stderr=""),
        )
        resolve_host_token("github", "git.corp.example", {})
        assert run.call_args.args[0] == ["gh", "auth", "token", "--hostname", "git.corp.example"]

    def test_failed_command_reports_hint(self, mocker, monkeypatch):
        mocker.patch(
            "crossreview_cli.auth.subprocess.run",
            return_value=subprocess.CompletedProcess([], 1, stdout="", stderr="locked"),
        )
        token, source = resolve_host_token("github", "github.com", {"token_command": ["vault", "read"]})
        assert token is None
        assert source == "cmd:vault read (failed)"

    def test_missing_env_reports_hint(self, mocker):
        mocker.patch("crossreview_cli.auth.subprocess.run", side_effect=FileNotFoundError)
        assert resolve_host_token("github", "github.com", {"token_env": "MY_TOKEN"}) == (
            None,
            "env:MY_TOKEN (missing)",
        )

    def test_resolve_target_token_uses_platform(self, monkeypatch, mocker):
        mocker.patch("crossreview_cli.auth.subprocess.run", side_effect=FileNotFoundError)
        monkeypatch.setenv("GITLAB_TOKEN", "gl-token")
        target = parse_target("https://gitlab.example.org/g/p/-/merge_requests/1")
        assert resolve_target_token(target, None) == "gl-token"
