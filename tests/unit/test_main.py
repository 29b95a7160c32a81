"""Tests for console rendering and the CLI entry point."""

from unittest.mock import patch

import pytest

from etcdash.data.models import ActionKind, ActionRequest, DashboardState
from etcdash.insights.maintenance import MaintenanceAdvisor
from etcdash.server import main
from etcdash.server.views import render_state


class TestRenderState:
    def test_cards_and_error_banner(self, sample_snapshot):
        state = DashboardState(snapshot=sample_snapshot, last_error="no space")
        text = render_state(state)

        assert text.startswith("etcd Cluster Manager")
        assert "ERROR: no space" in text
        assert "DB Size: 2.00 MB" in text
        assert "DB Size In Use: 1.00 MB" in text
        assert "Leader: Yes" in text

    def test_empty_snapshot(self):
        assert "No endpoints." in render_state(DashboardState())

    def test_busy_and_active_action(self):
        state = DashboardState(is_busy=True, active_action=ActionRequest(ActionKind.DEFRAG))
        text = render_state(state)
        assert "loading..." in text
        assert "defrag in progress" in text

    def test_hints(self, sample_snapshot):
        text = render_state(DashboardState(snapshot=sample_snapshot), advisor=MaintenanceAdvisor())
        assert "[SUGGESTION]" in text


class TestParseArgs:
    def test_defaults(self):
        args = main.parse_args([])
        assert args.command == "watch"
        assert args.yes is False
        assert args.interval is None

    def test_action_flags(self):
        args = main.parse_args(["defrag", "-y", "--api-url", "http://etcd-ui:8080"])
        assert args.command == "defrag"
        assert args.yes is True
        assert args.api_url == "http://etcd-ui:8080"

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            main.parse_args(["restart"])


class TestRun:
    @pytest.fixture(autouse=True)
    def isolated_env(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.delenv("ETCDASH_CONFIG", raising=False)
        monkeypatch.delenv("ETCDASH_API_URL", raising=False)

    def test_confirm_accepts_yes(self):
        with patch("builtins.input", return_value="y"):
            assert main.confirm(ActionKind.COMPACT) is True

    def test_confirm_defaults_to_no(self):
        with patch("builtins.input", return_value=""):
            assert main.confirm(ActionKind.DEFRAG) is False

    def test_confirm_eof(self):
        with patch("builtins.input", side_effect=EOFError):
            assert main.confirm(ActionKind.DEFRAG) is False

    def test_declined_action_makes_no_call(self):
        args = main.parse_args(["compact"])
        with patch("builtins.input", return_value="n"), patch.object(main, "run_action") as run_action:
            assert main.run(args) == 1
        run_action.assert_not_called()

    def test_confirmed_action_runs(self):
        args = main.parse_args(["defrag", "--yes"])

        async def fake_run_action(config, kind):
            assert kind is ActionKind.DEFRAG
            return 0

        with patch.object(main, "run_action", side_effect=fake_run_action):
            assert main.run(args) == 0

    def test_invalid_override(self):
        args = main.parse_args(["status", "--api-url", "etcd-ui"])
        assert main.run(args) == 2

    def test_cli_overrides(self):
        args = main.parse_args(["status", "--interval", "3", "--timeout", "2", "--insecure"])
        config = main.load_config(args)
        assert config.polling.interval == 3
        assert config.api.timeout == 2
        assert config.api.verify is False
