"""
Integration tests for the command line interface.
"""

import json

import pytest
from click.testing import CliRunner

from mintauction.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


def invoke(runner, data_dir, *args):
    return runner.invoke(cli, ["--data-dir", str(data_dir), *args])


class TestDemo:
    """Tests for the scripted demos."""

    def test_basic(self, runner, data_dir):
        result = invoke(runner, data_dir, "demo")
        assert result.exit_code == 0, result.output
        assert "alice bids 1.0" in result.output
        assert "balance 100 ETH" in result.output
        assert "#1 to" in result.output
        assert "1.1 ETH" in result.output
        assert "state: IDLE" in result.output
        # Nothing written without --persist
        assert not (data_dir / "auction.db").exists()

    def test_capped(self, runner, data_dir):
        result = invoke(runner, data_dir, "demo", "--scenario", "capped")
        assert result.exit_code == 0, result.output
        for token_id in (1, 2, 3):
            assert f"#{token_id} ->" in result.output
        assert "round 4: bid refused (SupplyExhausted)" in result.output
        assert "supply_exhausted: True" in result.output

    def test_fallback(self, runner, data_dir):
        result = invoke(runner, data_dir, "demo", "--scenario", "fallback")
        assert result.exit_code == 0, result.output
        assert "alice native balance:  99 ETH" in result.output
        assert "alice wrapped balance: 1 ETH" in result.output

    def test_persist_refuses_existing_state(self, runner, data_dir):
        first = invoke(runner, data_dir, "demo", "--scenario", "fallback", "--persist")
        assert first.exit_code == 0, first.output
        stored = invoke(runner, data_dir, "status").output

        second = invoke(runner, data_dir, "demo", "--scenario", "basic", "--persist")
        assert second.exit_code != 0
        assert "already holds an auction" in second.output
        assert "BidTooLow" not in second.output

        # The stored auction is untouched
        assert invoke(runner, data_dir, "status").output == stored

    def test_persisted_capped_after_basic(self, runner, tmp_path):
        basic = invoke(runner, tmp_path / "basic", "demo", "--persist")
        assert basic.exit_code == 0, basic.output

        capped = invoke(runner, tmp_path / "capped", "demo", "--scenario", "capped", "--persist")
        assert capped.exit_code == 0, capped.output
        assert "round 4: bid refused (SupplyExhausted)" in capped.output
        assert "cap: 3" in capped.output

    def test_log_dir_records_fallback(self, runner, data_dir, tmp_path):
        log_dir = tmp_path / "logs"
        result = runner.invoke(
            cli,
            ["--data-dir", str(data_dir), "--log-dir", str(log_dir), "demo", "--scenario", "fallback"],
        )
        assert result.exit_code == 0, result.output

        text = (log_dir / "mintauction.log").read_text()
        assert "falling back to wrapped asset" in text
        assert "[mintauction.transfer] WARNING" in text

    def test_unknown_scenario(self, runner, data_dir):
        result = invoke(runner, data_dir, "demo", "--scenario", "moon")
        assert result.exit_code != 0


class TestInspection:
    """Tests for status and events against a persisted demo."""

    def test_status_without_state(self, runner, data_dir):
        result = invoke(runner, data_dir, "status")
        assert result.exit_code == 0
        assert "No auction state found." in result.output

    def test_events_without_state(self, runner, data_dir):
        result = invoke(runner, data_dir, "events")
        assert result.exit_code == 0
        assert "No events found." in result.output

    def test_status_after_persisted_demo(self, runner, data_dir):
        assert invoke(runner, data_dir, "demo", "--persist").exit_code == 0

        result = invoke(runner, data_dir, "status")
        assert result.exit_code == 0, result.output
        assert "Next token id:   2" in result.output
        assert "no round open" in result.output
        assert "Cap:             unlimited" in result.output

    def test_events_after_persisted_demo(self, runner, data_dir):
        assert invoke(runner, data_dir, "demo", "--persist").exit_code == 0

        result = invoke(runner, data_dir, "events")
        assert result.exit_code == 0, result.output
        assert "AuctionSettled" in result.output
        assert result.output.count("BidAccepted") == 2

        limited = invoke(runner, data_dir, "events", "--limit", "1")
        assert "AuctionSettled" in limited.output
        assert "BidAccepted" not in limited.output


class TestConfigCommands:
    """Tests for `config show`."""

    def test_show_defaults(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["duration"] == 86_400
        assert data["refund_policy"] == "immediate"

    def test_show_file(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "auction.json"
        path.write_text(json.dumps({"supply_cap": 5}))

        result = runner.invoke(cli, ["config", "show", "--config", str(path)])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["supply_cap"] == 5

    def test_show_bad_file(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["config", "show", "--config", str(tmp_path / "none.json")])
        assert result.exit_code != 0
        assert "Config file not found" in result.output


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
