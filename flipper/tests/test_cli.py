"""
Tests for the command line interface.
"""

import pandas as pd
import yaml
from click.testing import CliRunner

from flipper.cli import cli


def test_show_config_defaults():
    result = CliRunner().invoke(cli, ["show-config"])
    assert result.exit_code == 0
    dumped = yaml.safe_load(result.output)
    assert dumped["strategies"]["spread"]["max_open_positions"] == 4


def test_show_config_rejects_invalid_file(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("strategies:\n  spread:\n    max_open_positions: 0\n")
    result = CliRunner().invoke(cli, ["show-config", "--config", str(path)])
    assert result.exit_code == 1
    assert "invalid configuration" in result.output


def test_replay_prints_each_engine(tmp_path):
    capture = tmp_path / "capture.csv"
    pd.DataFrame([
        {"tick": t, "item_id": 1, "name": "Feather", "low": 100, "high": 120, "volume": 100_000,
         "avg_low_24h": 100, "buy_limit": 1000}
        for t in range(1, 4)
    ]).to_csv(capture, index=False)
    config = tmp_path / "flipper.yaml"
    config.write_text(yaml.safe_dump({
        "risk": {"fee_slippage_percent": 2.0},
        "strategies": {"spread": {"min_net_profit_gp": 10, "min_net_roi_percent": 10}},
        "advanced": {"log_level": "WARNING"},
    }))

    result = CliRunner().invoke(cli, ["replay", str(capture), "--config", str(config), "--pair", "1-2"])
    assert result.exit_code == 0, result.output
    assert "Processed 3 ticks" in result.output
    assert "spread: 1 candidates" in result.output
    assert "Feather" in result.output
    assert "pair_discovery: 0 candidates" in result.output


def test_replay_rejects_bad_pair(tmp_path):
    capture = tmp_path / "capture.csv"
    pd.DataFrame([{"tick": 1, "item_id": 1, "low": 1, "high": 2, "volume": 1, "avg_low_24h": 1}]).to_csv(
        capture, index=False)
    result = CliRunner().invoke(cli, ["replay", str(capture), "--pair", "7-7"])
    assert result.exit_code == 1
    assert "same instrument" in result.output
