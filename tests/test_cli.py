"""
Simulation CLI test suite.

Coverage:
  - parse_prices
  - move_price steering the pair
  - `run` in JSON and table form: contraction, expansion, bond trades
  - `config` output and configuration errors
"""

import json
import os
import sys

import click
import pytest
from click.testing import CliRunner

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from seigniorage.chain import Chain
from seigniorage.cli.simulate import TRADER, cli, move_price, parse_prices, seed_participants
from seigniorage.config import ProtocolConfig
from seigniorage.constants import UNIT
from seigniorage.protocol import deploy_protocol


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

QUIET = '[logging]\nlevel = "WARNING"\n'


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("SEIGNIORAGE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def quiet_config(tmp_path):
    path = tmp_path / "quiet.toml"
    path.write_text(QUIET)
    return str(path)


def run_json(config_path, *args):
    result = CliRunner().invoke(cli, ["run", "--json", "--config", config_path, *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


# ══════════════════════════════════════════════════════════════════════
#  HELPERS UNDER TEST
# ══════════════════════════════════════════════════════════════════════


class TestParsePrices:

    def test_list(self):
        assert parse_prices("0.9, 1.1,") == [9 * UNIT // 10, 11 * UNIT // 10]

    @pytest.mark.parametrize("raw", ["abc", "-1", "0", " , "])
    def test_rejects(self, raw):
        with pytest.raises(click.BadParameter):
            parse_prices(raw)


class TestMovePrice:

    def make(self):
        p = deploy_protocol(ProtocolConfig(), chain=Chain(timestamp=1_700_000_000))
        seed_participants(p)
        return p

    def test_moves_down(self):
        p = self.make()
        assert move_price(p, TRADER, 9 * UNIT // 10) > 0
        assert abs(p.spot_price() - 9 * UNIT // 10) < UNIT // 100

    def test_moves_up(self):
        p = self.make()
        move_price(p, TRADER, 12 * UNIT // 10)
        assert abs(p.spot_price() - 12 * UNIT // 10) < UNIT // 100

    def test_at_target_is_noop(self):
        p = self.make()
        assert move_price(p, TRADER, UNIT) == 0


# ══════════════════════════════════════════════════════════════════════
#  COMMANDS
# ══════════════════════════════════════════════════════════════════════


class TestRunCommand:

    def test_contraction_rows(self, quiet_config):
        rows = run_json(quiet_config, "--prices", "0.9", "--epochs", "2")
        assert [r["epoch"] for r in rows] == [1, 2]
        for row in rows:
            assert row["phase"] == "contraction"
            assert float(row["minted"]) == 0
        assert float(rows[0]["debt"]) > 0
        assert float(rows[0]["bondsBought"]) > 0
        assert float(rows[0]["bondPrice"]) == 0.99

    def test_expansion_redeems_bonds(self, quiet_config):
        rows = run_json(quiet_config, "--prices", "0.9,1.2")
        assert len(rows) == 2
        first, second = rows
        assert first["phase"] == "contraction"
        assert second["phase"] == "expansion"
        assert float(second["minted"]) > 0
        assert float(second["debt"]) == 0
        assert float(second["bondsRedeemed"]) == pytest.approx(float(first["bondsBought"]), abs=0.01)

    def test_no_bonds_flag(self, quiet_config):
        rows = run_json(quiet_config, "--prices", "0.9", "--no-bonds")
        assert float(rows[0]["bondsBought"]) == 0

    def test_table(self, quiet_config):
        result = CliRunner().invoke(cli, ["run", "--config", quiet_config])
        assert result.exit_code == 0, result.output
        assert "Seigniorage simulation" in result.stdout
        assert "in band" in result.stdout

    def test_bad_price(self):
        result = CliRunner().invoke(cli, ["run", "--prices", "abc"])
        assert result.exit_code == 2
        assert "not a price" in result.output

    def test_bad_config(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[treasury]\nfloor_pct = 101\n")
        result = CliRunner().invoke(cli, ["run", "--config", str(path)])
        assert result.exit_code == 1
        assert "floor_pct" in result.output


class TestConfigCommand:

    def test_prints_resolved_config(self, quiet_config):
        result = CliRunner().invoke(cli, ["config", "--config", quiet_config])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["treasury"]["cash_price_one"] == "1.000000"
        assert data["logging"]["level"] == "WARNING"

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert "0.1.0" in result.output
