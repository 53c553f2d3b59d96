"""
Logging subsystem test suite.

Coverage:
  - Log file location follows the working directory
  - Terminal-safe formatting
"""

import logging
import os
import sys

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from seigniorage.logger import LogManager, TerminalSafeFormatter, default_log_file, get_logger


# ══════════════════════════════════════════════════════════════════════
#  FILE OUTPUT
# ══════════════════════════════════════════════════════════════════════


class TestLogFile:

    def test_default_path_follows_cwd(self, tmp_path, monkeypatch):
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.mkdir()
        second.mkdir()

        monkeypatch.chdir(first)
        assert default_log_file() == first / "logs" / "seigniorage.log"
        monkeypatch.chdir(second)
        assert default_log_file() == second / "logs" / "seigniorage.log"

    def test_file_handler_writes_under_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        manager = LogManager()
        try:
            manager.reconfigure(log_level="INFO", file_output=True)
            get_logger("seigniorage.tests").info("ledger opened")
            for handler in logging.getLogger().handlers:
                handler.flush()
            log_file = tmp_path / "logs" / "seigniorage.log"
            assert log_file.exists()
            assert "ledger opened" in log_file.read_text()
        finally:
            manager.reconfigure(log_level="WARNING", file_output=False)

    def test_explicit_log_file(self, tmp_path):
        target = tmp_path / "custom" / "run.log"
        manager = LogManager()
        try:
            manager.reconfigure(log_level="INFO", log_file=target, file_output=True)
            assert target.exists()
        finally:
            manager.reconfigure(log_level="WARNING", file_output=False)


# ══════════════════════════════════════════════════════════════════════
#  FORMATTING
# ══════════════════════════════════════════════════════════════════════


class TestFormatter:

    def test_strips_escape_sequences(self):
        formatter = TerminalSafeFormatter(fmt="%(message)s")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "bad \x1b[31mred\x1b[0m", None, None)
        assert "\x1b" not in formatter.format(record)
