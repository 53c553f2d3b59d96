"""
Seigniorage TOML Configuration Loader

Loads every section of config.toml with environment variable overrides.

Environment variable mapping:
    [chain] start_timestamp        → SEIGNIORAGE_START_TIMESTAMP
    [epoch] period                 → SEIGNIORAGE_EPOCH_PERIOD
    [oracle] period                → SEIGNIORAGE_ORACLE_PERIOD
    [treasury] cash_price_one      → SEIGNIORAGE_CASH_PRICE_ONE
    [treasury] max_inflation_rate  → SEIGNIORAGE_MAX_INFLATION_RATE
    [boardroom] withdraw_lockup_epochs → SEIGNIORAGE_WITHDRAW_LOCKUP_EPOCHS
    [boardroom] reward_lockup_epochs   → SEIGNIORAGE_REWARD_LOCKUP_EPOCHS
    [reward_pool] duration         → SEIGNIORAGE_REWARD_POOL_DURATION
    [logging] level                → SEIGNIORAGE_LOG_LEVEL
    ...

Prices are written as decimal strings ("1.05") and stored as UNIT-scaled
integers. Rates are whole percentages.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..constants import (
    BLOCK_TIME,
    BOARDROOM_EPOCH_PERIOD,
    BOARDROOM_MAX_LOCKUP_EPOCHS,
    BOARDROOM_REWARD_LOCKUP_EPOCHS,
    BOARDROOM_WITHDRAW_LOCKUP_EPOCHS,
    BOND_PRICE_DELTA,
    BOND_REWARD_RATE,
    BOND_REWARD_THRESHOLD_PCT,
    CASH_PRICE_CEILING_PCT,
    CASH_PRICE_FLOOR_PCT,
    DEBT_ADD_RATE,
    EPOCH_PERIOD,
    FUND_ALLOCATION_RATE,
    MAX_DEBT_RATE,
    MAX_INFLATION_RATE,
    MIN_BOND_PRICE,
    PERCENT,
    REWARD_POOL_DURATION,
    UNIT,
)
from ..exceptions import ConfigurationError, ProtocolError
from ..safemath import from_wei, to_wei

logger = logging.getLogger(__name__)

Price = Union[str, int, float]


def _price(value: Price, key: str) -> int:
    try:
        return to_wei(value)
    except (ArithmeticError, TypeError, ValueError, ProtocolError) as e:
        raise ConfigurationError(f"Invalid price for {key}: {value!r}") from e


def _int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid integer for {key}: {value!r}") from e


# ---------------------------------------------------------------------------
# Section dataclasses: one per [section] of config.example.toml
# ---------------------------------------------------------------------------


@dataclass
class ChainConfig:
    """[chain] section. A zero start_timestamp means wall-clock time."""
    start_timestamp: int = 0
    block_time: int = BLOCK_TIME

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainConfig":
        return cls(
            start_timestamp=_int(data.get("start_timestamp", 0), "chain.start_timestamp"),
            block_time=_int(data.get("block_time", BLOCK_TIME), "chain.block_time"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SEIGNIORAGE_START_TIMESTAMP"):
            self.start_timestamp = _int(v, "SEIGNIORAGE_START_TIMESTAMP")
        if v := os.environ.get("SEIGNIORAGE_BLOCK_TIME"):
            self.block_time = _int(v, "SEIGNIORAGE_BLOCK_TIME")


@dataclass
class EpochConfig:
    """[epoch] section: the Treasury's policy clock."""
    period: int = EPOCH_PERIOD
    start_delay: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EpochConfig":
        return cls(
            period=_int(data.get("period", EPOCH_PERIOD), "epoch.period"),
            start_delay=_int(data.get("start_delay", 0), "epoch.start_delay"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SEIGNIORAGE_EPOCH_PERIOD"):
            self.period = _int(v, "SEIGNIORAGE_EPOCH_PERIOD")


@dataclass
class OracleConfig:
    """[oracle] section."""
    period: int = EPOCH_PERIOD
    start_delay: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OracleConfig":
        return cls(
            period=_int(data.get("period", EPOCH_PERIOD), "oracle.period"),
            start_delay=_int(data.get("start_delay", 0), "oracle.start_delay"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SEIGNIORAGE_ORACLE_PERIOD"):
            self.period = _int(v, "SEIGNIORAGE_ORACLE_PERIOD")


@dataclass
class TreasuryConfig:
    """[treasury] section. Prices are UNIT-scaled ints after loading."""
    cash_price_one: int = UNIT
    ceiling_pct: int = CASH_PRICE_CEILING_PCT
    floor_pct: int = CASH_PRICE_FLOOR_PCT
    bond_reward_threshold_pct: int = BOND_REWARD_THRESHOLD_PCT
    max_inflation_rate: int = MAX_INFLATION_RATE
    debt_add_rate: int = DEBT_ADD_RATE
    max_debt_rate: int = MAX_DEBT_RATE
    fund_allocation_rate: int = FUND_ALLOCATION_RATE
    bond_reward_rate: int = BOND_REWARD_RATE
    min_bond_price: int = MIN_BOND_PRICE
    bond_price_delta: int = BOND_PRICE_DELTA

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TreasuryConfig":
        cfg = cls()
        for key in ("cash_price_one", "min_bond_price", "bond_price_delta"):
            if key in data:
                setattr(cfg, key, _price(data[key], f"treasury.{key}"))
        for key in (
            "ceiling_pct", "floor_pct", "bond_reward_threshold_pct",
            "max_inflation_rate", "debt_add_rate", "max_debt_rate",
            "fund_allocation_rate", "bond_reward_rate",
        ):
            if key in data:
                setattr(cfg, key, _int(data[key], f"treasury.{key}"))
        return cfg

    def apply_env(self) -> None:
        if v := os.environ.get("SEIGNIORAGE_CASH_PRICE_ONE"):
            self.cash_price_one = _price(v, "SEIGNIORAGE_CASH_PRICE_ONE")
        if v := os.environ.get("SEIGNIORAGE_MAX_INFLATION_RATE"):
            self.max_inflation_rate = _int(v, "SEIGNIORAGE_MAX_INFLATION_RATE")
        if v := os.environ.get("SEIGNIORAGE_MAX_DEBT_RATE"):
            self.max_debt_rate = _int(v, "SEIGNIORAGE_MAX_DEBT_RATE")
        if v := os.environ.get("SEIGNIORAGE_FUND_ALLOCATION_RATE"):
            self.fund_allocation_rate = _int(v, "SEIGNIORAGE_FUND_ALLOCATION_RATE")

    def validate(self) -> None:
        if self.cash_price_one <= 0:
            raise ConfigurationError("treasury.cash_price_one must be positive")
        if not 0 < self.bond_reward_threshold_pct <= self.floor_pct <= PERCENT <= self.ceiling_pct:
            raise ConfigurationError(
                "treasury band must satisfy bond_reward_threshold_pct <= floor_pct "
                f"<= 100 <= ceiling_pct (got {self.bond_reward_threshold_pct}, "
                f"{self.floor_pct}, {self.ceiling_pct})"
            )
        for key in (
            "max_inflation_rate", "debt_add_rate", "max_debt_rate",
            "fund_allocation_rate", "bond_reward_rate",
        ):
            rate = getattr(self, key)
            if not 0 <= rate <= PERCENT:
                raise ConfigurationError(f"treasury.{key} must be within [0, 100], got {rate}")
        if not 0 < self.min_bond_price <= UNIT:
            raise ConfigurationError("treasury.min_bond_price must be within (0, 1]")
        if not 0 <= self.bond_price_delta <= UNIT:
            raise ConfigurationError("treasury.bond_price_delta must be within [0, 1]")


@dataclass
class BoardroomConfig:
    """[boardroom] section. Applies to both the share and the LP boardroom."""
    epoch_period: int = BOARDROOM_EPOCH_PERIOD
    withdraw_lockup_epochs: int = BOARDROOM_WITHDRAW_LOCKUP_EPOCHS
    reward_lockup_epochs: int = BOARDROOM_REWARD_LOCKUP_EPOCHS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoardroomConfig":
        return cls(
            epoch_period=_int(
                data.get("epoch_period", BOARDROOM_EPOCH_PERIOD), "boardroom.epoch_period"
            ),
            withdraw_lockup_epochs=_int(
                data.get("withdraw_lockup_epochs", BOARDROOM_WITHDRAW_LOCKUP_EPOCHS),
                "boardroom.withdraw_lockup_epochs",
            ),
            reward_lockup_epochs=_int(
                data.get("reward_lockup_epochs", BOARDROOM_REWARD_LOCKUP_EPOCHS),
                "boardroom.reward_lockup_epochs",
            ),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SEIGNIORAGE_WITHDRAW_LOCKUP_EPOCHS"):
            self.withdraw_lockup_epochs = _int(v, "SEIGNIORAGE_WITHDRAW_LOCKUP_EPOCHS")
        if v := os.environ.get("SEIGNIORAGE_REWARD_LOCKUP_EPOCHS"):
            self.reward_lockup_epochs = _int(v, "SEIGNIORAGE_REWARD_LOCKUP_EPOCHS")

    def validate(self) -> None:
        if self.epoch_period <= 0:
            raise ConfigurationError("boardroom.epoch_period must be positive")
        if not (
            0 <= self.reward_lockup_epochs
            <= self.withdraw_lockup_epochs
            <= BOARDROOM_MAX_LOCKUP_EPOCHS
        ):
            raise ConfigurationError(
                "boardroom lockups must satisfy 0 <= reward <= withdraw "
                f"<= {BOARDROOM_MAX_LOCKUP_EPOCHS}"
            )


@dataclass
class RewardPoolConfig:
    """[reward_pool] section: the bond reward stream."""
    duration: int = REWARD_POOL_DURATION

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RewardPoolConfig":
        return cls(
            duration=_int(data.get("duration", REWARD_POOL_DURATION), "reward_pool.duration"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SEIGNIORAGE_REWARD_POOL_DURATION"):
            self.duration = _int(v, "SEIGNIORAGE_REWARD_POOL_DURATION")


@dataclass
class LoggingConfig:
    """[logging] section. Unset values fall back to the .env logger settings."""
    level: Optional[str] = None
    file_output: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=data.get("level"),
            file_output=data.get("file_output"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SEIGNIORAGE_LOG_LEVEL"):
            self.level = v

    def validate(self) -> None:
        if self.level is not None and self.level.upper() not in (
            "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"
        ):
            raise ConfigurationError(f"Invalid logging.level: {self.level}")


# -----------------------------------------------------------------------
# Top-level protocol config
# -----------------------------------------------------------------------

@dataclass
class ProtocolConfig:
    """
    Unified protocol configuration.

    Loads every section of config.toml and applies environment variable
    overrides. This is the single source of truth for `deploy_protocol`.
    """
    chain: ChainConfig = field(default_factory=ChainConfig)
    epoch: EpochConfig = field(default_factory=EpochConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)
    treasury: TreasuryConfig = field(default_factory=TreasuryConfig)
    boardroom: BoardroomConfig = field(default_factory=BoardroomConfig)
    reward_pool: RewardPoolConfig = field(default_factory=RewardPoolConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProtocolConfig":
        """Create ProtocolConfig from a parsed TOML dict."""
        return cls(
            chain=ChainConfig.from_dict(data.get("chain", {})),
            epoch=EpochConfig.from_dict(data.get("epoch", {})),
            oracle=OracleConfig.from_dict(data.get("oracle", {})),
            treasury=TreasuryConfig.from_dict(data.get("treasury", {})),
            boardroom=BoardroomConfig.from_dict(data.get("boardroom", {})),
            reward_pool=RewardPoolConfig.from_dict(data.get("reward_pool", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "ProtocolConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults (with env overrides applied).
        """
        path = Path(config_path)
        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Malformed config file {path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.chain.apply_env()
        self.epoch.apply_env()
        self.oracle.apply_env()
        self.treasury.apply_env()
        self.boardroom.apply_env()
        self.reward_pool.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Returns:
            True if all valid

        Raises:
            ConfigurationError: on invalid config
        """
        if self.chain.start_timestamp < 0:
            raise ConfigurationError("chain.start_timestamp must be >= 0")
        if self.chain.block_time < 1:
            raise ConfigurationError("chain.block_time must be >= 1")
        for name, section in (("epoch", self.epoch), ("oracle", self.oracle)):
            if section.period <= 0:
                raise ConfigurationError(f"{name}.period must be positive")
            if section.start_delay < 0:
                raise ConfigurationError(f"{name}.start_delay must be >= 0")
        if self.reward_pool.duration <= 0:
            raise ConfigurationError("reward_pool.duration must be positive")
        self.treasury.validate()
        self.boardroom.validate()
        self.logging.validate()
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict with prices rendered as decimals (for display)."""
        t = self.treasury
        return {
            "chain": {
                "start_timestamp": self.chain.start_timestamp,
                "block_time": self.chain.block_time,
            },
            "epoch": {
                "period": self.epoch.period,
                "start_delay": self.epoch.start_delay,
            },
            "oracle": {
                "period": self.oracle.period,
                "start_delay": self.oracle.start_delay,
            },
            "treasury": {
                "cash_price_one": str(from_wei(t.cash_price_one)),
                "ceiling_pct": t.ceiling_pct,
                "floor_pct": t.floor_pct,
                "bond_reward_threshold_pct": t.bond_reward_threshold_pct,
                "max_inflation_rate": t.max_inflation_rate,
                "debt_add_rate": t.debt_add_rate,
                "max_debt_rate": t.max_debt_rate,
                "fund_allocation_rate": t.fund_allocation_rate,
                "bond_reward_rate": t.bond_reward_rate,
                "min_bond_price": str(from_wei(t.min_bond_price)),
                "bond_price_delta": str(from_wei(t.bond_price_delta)),
            },
            "boardroom": {
                "epoch_period": self.boardroom.epoch_period,
                "withdraw_lockup_epochs": self.boardroom.withdraw_lockup_epochs,
                "reward_lockup_epochs": self.boardroom.reward_lockup_epochs,
            },
            "reward_pool": {
                "duration": self.reward_pool.duration,
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[Union[str, Path]] = None) -> ProtocolConfig:
    """
    Load protocol configuration.

    Resolution order:
        1. Explicit *path* argument
        2. SEIGNIORAGE_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("SEIGNIORAGE_CONFIG", "config.toml")

    return ProtocolConfig.from_file(path)
