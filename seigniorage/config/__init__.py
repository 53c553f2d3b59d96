"""
Seigniorage Unified Configuration

Loads all sections of config.toml.
Environment variables override TOML values.
"""

from .loader import (
    ProtocolConfig,
    ChainConfig,
    EpochConfig,
    OracleConfig,
    TreasuryConfig,
    BoardroomConfig,
    RewardPoolConfig,
    LoggingConfig,
    load_config,
)

__all__ = [
    "ProtocolConfig",
    "ChainConfig",
    "EpochConfig",
    "OracleConfig",
    "TreasuryConfig",
    "BoardroomConfig",
    "RewardPoolConfig",
    "LoggingConfig",
    "load_config",
]
