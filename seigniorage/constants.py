"""
Seigniorage Protocol Constants

This module consolidates the global constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE VALUES BELOW DEFINE THE MONETARY POLICY. CHANGING THEM CHANGES HOW
# SUPPLY EXPANDS AND CONTRACTS. RUNTIME OVERRIDES BELONG IN config.toml.

# ==================================================================================
# FIXED-POINT ARITHMETIC
# ==================================================================================
DECIMALS = 18
UNIT = 10 ** DECIMALS  # one whole token / a price of exactly 1.0
PERCENT = 100          # rates are whole percentages

UINT32_MODULUS = 2 ** 32    # oracle timestamps wrap here
UINT256_MODULUS = 2 ** 256  # cumulative price accumulators wrap here


# ==================================================================================
# LEDGER
# ==================================================================================
BLOCK_TIME = 13  # seconds between blocks when mining without an explicit delta
ZERO_ADDRESS = "0x" + "00" * 20


# ==================================================================================
# EPOCHS
# ==================================================================================
DAY = 24 * 60 * 60
EPOCH_PERIOD = DAY  # treasury and oracle epoch length


# ==================================================================================
# TREASURY POLICY DEFAULTS
# ==================================================================================
CASH_PRICE_CEILING_PCT = 105       # expansion above 1.05
CASH_PRICE_FLOOR_PCT = 95          # debt grows at or below 0.95
BOND_REWARD_THRESHOLD_PCT = 85     # bond bonus rewards at or below 0.85
MIN_BOND_PRICE = UNIT // 2         # bond price never decays below 0.50
BOND_PRICE_DELTA = UNIT // 100     # bond price decays 0.01 per contraction epoch
BOND_REWARD_RATE = 1               # % of bond supply minted as bonus reward

MAX_INFLATION_RATE = 10            # % of circulating supply per epoch
DEBT_ADD_RATE = 2                  # % of circulating supply added per epoch
MAX_DEBT_RATE = 20                 # % of circulating supply
FUND_ALLOCATION_RATE = 2           # % of seigniorage to the development fund

SHARE_BOARDROOM_ALLOCATION = 60    # % of boardroom reserve to share stakers
LP_BOARDROOM_ALLOCATION = 40       # % of boardroom reserve to LP stakers


# ==================================================================================
# DISTRIBUTOR DEFAULTS
# ==================================================================================
BOARDROOM_WITHDRAW_LOCKUP_EPOCHS = 6
BOARDROOM_REWARD_LOCKUP_EPOCHS = 3
BOARDROOM_MAX_LOCKUP_EPOCHS = 56
BOARDROOM_EPOCH_PERIOD = 8 * 60 * 60

REWARD_POOL_DURATION = 5 * DAY


# ==================================================================================
# EXCHANGE
# ==================================================================================
MINIMUM_LIQUIDITY = 10 ** 3
SWAP_FEE_NUMERATOR = 997
SWAP_FEE_DENOMINATOR = 1000


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Only known literals go through ast.literal_eval.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in LOGGER_DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
