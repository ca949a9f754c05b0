"""
Bridgegate Constants

This module consolidates the global constants and the `.env`-driven settings
used throughout the bridge. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

BRIDGE_DEFAULTS = {
    'BRIDGEGATE_CONFIG':               'config.toml',
    'BRIDGEGATE_LOG_FILE':             '',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# PROTOCOL CONSTANTS
# ==================================================================================
BRIDGE_VERSION = '1.0'

# The zero address doubles as the identity of the native asset in corridors.
ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'
NATIVE_ASSET = ZERO_ADDRESS

ADDRESS_SIZE = 20
WORD_SIZE = 32
HASH_SIZE = 32
PRIVATE_KEY_SIZE = 32
SIGNATURE_SIZE = 65
UINT256_MAX = 2 ** 256 - 1

# Prefix applied to every canonical message before validators sign it
PERSONAL_MESSAGE_PREFIX = b'\x19Ethereum Signed Message:\n'


# ==================================================================================
# DEPLOYMENT DEFAULTS
# ==================================================================================
DEFAULT_CHAIN_ID = 123
DEFAULT_VALIDATOR_FEE = 80


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

    def __hash__(self):
        return hash(bool(self))


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = BRIDGE_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Other values are returned untouched.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
