"""
Sysbridge Constants

Host ledger protocol constants, plus the logger settings read from `.env`
(process environment variables take precedence over the file).
"""
import os

from dotenv import dotenv_values

_dotenv = dotenv_values(".env")


def _setting(key: str, default: str) -> str:
    value = os.environ.get(key, _dotenv.get(key))
    return default if value is None or not value.strip() else value.strip()


def _flag(key: str, default: bool) -> bool:
    return _setting(key, str(default)).lower() in ("1", "true", "yes", "on")


# =============================================================================
# LOGGING
# =============================================================================
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

LOG_LEVEL = _setting("LOG_LEVEL", "INFO")
LOG_FORMAT = _setting("LOG_FORMAT", DEFAULT_LOG_FORMAT)
LOG_DATE_FORMAT = _setting("LOG_DATE_FORMAT", "%Y-%m-%dT%H:%M:%S")
LOG_CONSOLE_HIGHLIGHTING = _flag("LOG_CONSOLE_HIGHLIGHTING", True)
LOG_FILE_OUTPUT = _flag("LOG_FILE_OUTPUT", False)
LOG_MAX_FILE_SIZE = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3


# WARNING: THE VALUES BELOW MIRROR THE HOST LEDGER. CHANGING THEM MAKES THE
# ESTIMATOR DISAGREE WITH THE HOST'S OWN RENT CALCULATION.

# =============================================================================
# INTEGER LIMITS
# =============================================================================
U8_MAX = 2**8 - 1
U64_MAX = 2**64 - 1


# =============================================================================
# RENT PARAMETERS
# =============================================================================
# Bytes of account metadata charged on top of the declared data length
ACCOUNT_STORAGE_OVERHEAD = 128
# u64 lamports_per_byte_year + f64 exemption_threshold + u8 burn_percent
RENT_DATA_LENGTH = 17

DEFAULT_LAMPORTS_PER_BYTE_YEAR = 3480  # 1_000_000_000 / 100 * 365 / (1024 * 1024)
DEFAULT_EXEMPTION_THRESHOLD = 2.0
DEFAULT_BURN_PERCENT = 50

# rent_epoch assigned to accounts created rent-exempt
RENT_EXEMPT_RENT_EPOCH = U64_MAX


# =============================================================================
# ACCOUNT PARAMETERS
# =============================================================================
LAMPORTS_PER_SOL = 1_000_000_000
PUBKEY_BYTES = 32
MAX_SEED_LEN = 32
MAX_SEEDS = 16
MAX_PERMITTED_DATA_LENGTH = 10 * 1024 * 1024
PDA_MARKER = b"ProgramDerivedAddress"
SPL_TOKEN_ACCOUNT_SIZE = 165


# =============================================================================
# WELL-KNOWN ADDRESSES
# =============================================================================
SYSTEM_PROGRAM_ADDRESS = '11111111111111111111111111111111'
TOKEN_PROGRAM_ADDRESS = 'TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA'
RENT_SYSVAR_ADDRESS = 'SysvarRent111111111111111111111111111111111'
EVM_LOADER_ADDRESS = 'NeonVMyRX5GbCrsAHnUwx1nYYoJAtskU1bWUo6JGNyG'

# Seed prefix the EVM loader uses when deriving an EVM address's native account
ACCOUNT_SEED_VERSION = 3
