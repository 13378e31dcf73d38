"""
Token Vesting Ledger Constants

All ledger constants defined here for single source of truth.
"""

from typing import Final, List, Tuple

# ==============================================================================
# TOKEN UNITS
# ==============================================================================

DECIMALS: Final[int] = 18                       # ERC-20 style decimals
ONE_TOKEN: Final[int] = 10 ** DECIMALS          # Atomic units per token

ADDRESS_SIZE: Final[int] = 20                   # 160-bit identities
KECCAK_256_OUTPUT_SIZE: Final[int] = 32

# Default token metadata
TOKEN_NAME: Final[str] = "Flan Token"
TOKEN_SYMBOL: Final[str] = "FLAN"
TOKEN_INITIAL_SUPPLY: Final[int] = 100_000_000  # Whole tokens minted to owner
VESTING_LOCKED_SUPPLY: Final[int] = 50_000_000  # Whole tokens moved into the vault

# ==============================================================================
# SCHEDULE ARITHMETIC
# ==============================================================================

# Cumulative fractions are basis points; targets are floor(total * bps / 10000)
BPS_DENOMINATOR: Final[int] = 10_000

# ==============================================================================
# REFERENCE UNLOCK TIMESTAMPS (Unix seconds, UTC midnight)
# ==============================================================================

UNLOCK_2022_06_30: Final[int] = 1656547200
UNLOCK_2022_12_31: Final[int] = 1672444800
UNLOCK_2023_12_31: Final[int] = 1703980800
UNLOCK_2024_06_30: Final[int] = 1719705600
UNLOCK_2024_12_31: Final[int] = 1735603200

# (unlock_timestamp, cumulative_bps)
PRESALE_TRANCHES: Final[List[Tuple[int, int]]] = [
    (UNLOCK_2022_06_30, 2_500),
    (UNLOCK_2022_12_31, 5_000),
    (UNLOCK_2023_12_31, 10_000),
]

TREASURY_TRANCHES: Final[List[Tuple[int, int]]] = [
    (UNLOCK_2022_06_30, 2_000),
    (UNLOCK_2022_12_31, 4_000),
    (UNLOCK_2023_12_31, 7_000),
    (UNLOCK_2024_06_30, 10_000),
]

# Team vests slower, with the cliff at the second reference date
TEAM_TRANCHES: Final[List[Tuple[int, int]]] = [
    (UNLOCK_2022_12_31, 1_000),
    (UNLOCK_2023_12_31, 4_000),
    (UNLOCK_2024_06_30, 7_000),
    (UNLOCK_2024_12_31, 10_000),
]

# ==============================================================================
# TIME SOURCE
# ==============================================================================

NTP_DEFAULT_HOST: Final[str] = "pool.ntp.org"
NTP_QUERY_TIMEOUT_MS: Final[int] = 2000
NTP_RETRY_COUNT: Final[int] = 3

# ==============================================================================
# API
# ==============================================================================

API_DEFAULT_HOST: Final[str] = "127.0.0.1"
API_DEFAULT_PORT: Final[int] = 8645
API_MAX_BATCH_SIZE: Final[int] = 100

PROTOCOL_VERSION: Final[int] = 1
