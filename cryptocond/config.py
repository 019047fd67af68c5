"""
Configuration module for cryptocond.

Centralizes settings with environment variable support and validation.
"""

import os
from typing import Dict

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("CRYPTOCOND_ENV", "dev")  # dev|stage|prod

# bcrypt cost factor used for password-derived secrets (4..31, minimum applied: 10)
BCRYPT_ROUNDS = int(os.getenv("CRYPTOCOND_BCRYPT_ROUNDS", "10"))

# Logging
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_LEVEL = os.getenv("CRYPTOCOND_LOG_LEVEL", "WARNING")
LOG_JSON = os.getenv("CRYPTOCOND_LOG_JSON", "true").lower() in ("1", "true", "yes")

# ============================================================
# Protocol Constants
# ============================================================

BCRYPT_MIN_ROUNDS = 10
BCRYPT_ROUNDS_RANGE = (4, 31)

# Size of random and password-derived preimages, in bytes
PREIMAGE_SIZE = 32

# Ledger cost of finishing an escrow with a fulfillment
FULFILLMENT_BASE_FEE_DROPS = 330
DROPS_PER_PREIMAGE_BLOCK = 10
PREIMAGE_BLOCK_SIZE = 16


def default_rounds() -> int:
    """Cost factor used when the caller does not supply one."""
    return BCRYPT_ROUNDS


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, bool]:
    """
    Validate configured values.
    Returns dict of setting -> valid.
    """
    low, high = BCRYPT_ROUNDS_RANGE
    return {
        "env": ENV in ("dev", "stage", "prod"),
        "bcrypt_rounds": low <= BCRYPT_ROUNDS <= high,
        "log_level": LOG_LEVEL.upper() in LOG_LEVELS,
    }

