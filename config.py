"""
Configuration constants for the Roulette Block Strategy service.
Single source of truth for all tunable parameters.
"""

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# ─── Session Defaults ────────────────────────────────────────────────
DEFAULT_UNIT_VALUE = 5              # $5 per unit (U) unless the session overrides it
DEFAULT_INITIAL_BALANCE = 0         # Set 0 if you only care about P/L

# ─── Block Strategy ──────────────────────────────────────────────────
# Anchor bet is picked once per fixed 10-spin block.
# Mix bet is picked once per variable block of 3-6 spins.
ANCHOR_BLOCK_SIZE = 10
MIX_BLOCK_BASE = 3                  # Mix block size = 3 + (seed % 4)
MIX_BLOCK_SPREAD = 4
BOOTSTRAP_SEED = 37                 # Seed used when no previous outcome exists (same as "00")
FLIP_LOSS_RUN = 2                   # Consecutive anchor losses that flip the anchor for the block

# ─── Party Trigger ───────────────────────────────────────────────────
PARTY_PNL_TRIGGER = 4               # Party bet unlocks at P/L >= +4U
PARTY_SEED_DIVISOR = 7              # ...or when the previous seed is divisible by 7

# ─── Payout Table (units won per 1U stake) ───────────────────────────
PAYOUTS = {
    'anchor': 1,          # Even-money: color / parity / high-low
    'mix': 2,             # Dozen or column
    'party': 8,           # 4-number corner
}
STAKE_UNITS = 1                     # Every recommended bet stakes 1U; a loss costs 1U

# ─── Double-Zero Wheel Layout ────────────────────────────────────────
ZERO_OUTCOMES = ('0', '00')
VALID_OUTCOMES = ZERO_OUTCOMES + tuple(str(n) for n in range(1, 37))

RED_NUMBERS = {1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36}

LOW_NUMBERS = set(range(1, 19))

# ─── File Paths ───────────────────────────────────────────────────────
DATA_DIR = os.environ.get('BLOCKBET_DATA_DIR', os.path.join(BASE_DIR, 'data'))
SESSIONS_DIR = os.path.join(DATA_DIR, 'sessions')

# ─── Server Settings ─────────────────────────────────────────────────
HOST = os.environ.get('BLOCKBET_HOST', '0.0.0.0')
PORT = int(os.environ.get('BLOCKBET_PORT', 5050))
DEBUG = os.environ.get('BLOCKBET_DEBUG', '0') == '1'
SECRET_KEY = os.environ.get('BLOCKBET_SECRET_KEY', 'roulette-block-strategy-2024')
ASYNC_MODE = os.environ.get('BLOCKBET_ASYNC_MODE', 'eventlet')
