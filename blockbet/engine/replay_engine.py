"""
Replay Engine - Block Strategy (Anchor / Mix / Party).

Every call replays the full session history from spin 1:
- Anchor (BET 1): one of 6 even-money options per 10-spin block, picked by seed.
  Two anchor losses in a row flip it to the opposite side for the rest of the block.
- Mix (BET 2): a dozen or a column, re-picked every 3-6 spins by seed.
- Party (BET 3): a 4-number corner, at most once per anchor block, unlocked
  when P/L >= +4U or the previous seed is divisible by 7.

A block's seed is the seed of the outcome just before its first spin
(37 when the block opens the session). The engine never touches storage
and never mutates its input.
"""

import math
from collections import namedtuple
from dataclasses import dataclass, replace
from functools import reduce
from typing import Optional

from config import (
    ANCHOR_BLOCK_SIZE, MIX_BLOCK_BASE, MIX_BLOCK_SPREAD, BOOTSTRAP_SEED,
    FLIP_LOSS_RUN, PARTY_PNL_TRIGGER, PARTY_SEED_DIVISOR, PAYOUTS, STAKE_UNITS,
)
from blockbet.engine.outcomes import classify, numeric_value, get_dozen, get_column


AnchorOption = namedtuple('AnchorOption', ['kind', 'value', 'label', 'pair', 'pair_label'])
MixOption = namedtuple('MixOption', ['kind', 'target', 'label'])
PartyCorner = namedtuple('PartyCorner', ['label', 'numbers'])
SessionParams = namedtuple('SessionParams', ['unit_value', 'initial_balance'])

# Fixed cycle, indexed by seed % 6
ANCHOR_CYCLE = (
    AnchorOption('color', 'black', 'BLACK', 'red', 'RED'),
    AnchorOption('parity', 'odd', 'ODD', 'even', 'EVEN'),
    AnchorOption('color', 'red', 'RED', 'black', 'BLACK'),
    AnchorOption('parity', 'even', 'EVEN', 'odd', 'ODD'),
    AnchorOption('range', 'low', '1-18', 'high', '19-36'),
    AnchorOption('range', 'high', '19-36', 'low', '1-18'),
)

# Odd seed -> dozens, even seed -> columns; slot = seed % 3
DOZEN_OPTIONS = (
    MixOption('dozen', 1, 'Dozen 1 (1-12)'),
    MixOption('dozen', 2, 'Dozen 2 (13-24)'),
    MixOption('dozen', 3, 'Dozen 3 (25-36)'),
)
COLUMN_OPTIONS = (
    MixOption('column', 1, 'Col 1 (1,4,7...)'),
    MixOption('column', 2, 'Col 2 (2,5,8...)'),
    MixOption('column', 3, 'Col 3 (3,6,9...)'),
)

PARTY_CORNERS = (
    PartyCorner('26-27-29-30', (26, 27, 29, 30)),
    PartyCorner('14-15-17-18', (14, 15, 17, 18)),
    PartyCorner('8-9-11-12', (8, 9, 11, 12)),
    PartyCorner('2-3-5-6', (2, 3, 5, 6)),
    PartyCorner('20-21-23-24', (20, 21, 23, 24)),
    PartyCorner('32-33-35-36', (32, 33, 35, 36)),
)

PARTY_PNL_REASON = f'Trigger: P/L ≥ +{PARTY_PNL_TRIGGER}U'
PARTY_SEED_REASON = f'Trigger: Seed % {PARTY_SEED_DIVISOR} == 0'


@dataclass(frozen=True)
class BetRecommendation:
    name: str
    category: str
    stake_units: int
    rationale: str

    def to_dict(self):
        return {
            'name': self.name,
            'category': self.category,
            'stake_units': self.stake_units,
            'rationale': self.rationale,
        }


@dataclass(frozen=True)
class ReplayState:
    """Accumulator threaded through the per-spin fold."""
    pnl_units: int = 0
    spins_played: int = 0
    prev_seed: Optional[int] = None
    anchor: Optional[AnchorOption] = None
    anchor_results: tuple = ()          # True = anchor win, current anchor block only
    party_used: bool = False            # Reset every anchor block
    party_count: int = 0                # Never reset, drives corner rotation
    mix: Optional[MixOption] = None
    mix_seed: Optional[int] = None
    mix_block_size: int = 0
    mix_spins_in_block: int = 0


@dataclass(frozen=True)
class GameState:
    unit_value: float
    initial_balance: float
    pnl_units: int
    pnl_currency: float
    current_balance: float
    total_spins: int
    current_block_number: int
    party_mode_active: bool
    next_bets: tuple
    last_outcome: Optional[str]
    full_history: tuple

    def to_dict(self):
        return {
            'unit_value': self.unit_value,
            'initial_balance': self.initial_balance,
            'pnl_units': self.pnl_units,
            'pnl_currency': self.pnl_currency,
            'current_balance': self.current_balance,
            'total_spins': self.total_spins,
            'current_block_number': self.current_block_number,
            'party_mode_active': self.party_mode_active,
            'next_bets': [bet.to_dict() for bet in self.next_bets],
            'last_outcome': self.last_outcome,
            'full_history': [dict(record) for record in self.full_history],
        }


# ─── Block & Seed Derivation ──────────────────────────────────────────

def block_number(spin_index):
    return math.ceil(spin_index / ANCHOR_BLOCK_SIZE)


def block_position(spin_index):
    """0 for the first spin of an anchor block."""
    return (spin_index - 1) % ANCHOR_BLOCK_SIZE


def select_anchor(seed):
    return ANCHOR_CYCLE[seed % len(ANCHOR_CYCLE)]


def select_mix(seed):
    """Return (mix option, mix block size) for a block seed."""
    options = DOZEN_OPTIONS if seed % 2 != 0 else COLUMN_OPTIONS
    return options[seed % 3], MIX_BLOCK_BASE + seed % MIX_BLOCK_SPREAD


def select_corner(seed, grant_count):
    return PARTY_CORNERS[(seed + grant_count) % len(PARTY_CORNERS)]


def flip_anchor(option):
    return AnchorOption(option.kind, option.pair, option.pair_label, option.value, option.label)


def has_flipped(results):
    """True once any run of FLIP_LOSS_RUN consecutive losses appears in the block."""
    run = 0
    for won in results:
        run = 0 if won else run + 1
        if run >= FLIP_LOSS_RUN:
            return True
    return False


def _seed_source(state):
    return BOOTSTRAP_SEED if state.prev_seed is None else state.prev_seed


def _open_blocks(state, spin_index):
    """Start a new anchor block and/or mix block if spin_index opens one."""
    if block_position(spin_index) == 0:
        state = replace(
            state,
            anchor=select_anchor(_seed_source(state)),
            anchor_results=(),
            party_used=False,
        )
    if state.mix_spins_in_block == 0:
        seed = _seed_source(state)
        mix, size = select_mix(seed)
        state = replace(state, mix=mix, mix_seed=seed, mix_block_size=size)
    return state


def current_anchor(state):
    """Return (anchor in play, flipped?) for the next spin of the block."""
    if has_flipped(state.anchor_results):
        return flip_anchor(state.anchor), True
    return state.anchor, False


def party_trigger(state):
    """Rationale string if a party bet is due on the next spin, else None.

    Uses P/L before the next spin is settled.
    """
    if state.party_used:
        return None
    if state.pnl_units >= PARTY_PNL_TRIGGER:
        return PARTY_PNL_REASON
    if state.prev_seed is not None and state.prev_seed % PARTY_SEED_DIVISOR == 0:
        return PARTY_SEED_REASON
    return None


# ─── Settlement ───────────────────────────────────────────────────────

def anchor_wins(anchor, info):
    # OutcomeInfo exposes color / parity / range under the anchor kind names
    return getattr(info, anchor.kind) == anchor.value


def mix_wins(mix, outcome):
    if mix.kind == 'dozen':
        return get_dozen(outcome) == mix.target
    return get_column(outcome) == mix.target


def corner_wins(corner, outcome):
    return numeric_value(outcome) in corner.numbers


def _payout(bet_type, won):
    return PAYOUTS[bet_type] if won else -STAKE_UNITS


# ─── Replay Loop ──────────────────────────────────────────────────────

def _apply_spin(state, outcome):
    state = _open_blocks(state, state.spins_played + 1)
    anchor, _ = current_anchor(state)
    trigger = party_trigger(state)
    info = classify(outcome)

    anchor_won = anchor_wins(anchor, info)
    pnl = state.pnl_units + _payout('anchor', anchor_won)

    if state.mix is not None:
        pnl += _payout('mix', mix_wins(state.mix, outcome))

    party_used = state.party_used
    party_count = state.party_count
    if trigger:
        corner = select_corner(_seed_source(state), party_count)
        pnl += _payout('party', corner_wins(corner, outcome))
        party_used = True
        party_count += 1

    mix_spins = state.mix_spins_in_block + 1
    if mix_spins >= state.mix_block_size:
        mix_spins = 0

    return replace(
        state,
        pnl_units=pnl,
        spins_played=state.spins_played + 1,
        prev_seed=info.seed,
        anchor_results=state.anchor_results + (anchor_won,),
        party_used=party_used,
        party_count=party_count,
        mix_spins_in_block=mix_spins,
    )


def replay_outcomes(outcomes):
    """Fold an ordered iterable of outcome literals into the final ReplayState."""
    return reduce(_apply_spin, outcomes, ReplayState())


# ─── Next-Bet Prediction ──────────────────────────────────────────────

def predict_next_bets(state):
    """Recommendations for the spin after the last replayed one."""
    state = _open_blocks(state, state.spins_played + 1)

    anchor, flipped = current_anchor(state)
    bets = [BetRecommendation(
        name=f'Anchor: {anchor.label}',
        category='anchor',
        stake_units=STAKE_UNITS,
        rationale='Flipped (2-loss rule)' if flipped else 'Standard rotation',
    )]

    if state.mix is not None:
        parity = 'Odd' if state.mix_seed % 2 != 0 else 'Even'
        bets.append(BetRecommendation(
            name=f'Mix: {state.mix.label}',
            category='mix',
            stake_units=STAKE_UNITS,
            rationale=f'Seed {state.mix_seed} ({parity})',
        ))

    trigger = party_trigger(state)
    if trigger:
        corner = select_corner(_seed_source(state), state.party_count)
        bets.append(BetRecommendation(
            name=f'Party: {corner.label}',
            category='party',
            stake_units=STAKE_UNITS,
            rationale=trigger,
        ))

    return bets


# ─── Result Assembly ──────────────────────────────────────────────────

def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_params(params):
    if not _is_number(params.unit_value) or not math.isfinite(params.unit_value) \
            or params.unit_value <= 0:
        raise ValueError(f'unit_value must be a positive finite number, got {params.unit_value!r}')
    if not _is_number(params.initial_balance) or not math.isfinite(params.initial_balance):
        raise ValueError(f'initial_balance must be a finite number, got {params.initial_balance!r}')


def _normalize_history(history):
    """Copy spin records into sequence_index order.

    Bare outcome literals are accepted and numbered in the order given.
    """
    records = []
    for position, item in enumerate(history, start=1):
        if isinstance(item, str):
            records.append({'sequence_index': position, 'outcome': item})
        else:
            records.append(dict(item))
    return sorted(records, key=lambda r: r['sequence_index'])


def compute_state(history, params):
    """Replay a session's history and return the GameState snapshot.

    Args:
        history: spin records ({'sequence_index', 'outcome', ...}) or outcome literals.
        params: SessionParams with an already-normalized unit_value / initial_balance.
    """
    _check_params(params)
    records = _normalize_history(history)

    final = replay_outcomes(record['outcome'] for record in records)
    next_bets = tuple(predict_next_bets(final))

    pnl_currency = final.pnl_units * params.unit_value
    total_spins = len(records)

    return GameState(
        unit_value=params.unit_value,
        initial_balance=params.initial_balance,
        pnl_units=final.pnl_units,
        pnl_currency=pnl_currency,
        current_balance=params.initial_balance + pnl_currency,
        total_spins=total_spins,
        current_block_number=block_number(total_spins + 1),
        party_mode_active=any(bet.category == 'party' for bet in next_bets),
        next_bets=next_bets,
        last_outcome=records[-1]['outcome'] if records else None,
        full_history=tuple(records),
    )
