"""
Outcome Classifier - maps a spin literal ("0", "00", "1".."36") to the
properties every bet is settled on: color, parity, range and seed.

Validation lives here too, but it is only called at the boundary
(HTTP / SocketIO / storage). Anything reaching classify() should already
be a canonical literal; a stray one still raises InvalidOutcome.
"""

from collections import namedtuple

from config import VALID_OUTCOMES, ZERO_OUTCOMES, RED_NUMBERS, LOW_NUMBERS


OutcomeInfo = namedtuple('OutcomeInfo', ['color', 'parity', 'range', 'seed'])

_VALID = frozenset(VALID_OUTCOMES)


class InvalidOutcome(ValueError):
    """Raised when a spin literal is outside {0, 00, 1..36}."""


def is_valid_outcome(literal):
    return isinstance(literal, str) and literal.strip() in _VALID


def validate_outcome(literal):
    """Return the canonical outcome literal or raise InvalidOutcome.

    Strings are stripped. Plain integers 0-36 are accepted and converted;
    "00" can only be submitted as a string.
    """
    if isinstance(literal, bool):
        raise InvalidOutcome(f'Invalid outcome {literal!r}. Enter 0, 00 or 1-36.')
    if isinstance(literal, int):
        literal = str(literal)
    if not is_valid_outcome(literal):
        raise InvalidOutcome(f'Invalid outcome {literal!r}. Enter 0, 00 or 1-36.')
    return literal.strip()


def numeric_value(outcome):
    """Face value 1-36, or None for the green pockets."""
    if outcome in ZERO_OUTCOMES:
        return None
    return int(outcome)


def get_color(outcome):
    n = numeric_value(outcome)
    if n is None:
        return 'green'
    return 'red' if n in RED_NUMBERS else 'black'


def get_parity(outcome):
    n = numeric_value(outcome)
    if n is None:
        return 'none'
    return 'odd' if n % 2 else 'even'


def get_range(outcome):
    n = numeric_value(outcome)
    if n is None:
        return 'none'
    return 'low' if n in LOW_NUMBERS else 'high'


def get_dozen(outcome):
    n = numeric_value(outcome)
    if n is None:
        return None
    return (n - 1) // 12 + 1


def get_column(outcome):
    n = numeric_value(outcome)
    if n is None:
        return None
    return 3 if n % 3 == 0 else n % 3


def get_seed(outcome):
    if outcome == '00':
        return 37
    if outcome == '0':
        return 0
    return int(outcome)


def classify(outcome):
    if outcome not in _VALID:
        raise InvalidOutcome(f'Invalid outcome {outcome!r}. Enter 0, 00 or 1-36.')
    return OutcomeInfo(
        color=get_color(outcome),
        parity=get_parity(outcome),
        range=get_range(outcome),
        seed=get_seed(outcome),
    )
