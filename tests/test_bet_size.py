"""
Tests for the bet abstraction: parsing of the sizing grammar, canonical string form,
rule resolution for opening bets and raises (pot relative, previous-bet relative,
additive with raise cap, geometric with max ratio, all-in) and parse errors.
"""

import math
import pytest

from postflop.errors import ConfigurationError
from postflop.tree.bet_size import (
 BetSize,
 BetSizeKind,
 BetSizeOptions,
 DonkSizeOptions,
 bet_amount,
 parse_bet_size,
 parse_bet_sizes,
 raise_to_amount,
 round_half_up,
)


def test_parse_each_rule_kind():
	"""Every token form maps to the matching BetSize variant and payload."""
	assert parse_bet_size("60%", False) == BetSize.pot_relative(0.6)
	assert parse_bet_size("2.5x", True) == BetSize.prev_bet_relative(2.5)
	assert parse_bet_size("10c", False) == BetSize.additive(10, 0)
	assert parse_bet_size("10c3r", True) == BetSize.additive(10, 3)
	assert parse_bet_size("e", False) == BetSize.geometric(0, math.inf)
	assert parse_bet_size("2e", False) == BetSize.geometric(2, math.inf)
	assert parse_bet_size("2e75%", False) == BetSize.geometric(2, 0.75)
	assert parse_bet_size("a", False).kind == BetSizeKind.ALLIN
	assert parse_bet_size(" A ", False) == BetSize.allin()


def test_canonical_strings_reparse_to_the_same_rule():
	"""str() of a rule is accepted by the parser and yields an equal rule."""
	for token in ("60%", "2.5x", "10c", "10c3r", "e", "2e75%", "a"):
		rule = parse_bet_size(token, True)
		assert str(rule) == token
		assert parse_bet_size(str(rule), True) == rule


def test_parse_errors_use_bet_size_category():
	"""Invalid tokens, multipliers on bets, caps on bets and tiny multipliers are rejected."""
	cases = [
	 ("3x", False),
	 ("1x", True),
	 ("0.5x", True),
	 ("abc", False),
	 ("-5%", False),
	 ("0%", False),
	 ("3c2r", False),
	 ("c", False),
	 ("2e50", False),
	 ("", False),
	]
	for token, allow in cases:
		with pytest.raises(ConfigurationError) as ei:
			parse_bet_size(token, allow)
		assert ei.value.category == "bet_size"


def test_parse_lists_and_options():
	"""Comma lists keep declaration order; options split bet and raise rules."""
	rules = parse_bet_sizes("100%, 33%,a", False)
	assert [str(r) for r in rules] == ["100%", "33%", "a"]
	assert parse_bet_sizes(None, False) == ()
	opts = BetSizeOptions.parse("50%,a", "2.5x", raise_limit=2)
	assert len(opts.bet) == 2
	assert opts.raise_[0].kind == BetSizeKind.PREV_BET_RELATIVE
	assert opts.raise_limit == 2
	with pytest.raises(ConfigurationError):
		BetSizeOptions.parse("50%", "2x", raise_limit=-1)
	assert DonkSizeOptions.parse(None) is None
	assert DonkSizeOptions.parse("30%").donk == (BetSize.pot_relative(0.3),)


def test_round_half_up():
	"""Halves round up, everything else to the nearest integer."""
	assert round_half_up(2.5) == 3
	assert round_half_up(7.5) == 8
	assert round_half_up(2.49) == 2
	assert round_half_up(0.0) == 0


def test_bet_amount_resolution():
	"""Opening bets resolve against the street pot and the stack; result is at least 1."""
	assert bet_amount(BetSize.pot_relative(0.5), 6, 25, 3) == 3
	assert bet_amount(BetSize.pot_relative(0.01), 6, 25, 3) == 1
	assert bet_amount(BetSize.additive(7), 6, 25, 3) == 7
	assert bet_amount(BetSize.allin(), 6, 25, 3) == 25
	# spr 4.5 over two streets: ((2*4.5+1)**0.5 - 1) / 2 = 1.081...
	assert bet_amount(BetSize.geometric(2), 10, 45, 3) == 11
	assert bet_amount(BetSize.geometric(2, 0.75), 10, 45, 3) == 8
	assert bet_amount(BetSize.geometric(0), 10, 45, 1) == 45
	with pytest.raises(ConfigurationError):
		bet_amount(BetSize.prev_bet_relative(2.0), 6, 25, 3)


def test_raise_to_amount_resolution():
	"""Raises resolve to a street 'to' amount; additive caps block further raises."""
	# facing a bet of 3 into 6: pot is 9, pot after call 12
	assert raise_to_amount(BetSize.prev_bet_relative(2.5), 9, 3, 0, 25, 3, 0) == 8
	assert raise_to_amount(BetSize.pot_relative(1.0), 9, 3, 0, 25, 3, 0) == 15
	assert raise_to_amount(BetSize.additive(5), 9, 3, 0, 25, 3, 0) == 8
	assert raise_to_amount(BetSize.additive(5, 2), 9, 3, 0, 25, 3, 1) == 8
	assert raise_to_amount(BetSize.additive(5, 2), 9, 3, 0, 25, 3, 2) is None
	assert raise_to_amount(BetSize.allin(), 9, 3, 0, 25, 3, 0) == 25
	geo = raise_to_amount(BetSize.geometric(1), 9, 3, 0, 25, 1, 0)
	assert geo == 25
