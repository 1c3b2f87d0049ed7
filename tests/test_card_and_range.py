"""
Tests for card indexing and range parsing: card <-> index conversions, the 1326-entry
hand table, range grammar (pairs, suited/offsuit classes, plus and dash ranges, specific
combos, weights) and the errors raised for malformed text.
"""

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from postflop.constants import NOT_DEALT, NUM_COMBOS
from postflop.engine.card import (
 HAND_TABLE,
 card_from_str,
 card_pair_to_index,
 card_to_string,
 flop_from_str,
 hand_to_string,
 index_to_card_pair,
 parse_board_card,
)
from postflop.engine.range import Range
from postflop.errors import ConfigurationError


def test_card_codes_follow_rank_major_suit_minor_order():
	"""Deuce of clubs is 0, ace of spades is 51 and string conversion is symmetric."""
	assert card_from_str("2c") == 0
	assert card_from_str("2d") == 1
	assert card_from_str("As") == 51
	assert card_from_str("td") == card_from_str("Td")
	assert card_to_string(51) == "As"
	assert card_to_string(NOT_DEALT) == "--"


def test_invalid_cards_raise_configuration_error_with_card_category():
	"""Unknown ranks, unknown suits and wrong lengths are rejected."""
	for bad in ("1c", "Ax", "A", "Asd"):
		with pytest.raises(ConfigurationError) as ei:
			card_from_str(bad)
		assert ei.value.category == "card"


def test_flop_parsing_sorts_and_rejects_duplicates():
	"""flop_from_str returns the three cards ascending and refuses repeated cards."""
	assert flop_from_str("Qs Jh 2c") == (0, 38, 43)
	with pytest.raises(ConfigurationError):
		flop_from_str("QsQs2c")
	with pytest.raises(ConfigurationError):
		flop_from_str("QsJh")
	assert parse_board_card("") == NOT_DEALT
	assert parse_board_card(None) == NOT_DEALT
	assert parse_board_card("8d") == 25


def test_hand_table_covers_every_pair_once():
	"""The table has 1326 ascending pairs and card_pair_to_index inverts it."""
	assert len(HAND_TABLE) == NUM_COMBOS
	assert HAND_TABLE[0] == (0, 1)
	assert HAND_TABLE[-1] == (50, 51)
	assert len(set(HAND_TABLE)) == NUM_COMBOS
	assert card_pair_to_index(51, 50) == NUM_COMBOS - 1
	with pytest.raises(ConfigurationError):
		card_pair_to_index(3, 3)
	with pytest.raises(ConfigurationError):
		index_to_card_pair(NUM_COMBOS)
	assert hand_to_string((47, 51)) == "AsKs"


@settings(deadline=None, max_examples=80)
@given(c1=st.integers(0, 51), c2=st.integers(0, 51))
def test_card_pair_index_roundtrip_hypothesis(c1, c2):
	"""For any two distinct cards the index maps back to the sorted pair."""
	if c1 == c2:
		return
	idx = card_pair_to_index(c1, c2)
	assert 0 <= idx < NUM_COMBOS
	assert index_to_card_pair(idx) == (min(c1, c2), max(c1, c2))


def test_range_grammar_combo_counts():
	"""Pairs, suited, offsuit, any-suit, plus, dash and specific combos expand correctly."""
	assert Range.parse("AA").num_combos() == 6
	assert Range.parse("AKs").num_combos() == 4
	assert Range.parse("AKo").num_combos() == 12
	assert Range.parse("AK").num_combos() == 16
	assert Range.parse("QQ+").num_combos() == 18
	assert Range.parse("A2s+").num_combos() == 48
	assert Range.parse("KQs-K9s").num_combos() == 16
	assert Range.parse("22-44").num_combos() == 18
	assert Range.parse("AsKs").num_combos() == 1
	assert Range.parse("AA,KK").num_combos() == 12


def test_range_weights_and_later_tokens_overwrite():
	"""':w' sets a weight and a later token overwrites an earlier one."""
	r = Range.parse("AA:0.5")
	assert r.num_combos() == pytest.approx(3.0)
	r2 = Range.parse("AA,AsAh:0.25")
	assert r2.weight(card_from_str("As"), card_from_str("Ah")) == pytest.approx(0.25)
	assert r2.num_combos() == pytest.approx(5.25)


def test_range_errors_carry_range_category():
	"""Malformed range text raises ConfigurationError tagged 'range'."""
	for bad in ("", "AXs", "AAs", "AK:1.5", "AKs-QJs", "AK:abc"):
		with pytest.raises(ConfigurationError) as ei:
			Range.parse(bad)
		assert ei.value.category == "range"


def test_range_from_weights_validates_shape_and_bounds():
	"""Weights must be 1326 finite values in [0, 1]."""
	u = Range.uniform()
	assert u.num_combos() == pytest.approx(float(NUM_COMBOS))
	assert not u.is_empty()
	assert Range().is_empty()
	with pytest.raises(ConfigurationError):
		Range.from_weights(np.ones(10))
	bad = np.ones(NUM_COMBOS)
	bad[3] = 2.0
	with pytest.raises(ConfigurationError):
		Range.from_weights(bad)
	assert Range.from_weights(np.ones(NUM_COMBOS)) == u
