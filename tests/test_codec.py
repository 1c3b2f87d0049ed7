"""
Tests for the binary codec: tagged-union roundtrips for actions, bet sizes, board states
and lifecycle states, structured values (tree config, card config, action tree,
bunching), out-of-range discriminants, bad option and bool tags, truncated input, and
tree nodes whose layout does not match their kind.
"""

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from postflop.constants import NUM_COMBOS
from postflop.engine.action import Action
from postflop.engine.board_state import BoardState
from postflop.errors import CodecError, UnexpectedVariantError
from postflop.game.bunching import BunchingData
from postflop.game.card_config import CardConfig
from postflop.game.game_state import State
from postflop.io.codec import (
 BinaryReader,
 BinaryWriter,
 read_action,
 read_bet_size,
 read_board_state,
 read_bunching,
 read_card_config,
 read_state,
 read_tree_config,
 read_tree_node,
 write_action,
 write_bet_size,
 write_board_state,
 write_bunching,
 write_card_config,
 write_state,
 write_tree_config,
 write_tree_node,
)
from postflop.tree.action_tree import (
 ActionTree,
 ActionTreeNode,
 PLAYER_CHANCE,
 PLAYER_OOP,
 PLAYER_TERMINAL_FLAG,
)
from postflop.tree.bet_size import BetSize, BetSizeOptions, DonkSizeOptions
from postflop.tree.tree_config import TreeConfig


def _roundtrip(write, read, value):
	w = BinaryWriter()
	write(w, value)
	data = w.getvalue()
	r = BinaryReader(data)
	out = read(r)
	r.expect_end()
	w2 = BinaryWriter()
	write(w2, out)
	assert w2.getvalue() == data
	return out


def _u32(value):
	w = BinaryWriter()
	w.u32(value)
	return BinaryReader(w.getvalue())


def test_action_variants_roundtrip():
	"""Every action variant decodes to an equal action with its payload."""
	for a in (
	 Action.none(),
	 Action.fold(),
	 Action.check(),
	 Action.call(),
	 Action.bet(3),
	 Action.raise_(8),
	 Action.allin(25),
	 Action.chance(51),
	 Action.chance(),
	):
		assert _roundtrip(write_action, read_action, a) == a


def test_bet_size_variants_roundtrip():
	"""f64 ratios, additive pairs and geometric (streets, max ratio) survive exactly."""
	for s in (
	 BetSize.pot_relative(0.6),
	 BetSize.prev_bet_relative(2.5),
	 BetSize.additive(10, 3),
	 BetSize.geometric(2, 0.75),
	 BetSize.geometric(),
	 BetSize.allin(),
	):
		assert _roundtrip(write_bet_size, read_bet_size, s) == s


def test_board_state_and_state_roundtrip():
	"""Plain enums encode as their u32 discriminant."""
	for b in BoardState:
		assert _roundtrip(write_board_state, read_board_state, b) == b
	for s in State:
		assert _roundtrip(write_state, read_state, s) == s
	w = BinaryWriter()
	write_state(w, State.SOLVED)
	assert w.getvalue() == b"\x04\x00\x00\x00"


@settings(deadline=None, max_examples=30)
@given(
 case=st.sampled_from([
  ("Action", read_action, 7),
  ("BetSize", read_bet_size, 4),
  ("BoardState", read_board_state, 2),
  ("State", read_state, 4),
 ]),
 extra=st.integers(min_value=1, max_value=2**32 - 100),
)
def test_out_of_range_discriminants_hypothesis(case, extra):
	"""A discriminant past the last variant names the type, the value and the range."""
	name, read, maximum = case
	found = maximum + extra
	with pytest.raises(UnexpectedVariantError) as ei:
		read(_u32(found))
	assert ei.value.type_name == name
	assert ei.value.found == found
	assert ei.value.allowed == (0, maximum)


def test_bad_option_and_bool_tags():
	"""Option and bool tags other than 0 or 1 are rejected."""
	r = BinaryReader(b"\x02")
	with pytest.raises(UnexpectedVariantError) as ei:
		r.option(lambda rr: rr.u32())
	assert ei.value.type_name == "Option"
	with pytest.raises(UnexpectedVariantError):
		BinaryReader(b"\x07").boolean()


def test_truncated_input_raises_codec_error():
	"""Every prefix of a valid encoding fails with CodecError, never a partial value."""
	w = BinaryWriter()
	write_action(w, Action.raise_(8))
	data = w.getvalue()
	i = 0
	while i < len(data):
		with pytest.raises(CodecError):
			read_action(BinaryReader(data[:i]))
		i += 1
	huge = BinaryWriter()
	huge.u64(2**40)
	with pytest.raises(CodecError):
		BinaryReader(huge.getvalue()).array("f8")


def test_tree_config_and_action_tree_roundtrip():
	"""A config with donk sizes and a raise limit rebuilds the same tree."""
	sizes = BetSizeOptions.parse("33%,e,a", "2.5x,4c2r", raise_limit=3)
	cfg = TreeConfig.with_uniform_sizes(
	 BoardState.TURN,
	 20,
	 90,
	 sizes,
	 donk=DonkSizeOptions.parse("25%"),
	 rake_rate=0.05,
	 rake_cap=3.0,
	)
	out = _roundtrip(write_tree_config, read_tree_config, cfg)
	assert out == cfg
	tree = ActionTree(cfg)
	root = _roundtrip(write_tree_node, read_tree_node, tree.root)
	assert root == tree.root
	assert ActionTree.from_root(out, root).num_nodes() == tree.num_nodes()


def _node_bytes(root):
	w = BinaryWriter()
	write_tree_node(w, root)
	return BinaryReader(w.getvalue())


def test_malformed_tree_nodes_are_rejected():
	"""Each node kind must keep its layout; unknown player codes are refused."""
	showdown = ActionTreeNode(PLAYER_TERMINAL_FLAG, BoardState.RIVER, 6)
	bad = [
	 ActionTreeNode(PLAYER_CHANCE, BoardState.TURN, 6),
	 ActionTreeNode(PLAYER_CHANCE, BoardState.TURN, 6, [Action.chance()], []),
	 ActionTreeNode(PLAYER_CHANCE, BoardState.TURN, 6, [Action.check()], [showdown]),
	 ActionTreeNode(PLAYER_OOP, BoardState.RIVER, 6),
	 ActionTreeNode(PLAYER_OOP, BoardState.RIVER, 6, [Action.chance()], [showdown]),
	 ActionTreeNode(PLAYER_TERMINAL_FLAG, BoardState.RIVER, 6, [Action.check()], [showdown]),
	 ActionTreeNode(5, BoardState.RIVER, 6),
	]
	for node in bad:
		with pytest.raises(CodecError):
			read_tree_node(_node_bytes(node))
	good = ActionTreeNode(PLAYER_CHANCE, BoardState.TURN, 6, [Action.chance()], [showdown])
	assert read_tree_node(_node_bytes(good)) == good


def test_invalid_stored_tree_config_is_a_codec_error():
	"""Bytes that decode to a non-positive pot are rejected at read time."""
	cfg = TreeConfig.with_uniform_sizes(BoardState.RIVER, 10, 10, BetSizeOptions.parse("50%", ""))
	w = BinaryWriter()
	write_tree_config(w, cfg)
	data = bytearray(w.getvalue())
	data[4:8] = b"\x00\x00\x00\x00"
	with pytest.raises(CodecError):
		read_tree_config(BinaryReader(bytes(data)))


def test_card_config_and_bunching_roundtrip():
	"""Ranges travel as 1326 float32 weights; bunching as the flop plus two f64 tables."""
	cards = CardConfig.from_strings("AA,KQs:0.5", "22+", "QsJh2c", "8d")
	out = _roundtrip(write_card_config, read_card_config, cards)
	assert out == cards
	factors = (np.linspace(0.5, 1.0, NUM_COMBOS), np.ones(NUM_COMBOS))
	b = BunchingData(flop=cards.flop, factors=factors)
	back = _roundtrip(write_bunching, read_bunching, b)
	assert back == b
