"""
Tests for read-only queries at the navigation position: normalized weights, per-hand
EVs and equities, per-action EV rows, stale-cache detection and decision-node checks.
"""

import numpy as np
import pytest

from postflop.engine.board_state import BoardState
from postflop.errors import NavigationError, OrderingError
from postflop.game.card_config import CardConfig
from postflop.game.postflop_game import PostFlopGame
from postflop.solving.cfr_core import solve
from postflop.solving.exploitability import compute_current_ev
from postflop.tree.action_tree import ActionTree
from postflop.tree.bet_size import BetSizeOptions
from postflop.tree.tree_config import TreeConfig

RANGE = "AA,KK,QQ,JJ,TT,99,AK,AQ,KQ,QJs,JTs,T9s"


def _solved_river_game(iterations=30):
	cards = CardConfig.from_strings(RANGE, RANGE, "QsJh2c", "8d", "3s")
	sizes = BetSizeOptions.parse("50%,a", "")
	tree = ActionTree(TreeConfig.with_uniform_sizes(BoardState.RIVER, 6, 25, sizes))
	game = PostFlopGame.with_config(cards, tree)
	game.allocate_memory()
	solve(game, iterations, 0.0, check_interval=iterations)
	return game


def _weighted_mean(values, weights):
	total = float(np.sum(weights))
	assert total > 0.0
	return float(np.dot(values, weights)) / total


def test_root_ev_average_matches_current_ev_plus_half_pot():
	"""Averaging root EVs by normalized weights gives the game EV plus half the pot."""
	game = _solved_river_game()
	game.cache_normalized_weights()
	ev = compute_current_ev(game)
	for p in (0, 1):
		got = _weighted_mean(game.expected_values(p), game.normalized_weights(p))
		assert got == pytest.approx(ev[p] + 3.0, abs=1e-9)


def test_equities_are_probabilities_and_sum_to_one():
	"""Per-hand equities lie in [0, 1] and the players' averages add up to one."""
	game = _solved_river_game()
	game.cache_normalized_weights()
	eq0 = game.equity(0)
	eq1 = game.equity(1)
	for eq in (eq0, eq1):
		assert np.all(eq >= -1e-12)
		assert np.all(eq <= 1.0 + 1e-12)
	avg0 = _weighted_mean(eq0, game.normalized_weights(0))
	avg1 = _weighted_mean(eq1, game.normalized_weights(1))
	assert avg0 + avg1 == pytest.approx(1.0, abs=1e-9)


def test_queries_need_a_fresh_cache():
	"""EV, equity and weights raise OrderingError until the cache is refreshed here."""
	game = _solved_river_game(iterations=5)
	with pytest.raises(OrderingError):
		game.expected_values(0)
	game.cache_normalized_weights()
	game.expected_values(0)
	game.play(0)
	for query in (game.expected_values, game.equity, game.weights, game.normalized_weights):
		with pytest.raises(OrderingError):
			query(1)
	game.cache_normalized_weights()
	assert game.weights(1).shape == (len(game.hands[1]),)


def test_strategy_outside_decision_nodes_is_a_navigation_error():
	"""A showdown terminal has no strategy."""
	game = _solved_river_game(iterations=5)
	game.apply_history([0, 0])
	with pytest.raises(NavigationError):
		game.strategy()
	game.cache_normalized_weights()
	with pytest.raises(NavigationError):
		game.expected_values_detail(0)


def test_action_ev_rows_mix_into_node_ev():
	"""Per-action EV rows weighted by the strategy reproduce the node EV of each hand."""
	game = _solved_river_game()
	game.cache_normalized_weights()
	rows = game.expected_values_detail(0)
	n_actions = len(game.available_actions())
	assert len(rows) == n_actions
	strat = game.strategy().reshape(-1, n_actions)
	mixed = np.zeros(len(rows[0]))
	a = 0
	while a < n_actions:
		mixed += strat[:, a] * rows[a]
		a += 1
	assert np.allclose(mixed, game.expected_values(0), atol=1e-9)
	with pytest.raises(NavigationError):
		game.expected_values_detail(1)


def test_weights_follow_the_average_strategy_down_the_tree():
	"""After OOP checks, OOP's weights are the initial weights times the check frequency."""
	game = _solved_river_game()
	strat = game.strategy().reshape(-1, len(game.available_actions()))
	game.play(0)
	game.cache_normalized_weights()
	assert np.allclose(game.weights(0), game.initial_weights[0] * strat[:, 0])
	assert np.allclose(game.weights(1), game.initial_weights[1])
	assert game.current_player() == 1
	assert game.expected_values(1).shape == (len(game.hands[1]),)
