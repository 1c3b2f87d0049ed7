"""
Tests for the discounted CFR loop: discount schedule, regret matching, convergence on a
river subgame to the pot-relative target, strategy rows at every decision node,
zero-sum root EVs, exploitability bookkeeping, state gating of solve/solve_step and of
the EV queries, a flop start with turn and river runouts, compressed storage, and
determinism of the threaded chance fork-join.
"""

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from postflop.engine.board_state import BoardState
from postflop.errors import OrderingError
from postflop.game.card_config import CardConfig
from postflop.game.game_state import State
from postflop.game.postflop_game import PostFlopGame
from postflop.solving.cfr_core import DiscountParams, finalize, regret_matching, solve, solve_step
from postflop.solving.exploitability import compute_current_ev, compute_exploitability, compute_mes_ev
from postflop.tree.action_tree import ActionTree
from postflop.tree.bet_size import BetSizeOptions
from postflop.tree.tree_config import TreeConfig

RANGE = "AA,KK,QQ,JJ,TT,99,AK,AQ,KQ,QJs,JTs,T9s"


def _river_game(bet="50%,a", raise_=""):
	cards = CardConfig.from_strings(RANGE, RANGE, "QsJh2c", "8d", "3s")
	sizes = BetSizeOptions.parse(bet, raise_)
	tree = ActionTree(TreeConfig.with_uniform_sizes(BoardState.RIVER, 6, 25, sizes))
	return PostFlopGame.with_config(cards, tree)


def _turn_game():
	cards = CardConfig.from_strings("AA,KK,AK", "QQ,AK,JTs", "QsJh2c", "8d")
	sizes = BetSizeOptions.parse("a", "")
	tree = ActionTree(TreeConfig.with_uniform_sizes(BoardState.TURN, 6, 25, sizes))
	return PostFlopGame.with_config(cards, tree)


def _flop_game():
	cards = CardConfig.from_strings("AA,KK", "QQ,JJ", "Td9d6h")
	tree = ActionTree(TreeConfig(
	 initial_state=BoardState.FLOP,
	 starting_pot=6,
	 effective_stack=25,
	 flop_bet_sizes=(BetSizeOptions.parse("50%,a", ""), BetSizeOptions()),
	))
	return PostFlopGame.with_config(cards, tree)


def _history_to(game, idx):
	return [a for _, a in game.arena.path_to(idx)]


def test_discount_schedule_values():
	"""alpha from t-1, beta constant, gamma restarting at powers of four."""
	p0 = DiscountParams.for_iteration(0)
	assert p0.alpha == 0.0 and p0.beta == 0.5 and p0.gamma == 0.0
	p2 = DiscountParams.for_iteration(2)
	assert p2.alpha == pytest.approx(0.5)
	assert p2.gamma == pytest.approx(0.125)
	assert DiscountParams.for_iteration(4).gamma == 0.0
	assert DiscountParams.for_iteration(5).gamma == pytest.approx(0.125)
	assert DiscountParams.for_iteration(16).gamma == 0.0
	p10 = DiscountParams.for_iteration(10)
	assert p10.alpha == pytest.approx(27.0 / 28.0)
	assert p10.gamma == pytest.approx((6.0 / 7.0) ** 3)


def test_regret_matching_positive_part_and_uniform_fallback():
	"""Columns with positive regret normalize it; all-non-positive columns go uniform."""
	r = np.array([[1.0, -1.0, 0.0], [3.0, -2.0, 0.0]])
	s = regret_matching(r)
	assert np.allclose(s[:, 0], [0.25, 0.75])
	assert np.allclose(s[:, 1], [0.5, 0.5])
	assert np.allclose(s[:, 2], [0.5, 0.5])


@settings(deadline=None, max_examples=50)
@given(
 actions=st.integers(1, 5),
 hands=st.integers(1, 6),
 data=st.data(),
)
def test_regret_matching_rows_are_distributions_hypothesis(actions, hands, data):
	"""For any finite regret table every hand's strategy sums to one and is non-negative."""
	vals = data.draw(
	 st.lists(
	  st.floats(min_value=-1e6, max_value=1e6, allow_nan=False),
	  min_size=actions * hands,
	  max_size=actions * hands,
	 )
	)
	s = regret_matching(np.asarray(vals, dtype=np.float64).reshape(actions, hands))
	assert np.all(s >= 0.0)
	assert np.allclose(s.sum(axis=0), 1.0)


def test_river_solve_reaches_target_exploitability():
	"""solve(1000, 1% of the pot) terminates at or below the target without finalizing."""
	game = _river_game()
	game.allocate_memory()
	start = compute_exploitability(game)
	assert start > 0.0
	target = 0.01 * 6
	exp = solve(game, 1000, target)
	assert 0.0 <= exp <= target
	assert exp < start
	assert game.state == State.MEMORY_ALLOCATED
	assert 0 < game.iteration <= 1000
	assert exp == pytest.approx(compute_exploitability(game))
	finalize(game)
	assert game.state == State.SOLVED


def test_strategy_rows_sum_to_one_at_every_decision_node():
	"""After a few iterations each hand's row at each decision node is a distribution."""
	game = _river_game(raise_="2.5x")
	game.allocate_memory()
	it = 0
	while it < 8:
		solve_step(game, it)
		it += 1
	assert game.iteration == 8
	for idx in game.arena.decision_nodes:
		game.apply_history(_history_to(game, idx))
		n_actions = len(game.available_actions())
		player = game.current_player()
		rows = game.strategy().reshape(-1, n_actions)
		assert rows.shape[0] == len(game.hands[player])
		assert np.allclose(rows.sum(axis=1), 1.0, atol=1e-6)


def test_root_evs_are_zero_sum_and_exploitability_formula():
	"""Without rake the root EVs cancel and exploitability averages the best-response gains."""
	game = _river_game()
	game.allocate_memory()
	solve(game, 40, 0.0, check_interval=20)
	ev = compute_current_ev(game)
	assert ev[0] + ev[1] == pytest.approx(0.0, abs=1e-9)
	mes = compute_mes_ev(game)
	assert mes[0] >= ev[0] - 1e-9
	assert mes[1] >= ev[1] - 1e-9
	want = max(0.0, ((mes[0] - ev[0]) + (mes[1] - ev[1])) / 2.0)
	assert compute_exploitability(game) == pytest.approx(float(np.float32(want)))


def test_solve_budget_zero_measures_without_iterating():
	"""A zero budget leaves the tables untouched and still reports exploitability."""
	game = _river_game()
	game.allocate_memory()
	exp = solve(game, 0, 0.0)
	assert game.iteration == 0
	assert exp == pytest.approx(compute_exploitability(game))


def test_solve_and_step_require_allocated_unsolved_game():
	"""solve/solve_step refuse TREE_BUILT and SOLVED games; resume re-enables them."""
	game = _river_game()
	with pytest.raises(OrderingError):
		solve(game, 10, 0.0)
	with pytest.raises(OrderingError):
		solve_step(game, 0)
	game.allocate_memory()
	solve_step(game, 0)
	game.finalize()
	with pytest.raises(OrderingError):
		solve(game, 10, 0.0)
	with pytest.raises(OrderingError):
		solve_step(game, 1)
	assert game.state == State.SOLVED
	game.resume()
	solve_step(game, game.iteration)
	assert game.iteration == 2


def test_evaluation_requires_allocated_tables():
	"""EV and exploitability queries refuse games that have no strategy tables yet."""
	for game in (PostFlopGame(), _river_game()):
		before = game.state
		for fn in (compute_current_ev, compute_mes_ev, compute_exploitability):
			with pytest.raises(OrderingError) as ei:
				fn(game)
			assert ei.value.operation == fn.__name__
		assert game.state == before
	game.allocate_memory()
	assert compute_exploitability(game) >= 0.0
	solve_step(game, 0)
	game.finalize()
	assert compute_current_ev(game)[0] + compute_current_ev(game)[1] == pytest.approx(0.0, abs=1e-9)


def test_flop_solve_with_runouts_reaches_target():
	"""A flop start deals every turn and river card and still converges to 1% of the pot."""
	game = _flop_game()
	assert 2 in game.arena.players
	game.allocate_memory()
	assert [repr(a) for a in game.available_actions()] == ["Check", "Bet(3)", "AllIn(25)"]
	start = compute_exploitability(game)
	target = 0.01 * 6
	exp = solve(game, 1000, target, check_interval=5)
	assert 0.0 <= exp <= target
	assert exp < start
	assert game.state == State.MEMORY_ALLOCATED
	ev = compute_current_ev(game)
	assert ev[0] + ev[1] == pytest.approx(0.0, abs=1e-9)


def test_compressed_storage_solves_and_keeps_int16_tables():
	"""int16 tables with per-node scales still produce valid strategies and converge."""
	game = _river_game()
	game.allocate_memory(True)
	start = compute_exploitability(game)
	exp = solve(game, 200, 0.0, check_interval=50)
	assert exp < start
	regrets, strategy, rscales, sscales = game.raw_tables()
	assert all(r.dtype == np.int16 for r in regrets)
	assert all(s.dtype == np.int16 for s in strategy)
	assert len(rscales) == len(regrets) == len(sscales)
	rows = game.strategy().reshape(-1, 3)
	assert np.allclose(rows.sum(axis=1), 1.0, atol=1e-6)


def test_threaded_chance_fork_join_matches_single_thread():
	"""Splitting chance children across workers gives bit-identical tables."""
	single = _turn_game()
	single.allocate_memory()
	threaded = _turn_game()
	threaded.allocate_memory()
	it = 0
	while it < 3:
		solve_step(single, it, num_threads=1)
		solve_step(threaded, it, num_threads=3)
		it += 1
	a = single.raw_tables()
	b = threaded.raw_tables()
	assert len(a[0]) == len(b[0])
	for x, y in zip(a[0], b[0]):
		assert np.array_equal(x, y)
	for x, y in zip(a[1], b[1]):
		assert np.array_equal(x, y)
	assert compute_exploitability(single) == compute_exploitability(threaded)
