"""
I evaluate a game under its average strategy. I compute per-hand counterfactual values
below any node either with both players following the average strategy or with one
player best-responding, in chips or in equity units, and I derive the current EV, the
maximally-exploitative EV and the exploitability used as the convergence measure.

Key functions: evaluate_node — counterfactual values of `player` below a node;
compute_current_ev — [ev_oop, ev_ip] under the average strategy; compute_mes_ev — the
same with the evaluated player best-responding; compute_exploitability —
max(0, ((mes_oop - ev_oop) + (mes_ip - ev_ip)) / 2), returned as a float32-precision
float.

Invariants: I only read tables, so the game must be MEMORY_ALLOCATED or SOLVED (an
OrderingError otherwise); the result is non-negative by construction.
Dependencies: numpy; game arena kinds; game states.
"""

from postflop.errors import OrderingError
from postflop.game.evaluation import chance_factor
from postflop.game.game_state import State, allowed_states
from postflop.game.game_tree import KIND_CHANCE, KIND_FOLD, KIND_SHOWDOWN
from typing import List
import numpy as np


def evaluate_node(
 game,
 idx: int,
 player: int,
 cfreach: np.ndarray,
 best_response: bool = False,
 equity: bool = False,
) -> np.ndarray:
	arena = game.arena
	ev = game.evaluator
	kind = arena.kinds[idx]

	if kind == KIND_FOLD:
		return ev.fold_values(
		 player,
		 cfreach,
		 arena.amounts[idx],
		 arena.players[idx] & 3,
		 arena.boards[idx],
		 equity=equity,
		)

	if kind == KIND_SHOWDOWN:
		return ev.showdown_values(
		 player,
		 cfreach,
		 arena.amounts[idx],
		 arena.boards[idx],
		 equity=equity,
		)

	children = arena.children[idx]
	result = np.zeros(len(game.hands[player]), dtype=np.float64)

	if kind == KIND_CHANCE:
		opp = 1 - player
		actions = arena.actions[idx]
		i = 0
		while i < len(children):
			card = actions[i].card
			reach = cfreach * ev.card_mask(opp, card)
			v = evaluate_node(game, children[i], player, reach, best_response, equity)
			result += v * ev.card_mask(player, card)
			i += 1
		return result * chance_factor(len(arena.boards[idx]))

	strategy = game.average_strategy(arena.slots[idx])

	if arena.players[idx] == player:
		cfv_actions = np.empty((len(children), len(result)), dtype=np.float64)
		a = 0
		while a < len(children):
			cfv_actions[a] = evaluate_node(game, children[a], player, cfreach, best_response, equity)
			a += 1
		if best_response:
			return np.max(cfv_actions, axis=0)
		return np.sum(strategy * cfv_actions, axis=0)

	a = 0
	while a < len(children):
		result += evaluate_node(
		 game,
		 children[a],
		 player,
		 strategy[a] * cfreach,
		 best_response,
		 equity,
		)
		a += 1
	return result


def _root_ev(game, best_response: bool) -> List[float]:
	out: List[float] = []
	for player in (0, 1):
		cfv = evaluate_node(
		 game,
		 0,
		 player,
		 game.initial_weights[1 - player],
		 best_response=best_response,
		)
		out.append(float(np.dot(game.initial_weights[player], cfv)))
	return out


def _require_tables(game, operation: str) -> None:
	if game.state < State.MEMORY_ALLOCATED:
		raise OrderingError(operation, game.state, allowed_states(State.MEMORY_ALLOCATED))


def compute_current_ev(game) -> List[float]:
	_require_tables(game, "compute_current_ev")
	return _root_ev(game, best_response=False)


def compute_mes_ev(game) -> List[float]:
	_require_tables(game, "compute_mes_ev")
	return _root_ev(game, best_response=True)


def compute_exploitability(game) -> float:
	_require_tables(game, "compute_exploitability")
	mes = compute_mes_ev(game)
	cur = compute_current_ev(game)
	value = ((mes[0] - cur[0]) + (mes[1] - cur[1])) * 0.5
	return float(np.float32(max(0.0, value)))
