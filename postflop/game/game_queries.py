"""
I answer read-only queries at the current navigation position as a mixin: the average
strategy of the acting player, the normalized range weights conditioned on the path to
the node, and per-hand expected values and equities.

Key methods: strategy — flat hand-major list of action probabilities; cache_normalized_weights
— recompute both players' reach-weighted ranges for the current node; weights /
normalized_weights — the cached vectors; expected_values / equity — per-hand values of
one player at the node.

EV convention: a hand's EV is the chips it expects to take from the pot, counting the
starting pot as split evenly, i.e. net payoff + starting_pot / 2 + own contribution so
far. Hands that are blocked by the board or have no compatible opponent combination
report 0.

Invariants: expected_values and equity raise OrderingError unless the cache was
refreshed at the current node; strategy raises NavigationError outside decision nodes.
"""

from postflop.constants import EPS_MASS
from postflop.errors import NavigationError, OrderingError
from postflop.game.game_state import State, allowed_states, requires_state
from postflop.game.game_tree import KIND_CHANCE, KIND_PLAYER
from postflop.solving.exploitability import evaluate_node
from typing import List, Tuple
import numpy as np


class GameQueriesMixin:
	@requires_state(State.MEMORY_ALLOCATED)
	def strategy(self) -> np.ndarray:
		idx = self._node
		if self.arena.kinds[idx] != KIND_PLAYER:
			raise NavigationError("NotADecisionNode")
		avg = self.average_strategy(self.arena.slots[idx])
		return np.ascontiguousarray(avg.T).reshape(-1)

	@requires_state(State.MEMORY_ALLOCATED)
	def cache_normalized_weights(self) -> None:
		arena = self.arena
		ev = self.evaluator
		w = [self.initial_weights[0].copy(), self.initial_weights[1].copy()]
		for parent, action_index in arena.path_to(self._node):
			kind = arena.kinds[parent]
			if kind == KIND_PLAYER:
				p = arena.players[parent]
				avg = self.average_strategy(arena.slots[parent])
				w[p] = w[p] * avg[action_index]
			else:
				if kind == KIND_CHANCE:
					card = arena.actions[parent][action_index].card
					w[0] = w[0] * ev.card_mask(0, card)
					w[1] = w[1] * ev.card_mask(1, card)

		board = arena.boards[self._node]
		w[0] = w[0] * ev.valid_mask(0, board)
		w[1] = w[1] * ev.valid_mask(1, board)
		self._weights = w
		self._compat = [
		 ev.compat_sums(0, w[1], board),
		 ev.compat_sums(1, w[0], board),
		]
		self._normalized = [w[0] * self._compat[0], w[1] * self._compat[1]]
		self._cache_node = self._node

	def _require_fresh_cache(self, operation: str) -> None:
		if self._cache_node != self._node:
			raise OrderingError(
			 operation,
			 self.state,
			 allowed_states(State.MEMORY_ALLOCATED),
			 message=f"StaleNormalizedWeights:{operation} (call cache_normalized_weights first)",
			)

	@requires_state(State.MEMORY_ALLOCATED)
	def weights(self, player: int) -> np.ndarray:
		self._require_fresh_cache("weights")
		return self._weights[int(player)].copy()

	@requires_state(State.MEMORY_ALLOCATED)
	def normalized_weights(self, player: int) -> np.ndarray:
		self._require_fresh_cache("normalized_weights")
		return self._normalized[int(player)].copy()

	def _per_hand(
	 self,
	 player: int,
	 equity: bool,
	) -> Tuple[np.ndarray, np.ndarray]:
		p = int(player)
		cfv = evaluate_node(
		 self,
		 self._node,
		 p,
		 self._weights[1 - p],
		 best_response=False,
		 equity=equity,
		)
		compat = self._compat[p]
		ok = compat > EPS_MASS
		out = np.zeros(len(cfv), dtype=np.float64)
		out[ok] = cfv[ok] * self.num_combinations / compat[ok]
		return out, ok

	@requires_state(State.MEMORY_ALLOCATED)
	def expected_values(self, player: int) -> np.ndarray:
		self._require_fresh_cache("expected_values")
		p = int(player)
		out, ok = self._per_hand(p, equity=False)
		base = 0.5 * float(self.tree_config.starting_pot) + float(self.arena.contribs[self._node][p])
		out[ok] += base
		return out

	@requires_state(State.MEMORY_ALLOCATED)
	def equity(self, player: int) -> np.ndarray:
		self._require_fresh_cache("equity")
		out, _ = self._per_hand(int(player), equity=True)
		return out

	@requires_state(State.MEMORY_ALLOCATED)
	def expected_values_detail(self, player: int) -> List[np.ndarray]:
		"""Per-action EVs of the acting player, one row per action."""
		self._require_fresh_cache("expected_values_detail")
		idx = self._node
		if self.arena.kinds[idx] != KIND_PLAYER or self.arena.players[idx] != int(player):
			raise NavigationError("NotThePlayersDecisionNode")
		p = int(player)
		compat = self._compat[p]
		ok = compat > EPS_MASS
		base = 0.5 * float(self.tree_config.starting_pot) + float(self.arena.contribs[idx][p])
		rows: List[np.ndarray] = []
		for child in self.arena.children[idx]:
			cfv = evaluate_node(self, child, p, self._weights[1 - p])
			row = np.zeros(len(cfv), dtype=np.float64)
			row[ok] = cfv[ok] * self.num_combinations / compat[ok] + base
			rows.append(row)
		return rows
