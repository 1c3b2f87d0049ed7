"""
I implement the numeric storage of a PostFlopGame as a mixin: one cumulative-regret
table and one cumulative-strategy table per decision node, each shaped
(num_actions, num_hands_of_acting_player). Without compression the tables are float64.
With compression each table is an int16 array plus one float32 scale, decoded to float64
for every update and re-encoded afterwards, so accumulation itself always runs in double
precision.

Key methods: allocate_memory — size and zero-initialize the tables; memory_usage —
(uncompressed_bytes, compressed_bytes) for the allocated layout; load_regrets /
store_regrets and load_cum_strategy / store_cum_strategy — per-slot access used by the
solver; average_strategy — normalized cumulative strategy of a slot with uniform rows
for hands without mass; table_shapes — (actions, hands) per slot.

Invariants: tables are only touched through the load/store pair so compression stays
transparent; a slot is owned by a single traversal at a time (the fork-join never puts
one decision node in two workers).
"""

from postflop.game.game_state import State, requires_state
from typing import List, Tuple
import logging
import numpy as np

logger = logging.getLogger(__name__)

_INT16_MAX = 32767.0


def encode_int16(arr: np.ndarray) -> Tuple[np.ndarray, np.float32]:
	m = float(np.max(np.abs(arr))) if arr.size else 0.0
	if m <= 0.0 or not np.isfinite(m):
		return np.zeros(arr.shape, dtype=np.int16), np.float32(0.0)
	scale = np.float32(m / _INT16_MAX)
	if float(scale) <= 0.0:
		return np.zeros(arr.shape, dtype=np.int16), np.float32(0.0)
	q = np.rint(arr / float(scale))
	q = np.clip(q, -_INT16_MAX, _INT16_MAX)
	return q.astype(np.int16), scale


def decode_int16(q: np.ndarray, scale) -> np.ndarray:
	return q.astype(np.float64) * float(scale)


class GameStorageMixin:
	def _reset_storage(self) -> None:
		self.is_compressed = False
		self.iteration = 0
		self._regrets: List[np.ndarray] = []
		self._cum_strategy: List[np.ndarray] = []
		self._regret_scales: List[np.float32] = []
		self._strategy_scales: List[np.float32] = []

	def table_shapes(self) -> List[Tuple[int, int]]:
		out: List[Tuple[int, int]] = []
		arena = self.arena
		for idx in arena.decision_nodes:
			p = arena.players[idx]
			out.append((len(arena.actions[idx]), len(self.hands[p])))
		return out

	@requires_state(State.TREE_BUILT)
	def allocate_memory(self, enable_compression: bool = False) -> None:
		shapes = self.table_shapes()
		compressed = bool(enable_compression)
		regrets: List[np.ndarray] = []
		strategy: List[np.ndarray] = []
		dtype = np.int16 if compressed else np.float64
		for shape in shapes:
			regrets.append(np.zeros(shape, dtype=dtype))
			strategy.append(np.zeros(shape, dtype=dtype))

		self._reset_storage()
		self.is_compressed = compressed
		self._regrets = regrets
		self._cum_strategy = strategy
		if compressed:
			self._regret_scales = [np.float32(0.0)] * len(shapes)
			self._strategy_scales = [np.float32(0.0)] * len(shapes)
		self.state = State.MEMORY_ALLOCATED
		self._reset_navigation()

		unc, comp = self._usage_for(shapes)
		logger.info(
		 "allocated storage for %d decision nodes (%s, %d bytes)",
		 len(shapes),
		 "compressed" if compressed else "uncompressed",
		 comp if compressed else unc,
		)

	@staticmethod
	def _usage_for(shapes: List[Tuple[int, int]]) -> Tuple[int, int]:
		elements = 0
		for a, h in shapes:
			elements += int(a) * int(h)
		uncompressed = 2 * 8 * elements
		compressed = 2 * 2 * elements + 2 * 4 * len(shapes)
		return uncompressed, compressed

	@requires_state(State.MEMORY_ALLOCATED)
	def memory_usage(self) -> Tuple[int, int]:
		return self._usage_for(self.table_shapes())

	def load_regrets(self, slot: int) -> np.ndarray:
		if self.is_compressed:
			return decode_int16(self._regrets[slot], self._regret_scales[slot])
		return self._regrets[slot]

	def store_regrets(self, slot: int, values: np.ndarray) -> None:
		if self.is_compressed:
			q, s = encode_int16(values)
			self._regrets[slot] = q
			self._regret_scales[slot] = s
		else:
			self._regrets[slot] = np.asarray(values, dtype=np.float64)

	def load_cum_strategy(self, slot: int) -> np.ndarray:
		if self.is_compressed:
			return decode_int16(self._cum_strategy[slot], self._strategy_scales[slot])
		return self._cum_strategy[slot]

	def store_cum_strategy(self, slot: int, values: np.ndarray) -> None:
		if self.is_compressed:
			q, s = encode_int16(values)
			self._cum_strategy[slot] = q
			self._strategy_scales[slot] = s
		else:
			self._cum_strategy[slot] = np.asarray(values, dtype=np.float64)

	def average_strategy(self, slot: int) -> np.ndarray:
		cum = self.load_cum_strategy(slot)
		num_actions = cum.shape[0]
		sums = cum.sum(axis=0)
		out = np.full(cum.shape, 1.0 / float(num_actions), dtype=np.float64)
		mass = sums > 0.0
		if np.any(mass):
			out[:, mass] = cum[:, mass] / sums[mass]
		return out

	def raw_tables(self) -> Tuple[List[np.ndarray], List[np.ndarray], List[np.float32], List[np.float32]]:
		return self._regrets, self._cum_strategy, self._regret_scales, self._strategy_scales

	def install_tables(
	 self,
	 regrets: List[np.ndarray],
	 strategy: List[np.ndarray],
	 regret_scales: List[np.float32],
	 strategy_scales: List[np.float32],
	 compressed: bool,
	 iteration: int,
	) -> None:
		self._reset_storage()
		self.is_compressed = bool(compressed)
		self._regrets = list(regrets)
		self._cum_strategy = list(strategy)
		self._regret_scales = list(regret_scales)
		self._strategy_scales = list(strategy_scales)
		self.iteration = int(iteration)
