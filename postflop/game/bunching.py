"""
I carry a precomputed bunching (card-removal) adjustment for one flop: a per-hand
multiplier for each player over the 1326 hands. I am consumed read-only when the game
builds its initial reach weights; estimating the table is outside this package.

Key class: BunchingData. Key methods: validate — shape, finiteness and non-negativity;
apply — multiply a player's weights indexed by hand id; matches_flop — compare with a
board.
"""

from dataclasses import dataclass
from postflop.constants import NUM_COMBOS
from postflop.errors import ConfigurationError
from typing import Sequence, Tuple
import numpy as np


@dataclass(frozen=True, eq=False)
class BunchingData:
	flop: Tuple[int, int, int]
	factors: Tuple[np.ndarray, np.ndarray]

	def validate(self) -> None:
		if len(self.flop) != 3 or len(set(self.flop)) != 3:
			raise ConfigurationError("InvalidBunchingFlop", "config")
		for f in self.factors:
			arr = np.asarray(f)
			if arr.shape != (NUM_COMBOS,):
				raise ConfigurationError(f"BunchingShapeMismatch:{arr.shape}", "config")
			if not np.all(np.isfinite(arr)) or np.any(arr < 0.0):
				raise ConfigurationError("BunchingFactorOutOfBounds", "config")

	def matches_flop(self, flop: Sequence[int]) -> bool:
		return sorted(int(c) for c in flop) == sorted(int(c) for c in self.flop)

	def apply(
	 self,
	 player: int,
	 weights: np.ndarray,
	 hand_ids: np.ndarray,
	) -> np.ndarray:
		f = np.asarray(self.factors[player], dtype=np.float64)
		return np.asarray(weights, dtype=np.float64) * f[hand_ids]

	def __eq__(self, other) -> bool:
		if not isinstance(other, BunchingData):
			return NotImplemented
		return (
		 tuple(self.flop) == tuple(other.flop)
		 and np.array_equal(self.factors[0], other.factors[0])
		 and np.array_equal(self.factors[1], other.factors[1])
		)
