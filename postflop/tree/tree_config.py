"""
I define TreeConfig, the immutable build parameters of the abstract betting tree: the
street the subgame starts on, starting pot and effective stack, rake, the per-street bet
abstractions of both players, the optional turn/river donk abstractions and the three
tuning thresholds that bound the tree size.

Key class: TreeConfig. Key methods: validate — reject non-positive pot or stack, rake
outside [0, 1], a negative rake cap and negative thresholds; bet_sizes_for — the
(OOP, IP) options of one street; donk_sizes_for — the donk options of one street;
with_uniform_sizes — build a config that applies one abstraction everywhere.

Invariants: instances never change after construction; validate raises
ConfigurationError with the "tree" category. Dependencies: bet_size, BoardState.
"""

from dataclasses import dataclass, field
from postflop.constants import (
 DEFAULT_ADD_ALLIN_THRESHOLD,
 DEFAULT_FORCE_ALLIN_THRESHOLD,
 DEFAULT_MERGING_THRESHOLD,
)
from postflop.engine.board_state import BoardState
from postflop.errors import ConfigurationError
from postflop.tree.bet_size import BetSizeOptions, DonkSizeOptions
from typing import Optional, Tuple
import math


SizesPair = Tuple[BetSizeOptions, BetSizeOptions]


@dataclass(frozen=True)
class TreeConfig:
	initial_state: BoardState = BoardState.FLOP
	starting_pot: int = 0
	effective_stack: int = 0
	rake_rate: float = 0.0
	rake_cap: float = 0.0
	flop_bet_sizes: SizesPair = field(default_factory=lambda: (BetSizeOptions(), BetSizeOptions()))
	turn_bet_sizes: SizesPair = field(default_factory=lambda: (BetSizeOptions(), BetSizeOptions()))
	river_bet_sizes: SizesPair = field(default_factory=lambda: (BetSizeOptions(), BetSizeOptions()))
	turn_donk_sizes: Optional[DonkSizeOptions] = None
	river_donk_sizes: Optional[DonkSizeOptions] = None
	add_allin_threshold: float = DEFAULT_ADD_ALLIN_THRESHOLD
	force_allin_threshold: float = DEFAULT_FORCE_ALLIN_THRESHOLD
	merging_threshold: float = DEFAULT_MERGING_THRESHOLD

	@staticmethod
	def with_uniform_sizes(
	 initial_state: BoardState,
	 starting_pot: int,
	 effective_stack: int,
	 sizes: BetSizeOptions,
	 donk: Optional[DonkSizeOptions] = None,
	 **kwargs,
	) -> "TreeConfig":
		return TreeConfig(
		 initial_state=initial_state,
		 starting_pot=starting_pot,
		 effective_stack=effective_stack,
		 flop_bet_sizes=(sizes, sizes),
		 turn_bet_sizes=(sizes, sizes),
		 river_bet_sizes=(sizes, sizes),
		 turn_donk_sizes=donk,
		 river_donk_sizes=donk,
		 **kwargs,
		)

	def validate(self) -> None:
		if not isinstance(self.starting_pot, int) or self.starting_pot <= 0:
			raise ConfigurationError(f"NonPositiveStartingPot:{self.starting_pot}", "tree")
		if not isinstance(self.effective_stack, int) or self.effective_stack <= 0:
			raise ConfigurationError(f"NonPositiveEffectiveStack:{self.effective_stack}", "tree")
		if not (0.0 <= float(self.rake_rate) <= 1.0) or math.isnan(float(self.rake_rate)):
			raise ConfigurationError(f"RakeRateOutOfRange:{self.rake_rate}", "tree")
		if float(self.rake_cap) < 0.0 or math.isnan(float(self.rake_cap)):
			raise ConfigurationError(f"NegativeRakeCap:{self.rake_cap}", "tree")
		for name in ("add_allin_threshold", "force_allin_threshold", "merging_threshold"):
			v = float(getattr(self, name))
			if v < 0.0 or math.isnan(v):
				raise ConfigurationError(f"NegativeThreshold:{name}", "tree")
		if not isinstance(self.initial_state, BoardState):
			raise ConfigurationError("InvalidInitialState", "tree")

	def bet_sizes_for(self, board_state: BoardState) -> SizesPair:
		if board_state == BoardState.FLOP:
			return self.flop_bet_sizes
		if board_state == BoardState.TURN:
			return self.turn_bet_sizes
		return self.river_bet_sizes

	def donk_sizes_for(self, board_state: BoardState) -> Optional[DonkSizeOptions]:
		if board_state == BoardState.TURN:
			return self.turn_donk_sizes
		if board_state == BoardState.RIVER:
			return self.river_donk_sizes
		return None

	def is_raked(self) -> bool:
		return float(self.rake_rate) > 0.0 and float(self.rake_cap) > 0.0
