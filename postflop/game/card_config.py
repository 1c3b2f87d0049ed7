"""
I hold the card side of a subgame: both players' ranges, the three flop cards and the
optional turn and river cards (NOT_DEALT when absent). I validate the board and derive
the street the subgame starts on.

Key class: CardConfig. Key methods: validate — three distinct flop cards in 0..51, turn
and river distinct from the flop and each other, a river only after a turn; board —
dealt cards as a tuple; initial_state — BoardState implied by the dealt cards; from_strings
— build from range and card text.
"""

from dataclasses import dataclass, field
from postflop.constants import NOT_DEALT, NUM_CARDS
from postflop.engine.board_state import BoardState
from postflop.engine.card import flop_from_str, parse_board_card
from postflop.engine.range import Range
from postflop.errors import ConfigurationError
from typing import Tuple


@dataclass(frozen=True, eq=False)
class CardConfig:
	range: Tuple[Range, Range] = field(default_factory=lambda: (Range(), Range()))
	flop: Tuple[int, int, int] = (NOT_DEALT, NOT_DEALT, NOT_DEALT)
	turn: int = NOT_DEALT
	river: int = NOT_DEALT

	@staticmethod
	def from_strings(
	 oop_range: str,
	 ip_range: str,
	 flop: str,
	 turn: str = "",
	 river: str = "",
	) -> "CardConfig":
		cfg = CardConfig(
		 range=(Range.parse(oop_range), Range.parse(ip_range)),
		 flop=flop_from_str(flop),
		 turn=parse_board_card(turn),
		 river=parse_board_card(river),
		)
		cfg.validate()
		return cfg

	def validate(self) -> None:
		if len(self.flop) != 3:
			raise ConfigurationError("FlopNeedsThreeCards", "card")
		for c in self.flop:
			if not (0 <= int(c) < NUM_CARDS):
				raise ConfigurationError(f"CardOutOfRange:{c}", "card")
		if len(set(self.flop)) != 3:
			raise ConfigurationError("DuplicateFlopCard", "card")
		if self.turn != NOT_DEALT:
			if not (0 <= int(self.turn) < NUM_CARDS):
				raise ConfigurationError(f"CardOutOfRange:{self.turn}", "card")
			if self.turn in self.flop:
				raise ConfigurationError("TurnOverlapsFlop", "card")
		if self.river != NOT_DEALT:
			if self.turn == NOT_DEALT:
				raise ConfigurationError("RiverWithoutTurn", "card")
			if not (0 <= int(self.river) < NUM_CARDS):
				raise ConfigurationError(f"CardOutOfRange:{self.river}", "card")
			if self.river in self.flop or self.river == self.turn:
				raise ConfigurationError("RiverOverlapsBoard", "card")
		for r in self.range:
			if not isinstance(r, Range):
				raise ConfigurationError("RangeExpected", "range")
			if r.is_empty():
				raise ConfigurationError("EmptyRange", "range")

	def board(self) -> Tuple[int, ...]:
		out = list(self.flop)
		if self.turn != NOT_DEALT:
			out.append(self.turn)
		if self.river != NOT_DEALT:
			out.append(self.river)
		return tuple(int(c) for c in out)

	def initial_state(self) -> BoardState:
		if self.river != NOT_DEALT:
			return BoardState.RIVER
		if self.turn != NOT_DEALT:
			return BoardState.TURN
		return BoardState.FLOP

	def __eq__(self, other) -> bool:
		if not isinstance(other, CardConfig):
			return NotImplemented
		return (
		 self.range[0] == other.range[0]
		 and self.range[1] == other.range[1]
		 and tuple(self.flop) == tuple(other.flop)
		 and self.turn == other.turn
		 and self.river == other.river
		)
