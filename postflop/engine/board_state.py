from enum import IntEnum


class BoardState(IntEnum):
	FLOP = 0
	TURN = 1
	RIVER = 2

	def board_size(self) -> int:
		return 3 + int(self)

	def streets_remaining(self) -> int:
		return 3 - int(self)

	def next(self) -> "BoardState":
		if self == BoardState.RIVER:
			raise ValueError("NoStreetAfterRiver")
		return BoardState(int(self) + 1)
