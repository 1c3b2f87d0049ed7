"""
I represent a single edge of the game tree as an immutable value: an ActionType plus an
integer payload. For Bet, Raise and AllIn the payload is the street "to" amount in chips;
for Chance it is the dealt card (NOT_DEALT for the placeholder edge of an abstract
tree); for the other variants it is zero.

Key class: Action (frozen dataclass) with constructors none/fold/check/call/bet/raise_/
allin/chance and a repr such as Bet(3), AllIn(25) or Chance(Td).

Dependencies: ActionType and the card helpers. Invariants: amounts are non-negative;
equality and hashing are by value so actions can key dicts in tests and tools.
"""

from dataclasses import dataclass
from postflop.constants import NOT_DEALT
from postflop.engine.action_type import ActionType
from postflop.engine.card import card_to_string


@dataclass(frozen=True)
class Action:
	action_type: ActionType
	amount: int = 0

	def __post_init__(self):
		if int(self.amount) < 0:
			raise ValueError("NegativeActionAmount")

	@staticmethod
	def none() -> "Action":
		return Action(ActionType.NONE)

	@staticmethod
	def fold() -> "Action":
		return Action(ActionType.FOLD)

	@staticmethod
	def check() -> "Action":
		return Action(ActionType.CHECK)

	@staticmethod
	def call() -> "Action":
		return Action(ActionType.CALL)

	@staticmethod
	def bet(amount: int) -> "Action":
		return Action(ActionType.BET, int(amount))

	@staticmethod
	def raise_(amount: int) -> "Action":
		return Action(ActionType.RAISE, int(amount))

	@staticmethod
	def allin(amount: int) -> "Action":
		return Action(ActionType.ALLIN, int(amount))

	@staticmethod
	def chance(card: int = NOT_DEALT) -> "Action":
		return Action(ActionType.CHANCE, int(card))

	@property
	def kind(self) -> ActionType:
		return self.action_type

	@property
	def card(self) -> int:
		return int(self.amount)

	def is_wager(self) -> bool:
		return self.action_type.has_amount()

	def __repr__(self) -> str:
		t = self.action_type
		if t.has_amount():
			name = {ActionType.BET: "Bet", ActionType.RAISE: "Raise", ActionType.ALLIN: "AllIn"}[t]
			return f"{name}({self.amount})"
		if t == ActionType.CHANCE:
			return f"Chance({card_to_string(self.amount)})"
		return t.name.capitalize()
