"""
I define the tagged-union discriminants of a tree action. The numeric values are the
ones written to disk, so they must never be renumbered.

Key class: ActionType with members NONE, FOLD, CHECK, CALL, BET, RAISE, ALLIN, CHANCE.
"""

from enum import IntEnum


class ActionType(IntEnum):
	NONE = 0
	FOLD = 1
	CHECK = 2
	CALL = 3
	BET = 4
	RAISE = 5
	ALLIN = 6
	CHANCE = 7

	def has_amount(self) -> bool:
		return self in (ActionType.BET, ActionType.RAISE, ActionType.ALLIN)

	def is_passive(self) -> bool:
		return self in (ActionType.FOLD, ActionType.CHECK, ActionType.CALL)
