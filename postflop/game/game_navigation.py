"""
I implement navigation over the game arena as a mixin. The current position is one
arena index plus the list of action indices that led to it; moving invalidates the cached
normalized weights so that EV and equity queries cannot read weights of another node.

Key methods: available_actions, play, back_to_root, apply_history, history,
current_node, current_player, current_board, is_terminal_node, is_chance_node,
private_hands.

Invariants: a failed play or apply_history leaves the position unchanged and raises
NavigationError.
"""

from postflop.engine.action import Action
from postflop.engine.card import HAND_TABLE
from postflop.errors import NavigationError
from postflop.game.game_state import State, requires_state
from postflop.game.game_tree import KIND_CHANCE, KIND_FOLD, KIND_SHOWDOWN
from typing import List, Sequence, Tuple


class GameNavigationMixin:
	def _reset_navigation(self) -> None:
		self._node = 0
		self._history: List[int] = []
		self._cache_node = -1

	@requires_state(State.MEMORY_ALLOCATED)
	def available_actions(self) -> List[Action]:
		return list(self.arena.actions[self._node])

	@requires_state(State.MEMORY_ALLOCATED)
	def play(self, action_index: int) -> None:
		if self.arena is None:
			raise NavigationError("NoActiveTree")
		children = self.arena.children[self._node]
		i = int(action_index)
		if i < 0 or i >= len(children):
			raise NavigationError(f"ActionIndexOutOfRange:{i} (available={len(children)})")
		self._node = children[i]
		self._history.append(i)
		self._cache_node = -1

	@requires_state(State.MEMORY_ALLOCATED)
	def back_to_root(self) -> None:
		if self.arena is None:
			raise NavigationError("NoActiveTree")
		self._node = 0
		self._history = []
		self._cache_node = -1

	@requires_state(State.MEMORY_ALLOCATED)
	def apply_history(self, history: Sequence[int]) -> None:
		node = 0
		for raw in history:
			i = int(raw)
			children = self.arena.children[node]
			if i < 0 or i >= len(children):
				raise NavigationError(f"ActionIndexOutOfRange:{i} (available={len(children)})")
			node = children[i]
		self._node = node
		self._history = [int(x) for x in history]
		self._cache_node = -1

	def history(self) -> List[int]:
		return list(self._history)

	def current_node(self) -> int:
		return int(self._node)

	@requires_state(State.MEMORY_ALLOCATED)
	def current_player(self) -> int:
		return int(self.arena.players[self._node])

	@requires_state(State.MEMORY_ALLOCATED)
	def current_board(self) -> Tuple[int, ...]:
		return tuple(self.arena.boards[self._node])

	@requires_state(State.MEMORY_ALLOCATED)
	def is_terminal_node(self) -> bool:
		return self.arena.kinds[self._node] in (KIND_FOLD, KIND_SHOWDOWN)

	@requires_state(State.MEMORY_ALLOCATED)
	def is_chance_node(self) -> bool:
		return self.arena.kinds[self._node] == KIND_CHANCE

	@requires_state(State.TREE_BUILT)
	def private_hands(self, player: int) -> List[Tuple[int, int]]:
		return [HAND_TABLE[int(i)] for i in self.hand_ids[int(player)]]
