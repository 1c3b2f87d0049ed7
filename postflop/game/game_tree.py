"""
I expand an abstract ActionTree over a concrete board into a flat arena of nodes
addressed by index. Each chance placeholder of the abstract tree fans out into one child
per card that is not on the board yet, in ascending card order. I keep every node
attribute in parallel lists so that the solver's accumulators can be stored per decision
node in a flat table and traversal never needs parent pointers.

Key class: GameTree with parallel lists kinds, players, actions, children, parents,
parent_actions, boards, board_states, amounts, contribs and slots, plus decision_nodes —
arena indices of decision nodes in arena order (the storage order). Key methods:
is_decision / is_chance / is_terminal, path_to — the (node, action) pairs from the root,
summary — counts for logging.

Inputs: ActionTree, starting pot and the initial board. Outputs: the arena.
Invariants: children[i] has one entry per actions[i]; arena order is a pre-order walk
with children visited in action order, so rebuilding from the same tree and board always
yields the same indices; contributions are replayed from the actions and never exceed
the effective stack.
"""

from postflop.constants import NUM_CARDS
from postflop.engine.action import Action
from postflop.engine.action_type import ActionType
from postflop.engine.board_state import BoardState
from postflop.tree.action_tree import ActionTree, ActionTreeNode
from typing import Any, Dict, List, Tuple

KIND_PLAYER = "player"
KIND_CHANCE = "chance"
KIND_FOLD = "fold"
KIND_SHOWDOWN = "showdown"


def _kind_of(node: ActionTreeNode) -> str:
	if node.is_chance():
		return KIND_CHANCE
	if node.is_fold():
		return KIND_FOLD
	if node.is_terminal():
		return KIND_SHOWDOWN
	return KIND_PLAYER


class GameTree:
	def __init__(
	 self,
	 action_tree: ActionTree,
	 board: Tuple[int, ...],
	):
		self.kinds: List[str] = []
		self.players: List[int] = []
		self.actions: List[List[Action]] = []
		self.children: List[List[int]] = []
		self.parents: List[int] = []
		self.parent_actions: List[int] = []
		self.boards: List[Tuple[int, ...]] = []
		self.board_states: List[BoardState] = []
		self.amounts: List[int] = []
		self.contribs: List[Tuple[int, int]] = []
		self.slots: List[int] = []
		self.decision_nodes: List[int] = []
		self._expand(action_tree.root, tuple(int(c) for c in board))

	def _new_node(
	 self,
	 node: ActionTreeNode,
	 board: Tuple[int, ...],
	 parent: int,
	 parent_action: int,
	 contrib: Tuple[int, int],
	) -> int:
		idx = len(self.kinds)
		kind = _kind_of(node)
		self.kinds.append(kind)
		self.players.append(int(node.player))
		self.parents.append(int(parent))
		self.parent_actions.append(int(parent_action))
		self.boards.append(board)
		self.board_states.append(node.board_state)
		self.amounts.append(int(node.amount))
		self.contribs.append(contrib)
		if kind == KIND_PLAYER:
			self.slots.append(len(self.decision_nodes))
			self.decision_nodes.append(idx)
		else:
			self.slots.append(-1)
		if kind == KIND_CHANCE:
			used = set(board)
			acts = [Action.chance(c) for c in range(NUM_CARDS) if c not in used]
		else:
			acts = list(node.actions)
		self.actions.append(acts)
		self.children.append([-1] * len(acts))
		return idx

	def _expand(
	 self,
	 root: ActionTreeNode,
	 board: Tuple[int, ...],
	) -> None:
		stack: List[Tuple[ActionTreeNode, Tuple[int, ...], int, int, Tuple[int, int], int]] = [
		 (root, board, -1, -1, (0, 0), 0)
		]
		while stack:
			node, bd, parent, pa, contrib, street_start = stack.pop()
			idx = self._new_node(node, bd, parent, pa, contrib)
			if parent >= 0:
				self.children[parent][pa] = idx

			kind = self.kinds[idx]
			pending = []
			if kind == KIND_CHANCE:
				acts = self.actions[idx]
				i = 0
				while i < len(acts):
					nb = tuple(sorted(bd + (acts[i].card,)))
					pending.append((node.children[0], nb, idx, i, contrib, contrib[0]))
					i += 1
			else:
				if kind == KIND_PLAYER:
					p = int(node.player)
					i = 0
					while i < len(node.actions):
						a = node.actions[i]
						child = node.children[i]
						c = [contrib[0], contrib[1]]
						t = a.action_type
						if t == ActionType.CALL:
							c[p] = c[1 - p]
						else:
							if t.has_amount():
								c[p] = street_start + int(a.amount)
						if t == ActionType.FOLD:
							m = min(c)
							c = [m, m]
						pending.append((child, bd, idx, i, (c[0], c[1]), street_start))
						i += 1
			j = len(pending) - 1
			while j >= 0:
				stack.append(pending[j])
				j -= 1

	def __len__(self) -> int:
		return len(self.kinds)

	def is_decision(self, idx: int) -> bool:
		return self.kinds[idx] == KIND_PLAYER

	def is_chance(self, idx: int) -> bool:
		return self.kinds[idx] == KIND_CHANCE

	def is_terminal(self, idx: int) -> bool:
		k = self.kinds[idx]
		return k == KIND_FOLD or k == KIND_SHOWDOWN

	def path_to(self, idx: int) -> List[Tuple[int, int]]:
		out: List[Tuple[int, int]] = []
		cur = int(idx)
		while self.parents[cur] >= 0:
			out.append((self.parents[cur], self.parent_actions[cur]))
			cur = self.parents[cur]
		out.reverse()
		return out

	def summary(self) -> Dict[str, Any]:
		return {
		 "nodes": len(self.kinds),
		 "decision_nodes": len(self.decision_nodes),
		 "chance_nodes": sum(1 for k in self.kinds if k == KIND_CHANCE),
		 "terminal_nodes": sum(1 for k in self.kinds if k in (KIND_FOLD, KIND_SHOWDOWN)),
		}
