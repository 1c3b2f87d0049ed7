"""
I build the abstract betting tree of a postflop subgame from a TreeConfig. I expand
decision nodes with an explicit stack instead of recursion, generate candidate wagers
from the street's bet abstraction, prune them with the force-all-in, merging and
add-all-in rules, and insert chance nodes between streets (a single placeholder edge per
chance node; the game fans it out per dealt card once the board is known).

Key classes/functions: ActionTreeNode — tree vertex (player, board_state, amount,
actions, children); ActionTree — owner of the root with build, num_nodes,
num_decision_nodes and root_actions; _BuildInfo — betting state carried down the stack;
_player_actions — the ordered action list of one decision node; _child_of — the
successor of an action.

Inputs: a TreeConfig. Outputs: a fully built tree or ConfigurationError. Invariants:
len(actions) == len(children) at every node; actions are ordered passive first (Check,
or Fold then Call), then sized wagers ascending, then AllIn; no path commits more than
the effective stack; `amount` is the contested pot at the node, with an uncalled bet
already returned at fold terminals; the tree is assigned only after a successful build.

Merging rule: candidates are visited in declaration order and one is dropped when an
already kept size is equal to it or lies within `merging_threshold * (1 + smaller)` of it
in pot-after-call ratio, so the first declared size wins. All-in is never merged away.
Force all-in: a wager becomes all-in when the stack left behind after it is called is
below `force_allin_threshold` times the pot after the call. Add all-in: an all-in is
appended when the distance from the current bet to all-in is at most
`add_allin_threshold` times the distance to the largest kept size.

Dependencies: bet_size for rule resolution, the engine Action types, stdlib logging.
"""

from dataclasses import dataclass, field, replace
from postflop.engine.action import Action
from postflop.engine.action_type import ActionType
from postflop.engine.board_state import BoardState
from postflop.errors import ConfigurationError
from postflop.tree.bet_size import bet_amount, raise_to_amount
from postflop.tree.tree_config import TreeConfig
from typing import Any, Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

PLAYER_OOP = 0
PLAYER_IP = 1
PLAYER_CHANCE = 2
PLAYER_MASK = 3
PLAYER_TERMINAL_FLAG = 8
PLAYER_FOLD_FLAG = 16 | PLAYER_TERMINAL_FLAG


@dataclass
class ActionTreeNode:
	player: int
	board_state: BoardState
	amount: int
	actions: List[Action] = field(default_factory=list)
	children: List["ActionTreeNode"] = field(default_factory=list)

	def is_terminal(self) -> bool:
		return (self.player & PLAYER_TERMINAL_FLAG) != 0

	def is_fold(self) -> bool:
		return (self.player & PLAYER_FOLD_FLAG) == PLAYER_FOLD_FLAG

	def is_chance(self) -> bool:
		return self.player == PLAYER_CHANCE

	def folder(self) -> int:
		return self.player & PLAYER_MASK

	def count_nodes(self) -> int:
		n = 0
		stack = [self]
		while stack:
			node = stack.pop()
			n += 1
			stack.extend(node.children)
		return n


@dataclass(frozen=True)
class _BuildInfo:
	board_state: BoardState
	player: int
	contrib: Tuple[int, int]
	street_start: int
	last_to: int
	prev_to: int
	num_bets: int
	prev_action: ActionType
	oop_called: bool


def _sized_ratio(
 to: int,
 pot: int,
 last_to: int,
 own_street: int,
) -> float:
	pot_after_call = pot + (last_to - own_street)
	return float(to - last_to) / float(pot_after_call)


def _merge_candidates(
 candidates: List[int],
 pot: int,
 last_to: int,
 own_street: int,
 threshold: float,
) -> List[int]:
	kept: List[int] = []
	i = 0
	while i < len(candidates):
		x = candidates[i]
		rx = _sized_ratio(x, pot, last_to, own_street)
		drop = False
		for k in kept:
			if k == x:
				drop = True
				break
			rk = _sized_ratio(k, pot, last_to, own_street)
			small = min(rx, rk)
			if abs(rx - rk) <= threshold * (1.0 + small):
				drop = True
				break
		if not drop:
			kept.append(x)
		i += 1
	kept.sort()
	return kept


def _player_actions(
 config: TreeConfig,
 info: _BuildInfo,
) -> List[Action]:
	p = info.player
	o = 1 - p
	pot = config.starting_pot + info.contrib[0] + info.contrib[1]
	own_street = info.contrib[p] - info.street_start
	opp_street = info.contrib[o] - info.street_start
	max_to = config.effective_stack - info.street_start
	streets_remaining = info.board_state.streets_remaining()
	street_pot = config.starting_pot + 2 * info.street_start
	facing_bet = opp_street > own_street

	out: List[Action] = []
	if facing_bet:
		out.append(Action.fold())
		out.append(Action.call())
	else:
		out.append(Action.check())

	opp_allin = info.contrib[o] >= config.effective_stack
	if facing_bet and (opp_allin or max_to <= info.last_to):
		return out

	options = config.bet_sizes_for(info.board_state)[p]
	raw: List[Optional[int]] = []
	if facing_bet:
		raises_so_far = info.num_bets - 1
		if options.raise_limit is not None and raises_so_far >= int(options.raise_limit):
			return out
		rules = options.raise_
		min_raise_to = info.last_to + (info.last_to - info.prev_to)
		for rule in rules:
			to = raise_to_amount(
			 rule,
			 pot,
			 info.last_to,
			 own_street,
			 max_to,
			 streets_remaining,
			 raises_so_far,
			)
			if to is not None:
				to = max(int(to), min_raise_to)
			raw.append(to)
	else:
		rules = options.bet
		at_street_start = info.prev_action == ActionType.NONE
		if p == PLAYER_OOP and at_street_start and info.oop_called:
			donk = config.donk_sizes_for(info.board_state)
			if donk is not None:
				rules = donk.donk
		for rule in rules:
			raw.append(bet_amount(rule, street_pot, max_to, streets_remaining))

	has_allin = False
	sized: List[int] = []
	for to in raw:
		if to is None:
			continue
		if to >= max_to:
			has_allin = True
			continue
		remaining = max_to - to
		pot_after_call = street_pot + 2 * to
		if remaining < config.force_allin_threshold * pot_after_call:
			has_allin = True
			continue
		sized.append(int(to))

	sized = _merge_candidates(
	 sized,
	 pot,
	 info.last_to,
	 own_street,
	 float(config.merging_threshold),
	)

	if not has_allin and sized:
		largest = sized[-1]
		if (max_to - info.last_to) <= config.add_allin_threshold * (largest - info.last_to):
			has_allin = True

	for to in sized:
		if facing_bet:
			out.append(Action.raise_(to))
		else:
			out.append(Action.bet(to))
	if has_allin:
		out.append(Action.allin(max_to))
	return out


def _street_closed(
 config: TreeConfig,
 info: _BuildInfo,
 committed: int,
 oop_called: bool,
) -> Tuple[ActionTreeNode, Optional[_BuildInfo]]:
	pot = config.starting_pot + 2 * committed
	if info.board_state == BoardState.RIVER:
		return ActionTreeNode(PLAYER_TERMINAL_FLAG, BoardState.RIVER, pot), None
	chance = ActionTreeNode(PLAYER_CHANCE, info.board_state, pot)
	next_info = _BuildInfo(
	 board_state=info.board_state.next(),
	 player=PLAYER_OOP,
	 contrib=(committed, committed),
	 street_start=committed,
	 last_to=0,
	 prev_to=0,
	 num_bets=0,
	 prev_action=ActionType.NONE,
	 oop_called=oop_called,
	)
	return chance, next_info


def _child_of(
 config: TreeConfig,
 info: _BuildInfo,
 action: Action,
) -> Tuple[ActionTreeNode, Optional[_BuildInfo]]:
	p = info.player
	o = 1 - p
	t = action.action_type

	if t == ActionType.FOLD:
		pot = config.starting_pot + 2 * min(info.contrib)
		return ActionTreeNode(PLAYER_FOLD_FLAG | p, info.board_state, pot), None

	if t == ActionType.CHECK:
		if p == PLAYER_OOP:
			nxt = replace(info, player=PLAYER_IP, prev_action=ActionType.CHECK)
			pot = config.starting_pot + info.contrib[0] + info.contrib[1]
			return ActionTreeNode(PLAYER_IP, info.board_state, pot), nxt
		return _street_closed(config, info, info.contrib[0], False)

	if t == ActionType.CALL:
		return _street_closed(config, info, info.contrib[o], p == PLAYER_OOP)

	contrib = list(info.contrib)
	contrib[p] = info.street_start + int(action.amount)
	nxt = replace(
	 info,
	 player=o,
	 contrib=(contrib[0], contrib[1]),
	 last_to=int(action.amount),
	 prev_to=info.last_to,
	 num_bets=info.num_bets + 1,
	 prev_action=t,
	)
	pot = config.starting_pot + contrib[0] + contrib[1]
	return ActionTreeNode(o, info.board_state, pot), nxt


def _runout_child(
 board_state: BoardState,
 pot: int,
) -> ActionTreeNode:
	if board_state == BoardState.RIVER:
		return ActionTreeNode(PLAYER_TERMINAL_FLAG, BoardState.RIVER, pot)
	return ActionTreeNode(PLAYER_CHANCE, board_state, pot)


class ActionTree:
	def __init__(
	 self,
	 config: TreeConfig,
	 root: Optional[ActionTreeNode] = None,
	):
		config.validate()
		self.config = config
		if root is None:
			self.root = self._build(config)
		else:
			self.root = root
		self._num_nodes: Optional[int] = None

	@staticmethod
	def from_root(
	 config: TreeConfig,
	 root: ActionTreeNode,
	) -> "ActionTree":
		return ActionTree(config, root=root)

	def _build(
	 self,
	 config: TreeConfig,
	) -> ActionTreeNode:
		root_info = _BuildInfo(
		 board_state=config.initial_state,
		 player=PLAYER_OOP,
		 contrib=(0, 0),
		 street_start=0,
		 last_to=0,
		 prev_to=0,
		 num_bets=0,
		 prev_action=ActionType.NONE,
		 oop_called=False,
		)
		root = ActionTreeNode(PLAYER_OOP, config.initial_state, config.starting_pot)
		stack: List[Tuple[ActionTreeNode, _BuildInfo]] = [(root, root_info)]
		built = 0

		while stack:
			node, info = stack.pop()
			built += 1

			if node.is_chance():
				self._expand_chance(config, node, info, stack)
				continue

			actions = _player_actions(config, info)
			if not actions:
				raise ConfigurationError("EmptyActionList", "tree")
			for a in actions:
				child, child_info = _child_of(config, info, a)
				node.actions.append(a)
				node.children.append(child)
				if child_info is not None:
					stack.append((child, child_info))

		logger.debug("built action tree: %d expanded nodes", built)
		return root

	def _expand_chance(
	 self,
	 config: TreeConfig,
	 node: ActionTreeNode,
	 info: _BuildInfo,
	 stack: List[Tuple[ActionTreeNode, _BuildInfo]],
	) -> None:
		# info already describes the street dealt by this node
		committed = (node.amount - config.starting_pot) // 2
		nxt_state = node.board_state.next()
		node.actions.append(Action.chance())
		if committed >= config.effective_stack:
			child = _runout_child(nxt_state, node.amount)
			node.children.append(child)
			if child.is_chance():
				stack.append((child, info))
			return
		child = ActionTreeNode(PLAYER_OOP, nxt_state, node.amount)
		node.children.append(child)
		stack.append((child, info))

	def num_nodes(self) -> int:
		if self._num_nodes is None:
			self._num_nodes = self.root.count_nodes()
		return self._num_nodes

	def num_decision_nodes(self) -> int:
		n = 0
		stack = [self.root]
		while stack:
			node = stack.pop()
			if not node.is_terminal() and not node.is_chance():
				n += 1
			stack.extend(node.children)
		return n

	def root_actions(self) -> List[Action]:
		return list(self.root.actions)

	def max_depth(self) -> int:
		best = 0
		stack: List[Tuple[ActionTreeNode, int]] = [(self.root, 0)]
		while stack:
			node, d = stack.pop()
			if d > best:
				best = d
			for c in node.children:
				stack.append((c, d + 1))
		return best

	def summary(self) -> Dict[str, Any]:
		return {
		 "initial_state": self.config.initial_state.name,
		 "nodes": self.num_nodes(),
		 "decision_nodes": self.num_decision_nodes(),
		 "depth": self.max_depth(),
		 "root_actions": [repr(a) for a in self.root_actions()],
		}
