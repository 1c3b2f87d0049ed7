"""
I implement PostFlopGame, the stateful owner of one subgame: its card and tree
configuration, the arena expanded over the board, the per-player hand lists and reach
weights, the terminal evaluator, the solver tables and the navigation position. I am
composed from three mixins (storage, navigation, queries) and gate every operation on the
lifecycle State.

Key class: PostFlopGame. Key methods: with_config — build and configure in one call;
update_config — validate the cards and the tree, expand the arena and move to TREE_BUILT
(or CONFIG_ERROR, re-raising the failure); set_bunching_effect — apply a precomputed
bunching table while in TREE_BUILT; allocate_memory (storage mixin); finalize — move to
SOLVED; resume — return from SOLVED to MEMORY_ALLOCATED keeping the tables;
num_combinations — weighted count of valid hand pairs at the root.

Inputs: CardConfig and ActionTree. Outputs: a game ready for allocation and solving.
Invariants: hands of a player are the hands with positive weight that do not collide with
the dealt board, in ascending hand-index order; a configuration failure installs nothing
and leaves the game in CONFIG_ERROR; ordering violations raise OrderingError with the
state unchanged.

Dependencies: numpy; the card, tree and evaluation modules; stdlib logging.
"""

from postflop.engine.card import HAND_TABLE
from postflop.errors import ConfigurationError
from postflop.game.bunching import BunchingData
from postflop.game.card_config import CardConfig
from postflop.game.evaluation import TerminalEvaluator
from postflop.game.game_navigation import GameNavigationMixin
from postflop.game.game_queries import GameQueriesMixin
from postflop.game.game_state import State, requires_state
from postflop.game.game_storage import GameStorageMixin
from postflop.game.game_tree import GameTree
from postflop.tree.action_tree import ActionTree
from postflop.tree.tree_config import TreeConfig
from typing import List, Optional, Tuple
import logging
import numpy as np

logger = logging.getLogger(__name__)


def _player_hands(
 card_config: CardConfig,
 player: int,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
	board = set(card_config.board())
	data = card_config.range[player].data
	ids: List[int] = []
	for i in np.nonzero(data > 0.0)[0]:
		c1, c2 = HAND_TABLE[int(i)]
		if c1 in board or c2 in board:
			continue
		ids.append(int(i))
	hand_ids = np.asarray(ids, dtype=np.int64)
	hands = np.asarray([HAND_TABLE[i] for i in ids], dtype=np.int64).reshape(-1, 2)
	weights = data[hand_ids].astype(np.float64)
	return hand_ids, hands, weights


class PostFlopGame(GameStorageMixin, GameNavigationMixin, GameQueriesMixin):
	def __init__(self):
		self.state = State.UNINITIALIZED
		self._clear()

	def _clear(self) -> None:
		self.card_config: Optional[CardConfig] = None
		self.tree_config: Optional[TreeConfig] = None
		self.action_tree: Optional[ActionTree] = None
		self.arena: Optional[GameTree] = None
		self.evaluator: Optional[TerminalEvaluator] = None
		self.hand_ids: List[np.ndarray] = []
		self.hands: List[np.ndarray] = []
		self.range_weights: List[np.ndarray] = []
		self.initial_weights: List[np.ndarray] = []
		self.num_combinations = 0.0
		self.bunching: Optional[BunchingData] = None
		self._weights: List[np.ndarray] = []
		self._compat: List[np.ndarray] = []
		self._normalized: List[np.ndarray] = []
		self._reset_storage()
		self._reset_navigation()

	@staticmethod
	def with_config(
	 card_config: CardConfig,
	 action_tree: ActionTree,
	) -> "PostFlopGame":
		game = PostFlopGame()
		game.update_config(card_config, action_tree)
		return game

	def update_config(
	 self,
	 card_config: CardConfig,
	 action_tree: ActionTree,
	) -> None:
		try:
			built = self._configure(card_config, action_tree)
		except ConfigurationError:
			self._clear()
			self.state = State.CONFIG_ERROR
			raise

		self._clear()
		(
		 self.card_config,
		 self.tree_config,
		 self.action_tree,
		 self.arena,
		 self.evaluator,
		 self.hand_ids,
		 self.hands,
		 self.range_weights,
		) = built
		self.initial_weights = [self.range_weights[0].copy(), self.range_weights[1].copy()]
		self.num_combinations = self._count_combinations()
		self.evaluator.set_num_combinations(self.num_combinations)
		self.state = State.TREE_BUILT

		info = self.arena.summary()
		logger.info(
		 "game tree built: %d nodes, %d decision nodes, hands %d/%d",
		 info["nodes"],
		 info["decision_nodes"],
		 len(self.hands[0]),
		 len(self.hands[1]),
		)

	def _configure(
	 self,
	 card_config: CardConfig,
	 action_tree: ActionTree,
	):
		card_config.validate()
		tree_config = action_tree.config
		tree_config.validate()
		if card_config.initial_state() != tree_config.initial_state:
			raise ConfigurationError(
			 f"BoardStateMismatch:{card_config.initial_state().name}!={tree_config.initial_state.name}",
			 "config",
			)

		ids = []
		hands = []
		weights = []
		for p in (0, 1):
			i, h, w = _player_hands(card_config, p)
			if len(i) == 0:
				raise ConfigurationError(f"EmptyRangeAfterBoardRemoval:player{p}", "range")
			ids.append(i)
			hands.append(h)
			weights.append(w)

		evaluator = TerminalEvaluator(
		 hands,
		 1.0,
		 rake_rate=tree_config.rake_rate,
		 rake_cap=tree_config.rake_cap,
		)
		board = card_config.board()
		pairs = float(np.dot(weights[0], evaluator.compat_sums(0, weights[1], board)))
		if pairs <= 0.0:
			raise ConfigurationError("NoValidHandPairs", "range")

		arena = GameTree(action_tree, board)
		return card_config, tree_config, action_tree, arena, evaluator, ids, hands, weights

	def _count_combinations(self) -> float:
		board = self.card_config.board()
		compat = self.evaluator.compat_sums(0, self.initial_weights[1], board)
		return float(np.dot(self.initial_weights[0], compat))

	@requires_state(State.TREE_BUILT, State.TREE_BUILT)
	def set_bunching_effect(self, data: BunchingData) -> None:
		try:
			data.validate()
			if not data.matches_flop(self.card_config.flop):
				raise ConfigurationError("BunchingFlopMismatch", "config")
			weights = [
			 data.apply(0, self.range_weights[0], self.hand_ids[0]),
			 data.apply(1, self.range_weights[1], self.hand_ids[1]),
			]
			compat = self.evaluator.compat_sums(0, weights[1], self.card_config.board())
			if float(np.dot(weights[0], compat)) <= 0.0:
				raise ConfigurationError("NoValidHandPairs", "range")
		except ConfigurationError:
			self._clear()
			self.state = State.CONFIG_ERROR
			raise
		self.bunching = data
		self.initial_weights = weights
		self.num_combinations = self._count_combinations()
		self.evaluator.set_num_combinations(self.num_combinations)

	@requires_state(State.MEMORY_ALLOCATED)
	def finalize(self) -> None:
		self.state = State.SOLVED
		logger.info("game finalized after %d iterations", int(self.iteration))

	@requires_state(State.SOLVED, State.SOLVED)
	def resume(self) -> None:
		self.state = State.MEMORY_ALLOCATED

	def is_ready(self) -> bool:
		return self.state >= State.MEMORY_ALLOCATED
