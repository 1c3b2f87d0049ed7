"""
I expose the boundary operations of the solver to an embedding caller through one
session object: initialize from a plain configuration, solve (bounded or one step at a
time), query exploitability, finalize, navigate, query strategy / EV / equity and memory
usage, and save or load the whole game.

Key classes: GameConfig — text-level description of a subgame (pot, stack, ranges,
board and bet abstraction strings); PostflopSession — owns one PostFlopGame and a
SolverConfig and forwards each boundary call to the game, the CFR loop or game_io.

Inputs: GameConfig plus an optional SolverConfig (defaults from SolverConfig.from_env).
Outputs: plain Python values and numpy arrays.

Invariants: a failed init_game leaves the session in CONFIG_ERROR with no tree; a
failed load_from_file leaves the previous game untouched; every ordering rule of the
game applies unchanged (get_strategy before allocation raises OrderingError).
"""

from dataclasses import dataclass
from postflop.engine.action import Action
from postflop.errors import ConfigurationError, OrderingError
from postflop.game.bunching import BunchingData
from postflop.game.card_config import CardConfig
from postflop.game.game_state import State, allowed_states
from postflop.game.postflop_game import PostFlopGame
from postflop.io.game_io import load_game, save_game
from postflop.solver_config import SolverConfig
from postflop.solving.cfr_core import finalize, solve, solve_step
from postflop.solving.exploitability import compute_current_ev, compute_exploitability
from postflop.tree.action_tree import ActionTree
from postflop.tree.bet_size import BetSizeOptions, DonkSizeOptions
from postflop.tree.tree_config import TreeConfig
from typing import List, Optional, Tuple
import logging
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class GameConfig:
	starting_pot: int
	effective_stack: int
	oop_range: str
	ip_range: str
	flop: str
	turn: str = ""
	river: str = ""
	bet_sizes: Optional[str] = None
	raise_sizes: Optional[str] = None
	donk_sizes: Optional[str] = None
	raise_limit: Optional[int] = None

	def card_config(self) -> CardConfig:
		return CardConfig.from_strings(self.oop_range, self.ip_range, self.flop, self.turn, self.river)

	def tree_config(
	 self,
	 card_config: CardConfig,
	 solver_config: SolverConfig,
	) -> TreeConfig:
		bet = self.bet_sizes if self.bet_sizes is not None else solver_config.default_bet_sizes
		raise_ = self.raise_sizes if self.raise_sizes is not None else solver_config.default_raise_sizes
		sizes = BetSizeOptions.parse(bet, raise_, self.raise_limit)
		return TreeConfig.with_uniform_sizes(
		 card_config.initial_state(),
		 int(self.starting_pot),
		 int(self.effective_stack),
		 sizes,
		 donk=DonkSizeOptions.parse(self.donk_sizes),
		 rake_rate=float(solver_config.rake_rate),
		 rake_cap=float(solver_config.rake_cap),
		 add_allin_threshold=float(solver_config.add_allin_threshold),
		 force_allin_threshold=float(solver_config.force_allin_threshold),
		 merging_threshold=float(solver_config.merging_threshold),
		)


class PostflopSession:
	def __init__(self, solver_config: Optional[SolverConfig] = None):
		self.solver_config = solver_config if solver_config is not None else SolverConfig.from_env()
		self.game = PostFlopGame()
		self.game_config: Optional[GameConfig] = None

	@property
	def state(self) -> State:
		return self.game.state

	def init_game(
	 self,
	 game_config: GameConfig,
	 bunching: Optional[BunchingData] = None,
	 allocate: bool = True,
	) -> None:
		game = PostFlopGame()
		try:
			card_config = game_config.card_config()
			tree = ActionTree(game_config.tree_config(card_config, self.solver_config))
			game.update_config(card_config, tree)
			if bunching is not None:
				game.set_bunching_effect(bunching)
		except ConfigurationError:
			game = PostFlopGame()
			game.state = State.CONFIG_ERROR
			self.game = game
			self.game_config = None
			raise
		if allocate:
			game.allocate_memory(self.solver_config.enable_compression)
		self.game = game
		self.game_config = game_config

	def allocate_memory(self, enable_compression: Optional[bool] = None) -> None:
		flag = self.solver_config.enable_compression if enable_compression is None else enable_compression
		self.game.allocate_memory(bool(flag))

	def solve(
	 self,
	 max_iterations: Optional[int] = None,
	 target_exploitability: Optional[float] = None,
	) -> float:
		cfg = self.solver_config
		budget = cfg.max_iterations if max_iterations is None else int(max_iterations)
		if target_exploitability is None:
			if self.game.tree_config is None:
				raise OrderingError("solve", self.game.state, (State.MEMORY_ALLOCATED,))
			target = cfg.target_exploitability(self.game.tree_config.starting_pot)
		else:
			target = float(target_exploitability)
		return solve(
		 self.game,
		 budget,
		 target,
		 check_interval=cfg.check_interval,
		 num_threads=cfg.num_threads,
		)

	def solve_step(self, iteration: Optional[int] = None) -> None:
		it = self.game.iteration if iteration is None else int(iteration)
		solve_step(self.game, it, num_threads=self.solver_config.num_threads)

	def _require_tables(self, operation: str) -> None:
		if self.game.state < State.MEMORY_ALLOCATED:
			raise OrderingError(operation, self.game.state, allowed_states(State.MEMORY_ALLOCATED))

	def get_exploitability(self) -> float:
		self._require_tables("get_exploitability")
		return compute_exploitability(self.game)

	def get_current_ev(self) -> List[float]:
		self._require_tables("get_current_ev")
		return compute_current_ev(self.game)

	def finalize(self) -> None:
		finalize(self.game)

	def get_actions(self) -> List[Action]:
		return self.game.available_actions()

	def play_action(self, action_index: int) -> None:
		self.game.play(action_index)

	def back_to_root(self) -> None:
		self.game.back_to_root()

	def get_strategy(self) -> np.ndarray:
		return self.game.strategy()

	def _fresh_cache(self) -> None:
		if self.game._cache_node != self.game.current_node():
			self.game.cache_normalized_weights()

	def get_ev(self, player: int) -> np.ndarray:
		self._require_tables("get_ev")
		self._fresh_cache()
		return self.game.expected_values(player)

	def get_equity(self, player: int) -> np.ndarray:
		self._require_tables("get_equity")
		self._fresh_cache()
		return self.game.equity(player)

	def get_memory_usage(self) -> Tuple[int, int]:
		return self.game.memory_usage()

	def save_to_file(self, path: str) -> str:
		return save_game(self.game, path)

	def load_from_file(self, path: str) -> None:
		game = load_game(path)
		self.game = game
		self.game_config = None
