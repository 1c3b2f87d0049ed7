"""
I implement the discounted CFR loop over a PostFlopGame. One iteration runs one traversal
per player (alternating updates). At the traversing player's nodes I compute the
regret-matching strategy, recurse per action, discount the cumulative regrets and add the
instantaneous regrets; at the opponent's nodes I push the opponent's reach through the
current strategy and fold that reach-weighted strategy into the cumulative strategy.

Key classes/functions: DiscountParams — alpha/beta/gamma of one iteration;
regret_matching — strategy proportional to positive regret, uniform when no regret is
positive; PostflopCFR — traversal engine with optional fork-join over chance children;
solve — iterate until the budget is spent or exploitability reaches the target;
solve_step — exactly one iteration; finalize — mark the game solved.

Discount schedule: alpha_t = t^1.5 / (t^1.5 + 1) with t = max(iteration - 1, 0) scales
positive regrets, beta = 0.5 scales negative regrets, gamma_t = (u / (u + 1))^3 with
u = iteration - 4^floor(log4(iteration)) scales the cumulative strategy, so the strategy
average restarts at every power of four.

Inputs: a game in MEMORY_ALLOCATED. Outputs: updated tables; solve returns the last
measured exploitability in chips, already narrowed to float32 precision.
Invariants: accumulation is float64 end to end; every worker of the fork-join owns a
disjoint subtree and the pool is joined before the traversal returns, so iteration t+1
never reads a table that iteration t is still writing.

Dependencies: numpy; concurrent.futures for the fork-join; exploitability for the
convergence measure; stdlib logging.
"""

from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from postflop.constants import DEFAULT_CHECK_INTERVAL
from postflop.errors import OrderingError
from postflop.game.evaluation import chance_factor
from postflop.game.game_state import State
from postflop.game.game_tree import KIND_CHANCE, KIND_FOLD, KIND_SHOWDOWN
from postflop.solving.exploitability import compute_exploitability
from typing import Iterator, Optional
import logging
import math
import time
import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscountParams:
	alpha: float
	beta: float
	gamma: float

	@staticmethod
	def for_iteration(iteration: int) -> "DiscountParams":
		t = int(iteration)
		t_alpha = float(max(t - 1, 0))
		pow_alpha = t_alpha * math.sqrt(t_alpha)
		if t <= 0:
			lower = 0
		else:
			lower = 1
			while lower * 4 <= t:
				lower *= 4
		t_gamma = float(t - lower)
		return DiscountParams(
		 alpha=pow_alpha / (pow_alpha + 1.0),
		 beta=0.5,
		 gamma=(t_gamma / (t_gamma + 1.0)) ** 3,
		)


def regret_matching(regret: np.ndarray) -> np.ndarray:
	pos = np.maximum(regret, 0.0)
	sums = pos.sum(axis=0)
	num_actions = regret.shape[0]
	out = np.full(regret.shape, 1.0 / float(num_actions), dtype=np.float64)
	mass = sums > 0.0
	if np.any(mass):
		out[:, mass] = pos[:, mass] / sums[mass]
	return out


class PostflopCFR:
	def __init__(
	 self,
	 game,
	 num_threads: int = 1,
	):
		self.game = game
		self.num_threads = max(1, int(num_threads))
		self._executor: Optional[ThreadPoolExecutor] = None

	@contextmanager
	def executor_scope(self) -> Iterator[None]:
		if self.num_threads <= 1:
			yield
			return
		with ThreadPoolExecutor(max_workers=self.num_threads) as ex:
			self._executor = ex
			try:
				yield
			finally:
				self._executor = None

	def step(self, iteration: int) -> None:
		game = self.game
		params = DiscountParams.for_iteration(iteration)
		for player in (0, 1):
			self._solve_node(
			 0,
			 player,
			 game.initial_weights[1 - player],
			 params,
			 self._executor,
			)
		game.iteration = max(int(game.iteration), int(iteration) + 1)

	def _solve_node(
	 self,
	 idx: int,
	 player: int,
	 cfreach: np.ndarray,
	 params: DiscountParams,
	 executor: Optional[ThreadPoolExecutor],
	) -> np.ndarray:
		game = self.game
		arena = game.arena
		ev = game.evaluator
		kind = arena.kinds[idx]

		if kind == KIND_FOLD:
			return ev.fold_values(
			 player,
			 cfreach,
			 arena.amounts[idx],
			 arena.players[idx] & 3,
			 arena.boards[idx],
			)

		if kind == KIND_SHOWDOWN:
			return ev.showdown_values(player, cfreach, arena.amounts[idx], arena.boards[idx])

		if kind == KIND_CHANCE:
			return self._solve_chance(idx, player, cfreach, params, executor)

		slot = arena.slots[idx]
		children = arena.children[idx]
		regret = game.load_regrets(slot)
		strategy = regret_matching(regret)

		if arena.players[idx] == player:
			cfv_actions = np.empty((len(children), len(game.hands[player])), dtype=np.float64)
			a = 0
			while a < len(children):
				cfv_actions[a] = self._solve_node(children[a], player, cfreach, params, executor)
				a += 1
			result = np.sum(strategy * cfv_actions, axis=0)
			coef = np.where(regret >= 0.0, params.alpha, params.beta)
			game.store_regrets(slot, regret * coef + cfv_actions - result[None, :])
			return result

		cfreach_actions = strategy * cfreach[None, :]
		result = np.zeros(len(game.hands[player]), dtype=np.float64)
		a = 0
		while a < len(children):
			result += self._solve_node(children[a], player, cfreach_actions[a], params, executor)
			a += 1
		cum = game.load_cum_strategy(slot)
		game.store_cum_strategy(slot, cum * params.gamma + cfreach_actions)
		return result

	def _solve_chance(
	 self,
	 idx: int,
	 player: int,
	 cfreach: np.ndarray,
	 params: DiscountParams,
	 executor: Optional[ThreadPoolExecutor],
	) -> np.ndarray:
		game = self.game
		arena = game.arena
		ev = game.evaluator
		children = arena.children[idx]
		actions = arena.actions[idx]
		opp = 1 - player

		def run(i: int) -> np.ndarray:
			card = actions[i].card
			reach = cfreach * ev.card_mask(opp, card)
			v = self._solve_node(children[i], player, reach, params, None)
			return v * ev.card_mask(player, card)

		if executor is not None:
			parts = list(executor.map(run, range(len(children))))
		else:
			parts = [run(i) for i in range(len(children))]

		result = np.zeros(len(game.hands[player]), dtype=np.float64)
		for v in parts:
			result += v
		return result * chance_factor(len(arena.boards[idx]))


def _require_iterable(game, operation: str) -> None:
	if game.state != State.MEMORY_ALLOCATED:
		raise OrderingError(operation, game.state, (State.MEMORY_ALLOCATED,))


def solve_step(
 game,
 iteration: int,
 num_threads: int = 1,
) -> None:
	_require_iterable(game, "solve_step")
	cfr = PostflopCFR(game, num_threads)
	with cfr.executor_scope():
		cfr.step(int(iteration))


def solve(
 game,
 max_iterations: int,
 target_exploitability: float,
 check_interval: int = DEFAULT_CHECK_INTERVAL,
 num_threads: int = 1,
) -> float:
	_require_iterable(game, "solve")
	interval = max(1, int(check_interval))
	budget = max(0, int(max_iterations))
	target = float(target_exploitability)

	cfr = PostflopCFR(game, num_threads)
	t0 = time.time()
	exploitability = float("inf")
	done = 0

	with cfr.executor_scope():
		while done < budget:
			cfr.step(game.iteration)
			done += 1
			if (done % interval == 0) or (done == budget):
				exploitability = compute_exploitability(game)
				logger.debug(
				 "iteration %d: exploitability %.6f",
				 int(game.iteration),
				 exploitability,
				)
				if exploitability <= target:
					break

	if budget == 0:
		exploitability = compute_exploitability(game)

	logger.info(
	 "solve finished after %d iterations (total %d) in %.2fs: exploitability %.6f",
	 done,
	 int(game.iteration),
	 time.time() - t0,
	 exploitability,
	)
	return float(exploitability)


def finalize(game) -> None:
	game.finalize()
