"""
I compute terminal counterfactual values for one player's hands against the opponent's
reach vector, vectorized with numpy. I handle fold terminals and river showdowns with
exact card removal: a hand never meets an opponent hand that shares a card with it,
which I get by inclusion-exclusion over the two hole cards instead of a pairwise loop.

Key class: TerminalEvaluator. Key methods: valid_mask — hands not blocked by a board;
compat_sums — opponent reach compatible with each hand; fold_values and showdown_values
— terminal values in chips or equity units; strengths — cached treys strengths per
board.

Payoffs for a contested pot P with rake R = min(P * rake_rate, rake_cap): a win pays
P/2 - R, a loss costs P/2 and a tie costs R/2, each divided by the number of valid hand
pairs at the root so that summing weight times value gives chip EV. Equity mode pays 1
for a win, 1/2 for a tie and 0 for a loss with the same normalization.

Inputs: per-player hand arrays (N, 2), reach vectors, boards as sorted tuples.
Outputs: float64 vectors aligned with the player's hands. Invariants: hands blocked by
the board get value 0; nothing here mutates the reach passed in. Performance: a showdown
costs one argsort and one (N, 52) cumulative sum; board data is cached and shared across
threads since entries are write-once.
"""

from postflop.constants import NUM_CARDS
from postflop.engine.hand_eval import hand_strengths
from typing import Dict, List, Sequence, Tuple
import numpy as np


def _incidence(hands: np.ndarray) -> np.ndarray:
	out = np.zeros((len(hands), NUM_CARDS), dtype=np.float64)
	if len(hands):
		rows = np.arange(len(hands))
		out[rows, hands[:, 0]] = 1.0
		out[rows, hands[:, 1]] = 1.0
	return out


def _same_hand_index(
 mine: np.ndarray,
 theirs: np.ndarray,
) -> np.ndarray:
	lookup: Dict[Tuple[int, int], int] = {}
	j = 0
	while j < len(theirs):
		lookup[(int(theirs[j][0]), int(theirs[j][1]))] = j
		j += 1
	out = np.full(len(mine), -1, dtype=np.int64)
	i = 0
	while i < len(mine):
		out[i] = lookup.get((int(mine[i][0]), int(mine[i][1])), -1)
		i += 1
	return out


class TerminalEvaluator:
	def __init__(
	 self,
	 hands: Sequence[np.ndarray],
	 num_combinations: float,
	 rake_rate: float = 0.0,
	 rake_cap: float = 0.0,
	):
		self.hands: List[np.ndarray] = [np.asarray(hands[0]), np.asarray(hands[1])]
		self.incidence = [_incidence(self.hands[0]), _incidence(self.hands[1])]
		self.same_index = [
		 _same_hand_index(self.hands[0], self.hands[1]),
		 _same_hand_index(self.hands[1], self.hands[0]),
		]
		self.num_combinations = float(num_combinations)
		self.rake_rate = float(rake_rate)
		self.rake_cap = float(rake_cap)
		self._strengths: Dict[Tuple[int, ...], Tuple[np.ndarray, np.ndarray]] = {}
		self._valid: Dict[Tuple[int, Tuple[int, ...]], np.ndarray] = {}

	def set_num_combinations(self, n: float) -> None:
		self.num_combinations = float(n)

	def valid_mask(
	 self,
	 player: int,
	 board: Tuple[int, ...],
	) -> np.ndarray:
		key = (int(player), board)
		m = self._valid.get(key)
		if m is None:
			inc = self.incidence[player]
			if board:
				m = inc[:, list(board)].sum(axis=1) == 0.0
			else:
				m = np.ones(len(inc), dtype=bool)
			self._valid[key] = m
		return m

	def card_mask(
	 self,
	 player: int,
	 card: int,
	) -> np.ndarray:
		return self.incidence[player][:, int(card)] == 0.0

	def strengths(
	 self,
	 board: Tuple[int, ...],
	) -> Tuple[np.ndarray, np.ndarray]:
		s = self._strengths.get(board)
		if s is None:
			s = (hand_strengths(self.hands[0], board), hand_strengths(self.hands[1], board))
			self._strengths[board] = s
		return s

	def compat_sums(
	 self,
	 player: int,
	 cfreach: np.ndarray,
	 board: Tuple[int, ...],
	) -> np.ndarray:
		opp = 1 - player
		r = cfreach * self.valid_mask(opp, board)
		total = float(np.sum(r))
		card_tot = self.incidence[opp].T @ r
		h = self.hands[player]
		same = np.where(self.same_index[player] >= 0, r[np.maximum(self.same_index[player], 0)], 0.0)
		out = total - card_tot[h[:, 0]] - card_tot[h[:, 1]] + same
		return out * self.valid_mask(player, board)

	def _payoffs(
	 self,
	 amount: int,
	 equity: bool,
	) -> Tuple[float, float, float]:
		n = self.num_combinations
		if equity:
			return 1.0 / n, 0.0, 0.5 / n
		pot = float(amount)
		half = 0.5 * pot
		rake = min(pot * self.rake_rate, self.rake_cap)
		return (half - rake) / n, -half / n, -0.5 * rake / n

	def fold_values(
	 self,
	 player: int,
	 cfreach: np.ndarray,
	 amount: int,
	 folder: int,
	 board: Tuple[int, ...],
	 equity: bool = False,
	) -> np.ndarray:
		win, lose, _ = self._payoffs(amount, equity)
		payoff = lose if int(folder) == int(player) else win
		return payoff * self.compat_sums(player, cfreach, board)

	def showdown_values(
	 self,
	 player: int,
	 cfreach: np.ndarray,
	 amount: int,
	 board: Tuple[int, ...],
	 equity: bool = False,
	) -> np.ndarray:
		opp = 1 - player
		win_p, lose_p, tie_p = self._payoffs(amount, equity)
		s_all = self.strengths(board)
		s_me = s_all[player]
		s_opp = s_all[opp]

		r = cfreach * self.valid_mask(opp, board)
		order = np.argsort(s_opp, kind="stable")
		s_sorted = s_opp[order]
		r_sorted = r[order]

		cum = np.concatenate(([0.0], np.cumsum(r_sorted)))
		weighted = self.incidence[opp][order] * r_sorted[:, None]
		cum_card = np.vstack((np.zeros((1, NUM_CARDS)), np.cumsum(weighted, axis=0)))

		h = self.hands[player]
		c1 = h[:, 0]
		c2 = h[:, 1]
		lo = np.searchsorted(s_sorted, s_me, side="left")
		hi = np.searchsorted(s_sorted, s_me, side="right")
		same = np.where(self.same_index[player] >= 0, r[np.maximum(self.same_index[player], 0)], 0.0)

		below = cum[lo] - cum_card[lo, c1] - cum_card[lo, c2]
		at_or_below = cum[hi] - cum_card[hi, c1] - cum_card[hi, c2] + same
		compat = cum[-1] - cum_card[-1, c1] - cum_card[-1, c2] + same
		above = compat - at_or_below
		tied = at_or_below - below

		out = win_p * below + lose_p * above + tie_p * tied
		return out * (s_me > 0)


def chance_factor(board_size: int) -> float:
	"""Probability of one dealt card given the board and both players' hole cards."""
	return 1.0 / float(NUM_CARDS - int(board_size) - 4)
