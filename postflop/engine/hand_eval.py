"""
I adapt the treys evaluator to the solver's integer cards. I turn a seven-card showdown
into a strength where a larger value is a stronger hand, and I vectorize it over a list
of private hands for one board, returning 0 for hands that collide with the board so
terminal evaluation can mask them out.

Key functions: hand_strength — one hand on a five-card board; hand_strengths — numpy
int32 vector for an (N, 2) hand array. Invariants: strengths lie in 1..7462 for valid
hands; 0 marks a blocked hand. Dependencies: treys (Card, Evaluator), numpy.
Performance: treys card ints are converted once at import; results for one board are
memoized per hand pair by the caller's board cache.
"""

from postflop.engine.card import card_to_string
from typing import Sequence
import numpy as np
from treys import Card, Evaluator

_EVALUATOR = Evaluator()
_TREYS_CARDS = [Card.new(card_to_string(c)) for c in range(52)]
_WORST_RANK = 7463


def hand_strength(
 hand: Sequence[int],
 board: Sequence[int],
) -> int:
	if len(board) != 5:
		raise ValueError("ShowdownNeedsFiveCards")
	used = set(board)
	if hand[0] in used or hand[1] in used or hand[0] == hand[1]:
		return 0
	rank = _EVALUATOR.evaluate(
	 [_TREYS_CARDS[hand[0]], _TREYS_CARDS[hand[1]]],
	 [_TREYS_CARDS[c] for c in board],
	)
	return _WORST_RANK - int(rank)


def hand_strengths(
 hands: np.ndarray,
 board: Sequence[int],
) -> np.ndarray:
	if len(board) != 5:
		raise ValueError("ShowdownNeedsFiveCards")
	used = set(int(c) for c in board)
	board_treys = [_TREYS_CARDS[int(c)] for c in board]
	out = np.zeros(len(hands), dtype=np.int32)
	i = 0
	while i < len(hands):
		a = int(hands[i][0])
		b = int(hands[i][1])
		if a not in used and b not in used:
			rank = _EVALUATOR.evaluate([_TREYS_CARDS[a], _TREYS_CARDS[b]], board_treys)
			out[i] = _WORST_RANK - int(rank)
		i += 1
	return out
