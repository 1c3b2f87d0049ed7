"""
I hold a player's starting-hand distribution as a fixed-length float32 weight vector over
the 1326 two-card hands and parse the usual range notation into it. I keep weights in
[0, 1]; they are not required to sum to one because the game renormalizes them per board
removal.

Key class: Range. Key methods: parse — comma-separated tokens such as "QQ+", "AKs",
"KTo-K7o", "T9", "AsKs" and "JJ:0.5" where later tokens overwrite earlier ones;
uniform — every hand at weight 1; from_weights — wrap an existing vector; weight /
set_weight — per-hand access; num_combos — total weight; nonzero_hands — indices with
positive weight.

Inputs: range strings or 1326-length arrays. Outputs: Range instances. Invariants: a
malformed token raises ConfigurationError with the "range" category, distinct from the
"card" category used by board parsing. Dependencies: numpy; postflop.engine.card.
"""

from postflop.constants import NUM_COMBOS
from postflop.engine.card import RANKS, SUITS, card_from_str, card_pair_to_index
from postflop.errors import ConfigurationError
from typing import Iterable, List, Tuple
import numpy as np


def _rank_of(ch: str, token: str) -> int:
	r = RANKS.find(ch.upper())
	if r < 0:
		raise ConfigurationError(f"InvalidRangeToken:{token!r}", "range")
	return r


def _pair_combos(rank: int) -> List[Tuple[int, int]]:
	out: List[Tuple[int, int]] = []
	s1 = 0
	while s1 < 4:
		s2 = s1 + 1
		while s2 < 4:
			out.append((4 * rank + s1, 4 * rank + s2))
			s2 += 1
		s1 += 1
	return out


def _nonpair_combos(r1: int, r2: int, suitedness: str) -> List[Tuple[int, int]]:
	out: List[Tuple[int, int]] = []
	for s1 in range(4):
		for s2 in range(4):
			if suitedness == "s" and s1 != s2:
				continue
			if suitedness == "o" and s1 == s2:
				continue
			out.append((4 * r1 + s1, 4 * r2 + s2))
	return out


def _split_weight(token: str) -> Tuple[str, float]:
	if ":" not in token:
		return token, 1.0
	body, w = token.split(":", 1)
	try:
		weight = float(w)
	except ValueError:
		raise ConfigurationError(f"InvalidRangeWeight:{token!r}", "range") from None
	if not (0.0 <= weight <= 1.0):
		raise ConfigurationError(f"RangeWeightOutOfBounds:{token!r}", "range")
	return body, weight


def _parse_hand_class(text: str, token: str) -> Tuple[int, int, str]:
	if len(text) not in (2, 3):
		raise ConfigurationError(f"InvalidRangeToken:{token!r}", "range")
	r1 = _rank_of(text[0], token)
	r2 = _rank_of(text[1], token)
	suitedness = ""
	if len(text) == 3:
		suitedness = text[2].lower()
		if suitedness not in ("s", "o"):
			raise ConfigurationError(f"InvalidRangeToken:{token!r}", "range")
	if r1 == r2 and suitedness:
		raise ConfigurationError(f"InvalidRangeToken:{token!r}", "range")
	if r1 < r2:
		r1, r2 = r2, r1
	return r1, r2, suitedness


def _class_combos(r1: int, r2: int, suitedness: str) -> List[Tuple[int, int]]:
	if r1 == r2:
		return _pair_combos(r1)
	return _nonpair_combos(r1, r2, suitedness)


def _expand_token(token: str) -> List[Tuple[int, int]]:
	if "-" in token:
		lo_text, hi_text = token.split("-", 1)
		a = _parse_hand_class(lo_text, token)
		b = _parse_hand_class(hi_text, token)
		if a[2] != b[2]:
			raise ConfigurationError(f"MismatchedDashRange:{token!r}", "range")
		if a[0] == a[1] and b[0] == b[1]:
			lo = min(a[0], b[0])
			hi = max(a[0], b[0])
			out: List[Tuple[int, int]] = []
			r = lo
			while r <= hi:
				out.extend(_pair_combos(r))
				r += 1
			return out
		if a[0] != b[0] or a[0] == a[1] or b[0] == b[1]:
			raise ConfigurationError(f"MismatchedDashRange:{token!r}", "range")
		lo = min(a[1], b[1])
		hi = max(a[1], b[1])
		out = []
		r = lo
		while r <= hi:
			out.extend(_nonpair_combos(a[0], r, a[2]))
			r += 1
		return out

	if token.endswith("+"):
		r1, r2, suitedness = _parse_hand_class(token[:-1], token)
		out = []
		if r1 == r2:
			r = r1
			while r < len(RANKS):
				out.extend(_pair_combos(r))
				r += 1
			return out
		r = r2
		while r < r1:
			out.extend(_nonpair_combos(r1, r, suitedness))
			r += 1
		return out

	if len(token) == 4 and token[1].lower() in SUITS and token[3].lower() in SUITS:
		try:
			c1 = card_from_str(token[0:2])
			c2 = card_from_str(token[2:4])
		except ConfigurationError:
			raise ConfigurationError(f"InvalidRangeToken:{token!r}", "range") from None
		if c1 == c2:
			raise ConfigurationError(f"InvalidRangeToken:{token!r}", "range")
		return [(c1, c2)]

	r1, r2, suitedness = _parse_hand_class(token, token)
	return _class_combos(r1, r2, suitedness)


class Range:
	def __init__(self, weights=None):
		if weights is None:
			self.data = np.zeros(NUM_COMBOS, dtype=np.float32)
		else:
			arr = np.asarray(weights, dtype=np.float32).reshape(-1)
			if arr.shape[0] != NUM_COMBOS:
				raise ConfigurationError(f"RangeLengthMismatch:{arr.shape[0]}", "range")
			if np.any(~np.isfinite(arr)) or np.any(arr < 0.0) or np.any(arr > 1.0):
				raise ConfigurationError("RangeWeightOutOfBounds", "range")
			self.data = arr.copy()

	@staticmethod
	def uniform() -> "Range":
		return Range(np.ones(NUM_COMBOS, dtype=np.float32))

	@staticmethod
	def from_weights(weights) -> "Range":
		return Range(weights)

	@staticmethod
	def parse(text: str) -> "Range":
		if text is None:
			raise ConfigurationError("EmptyRange", "range")
		out = Range()
		tokens = [t.strip() for t in str(text).split(",")]
		tokens = [t for t in tokens if t]
		if not tokens:
			raise ConfigurationError("EmptyRange", "range")
		for raw in tokens:
			body, weight = _split_weight(raw)
			for c1, c2 in _expand_token(body.strip()):
				out.data[card_pair_to_index(c1, c2)] = weight
		return out

	def weight(self, c1: int, c2: int) -> float:
		return float(self.data[card_pair_to_index(c1, c2)])

	def set_weight(self, c1: int, c2: int, weight: float) -> None:
		w = float(weight)
		if not (0.0 <= w <= 1.0):
			raise ConfigurationError("RangeWeightOutOfBounds", "range")
		self.data[card_pair_to_index(c1, c2)] = w

	def set_many(self, hands: Iterable[Tuple[int, int]], weight: float) -> None:
		for c1, c2 in hands:
			self.set_weight(c1, c2, weight)

	def num_combos(self) -> float:
		return float(np.sum(self.data, dtype=np.float64))

	def nonzero_hands(self) -> np.ndarray:
		return np.nonzero(self.data > 0.0)[0]

	def is_empty(self) -> bool:
		return not bool(np.any(self.data > 0.0))

	def __eq__(self, other) -> bool:
		if not isinstance(other, Range):
			return NotImplemented
		return bool(np.array_equal(self.data, other.data))

	def __repr__(self) -> str:
		return f"Range(combos={self.num_combos():.2f})"
