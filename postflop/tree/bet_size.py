"""
I implement the declarative bet abstraction: the sizing rules a street offers and the
arithmetic that turns a rule into a concrete wager for the pot and stacks at a node.

Key classes/functions: BetSizeKind — wire discriminants of a rule; BetSize — one rule
(PotRelative, PrevBetRelative, Additive, Geometric, AllIn); parse_bet_sizes — parse
"60%,100%,a" style text; BetSizeOptions — ordered bet and raise rules of one player on one
street plus an optional raise-count limit; DonkSizeOptions — the rules for an OOP lead
into the previous street's aggressor; bet_amount / raise_to_amount — resolve a rule.

Grammar of one rule: "N%" pot relative; "Nx" previous-bet relative (raises only, N > 1);
"Nc" additive N chips and "NcMr" the same allowed only while fewer than M raises were made
on the street (0 means no cap); "e", "Ne" and "NeM%" geometric over N streets (0 means
the streets left) never exceeding M% of the pot; "a" all-in.

Inputs: strings or already-built rules. Outputs: immutable dataclasses and integer chip
amounts. Invariants: malformed text raises ConfigurationError with the "bet_size"
category; resolved wagers are positive integers, rounded half away from zero.
Dependencies: stdlib only.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from postflop.errors import ConfigurationError
from typing import List, Optional, Tuple
import math


class BetSizeKind(IntEnum):
	POT_RELATIVE = 0
	PREV_BET_RELATIVE = 1
	ADDITIVE = 2
	GEOMETRIC = 3
	ALLIN = 4


@dataclass(frozen=True)
class BetSize:
	kind: BetSizeKind
	ratio: float = 0.0
	amount: int = 0
	cap: int = 0
	num_streets: int = 0
	max_ratio: float = math.inf

	@staticmethod
	def pot_relative(ratio: float) -> "BetSize":
		return BetSize(BetSizeKind.POT_RELATIVE, ratio=float(ratio))

	@staticmethod
	def prev_bet_relative(ratio: float) -> "BetSize":
		return BetSize(BetSizeKind.PREV_BET_RELATIVE, ratio=float(ratio))

	@staticmethod
	def additive(amount: int, cap: int = 0) -> "BetSize":
		return BetSize(BetSizeKind.ADDITIVE, amount=int(amount), cap=int(cap))

	@staticmethod
	def geometric(num_streets: int = 0, max_ratio: float = math.inf) -> "BetSize":
		return BetSize(BetSizeKind.GEOMETRIC, num_streets=int(num_streets), max_ratio=float(max_ratio))

	@staticmethod
	def allin() -> "BetSize":
		return BetSize(BetSizeKind.ALLIN)

	def __str__(self) -> str:
		k = self.kind
		if k == BetSizeKind.POT_RELATIVE:
			return f"{_fmt(self.ratio * 100.0)}%"
		if k == BetSizeKind.PREV_BET_RELATIVE:
			return f"{_fmt(self.ratio)}x"
		if k == BetSizeKind.ADDITIVE:
			if self.cap:
				return f"{self.amount}c{self.cap}r"
			return f"{self.amount}c"
		if k == BetSizeKind.GEOMETRIC:
			head = "e" if self.num_streets == 0 else f"{self.num_streets}e"
			if math.isinf(self.max_ratio):
				return head
			return f"{head}{_fmt(self.max_ratio * 100.0)}%"
		return "a"


def _fmt(x: float) -> str:
	if float(x).is_integer():
		return str(int(x))
	return repr(float(x))


def _parse_number(text: str, token: str) -> float:
	try:
		v = float(text)
	except ValueError:
		raise ConfigurationError(f"InvalidBetSize:{token!r}", "bet_size") from None
	if not math.isfinite(v) or v < 0.0:
		raise ConfigurationError(f"InvalidBetSize:{token!r}", "bet_size")
	return v


def _parse_int(text: str, token: str) -> int:
	if not text.isdigit():
		raise ConfigurationError(f"InvalidBetSize:{token!r}", "bet_size")
	return int(text)


def parse_bet_size(token: str, allow_prev_bet: bool) -> BetSize:
	t = token.strip().lower()
	if t == "":
		raise ConfigurationError("EmptyBetSize", "bet_size")

	if t == "a":
		return BetSize.allin()

	if t.endswith("x"):
		if not allow_prev_bet:
			raise ConfigurationError(f"PrevBetRelativeNotAllowedForBet:{token!r}", "bet_size")
		r = _parse_number(t[:-1], token)
		if r <= 1.0:
			raise ConfigurationError(f"RaiseMultiplierMustExceedOne:{token!r}", "bet_size")
		return BetSize.prev_bet_relative(r)

	if "e" in t:
		head, tail = t.split("e", 1)
		n = 0
		if head:
			n = _parse_int(head, token)
		max_ratio = math.inf
		if tail:
			if not tail.endswith("%"):
				raise ConfigurationError(f"InvalidBetSize:{token!r}", "bet_size")
			max_ratio = _parse_number(tail[:-1], token) / 100.0
			if max_ratio <= 0.0:
				raise ConfigurationError(f"InvalidBetSize:{token!r}", "bet_size")
		if n > 100:
			raise ConfigurationError(f"InvalidBetSize:{token!r}", "bet_size")
		return BetSize.geometric(n, max_ratio)

	if "c" in t:
		head, tail = t.split("c", 1)
		amount = _parse_int(head, token)
		if amount <= 0:
			raise ConfigurationError(f"InvalidBetSize:{token!r}", "bet_size")
		cap = 0
		if tail:
			if not tail.endswith("r"):
				raise ConfigurationError(f"InvalidBetSize:{token!r}", "bet_size")
			cap = _parse_int(tail[:-1], token)
			if cap and not allow_prev_bet:
				raise ConfigurationError(f"RaiseCapNotAllowedForBet:{token!r}", "bet_size")
		return BetSize.additive(amount, cap)

	if t.endswith("%"):
		r = _parse_number(t[:-1], token) / 100.0
		if r <= 0.0:
			raise ConfigurationError(f"InvalidBetSize:{token!r}", "bet_size")
		return BetSize.pot_relative(r)

	raise ConfigurationError(f"InvalidBetSize:{token!r}", "bet_size")


def parse_bet_sizes(text: Optional[str], allow_prev_bet: bool) -> Tuple[BetSize, ...]:
	if text is None:
		return ()
	out: List[BetSize] = []
	for raw in str(text).split(","):
		if raw.strip() == "":
			continue
		out.append(parse_bet_size(raw, allow_prev_bet))
	return tuple(out)


@dataclass(frozen=True)
class BetSizeOptions:
	bet: Tuple[BetSize, ...] = ()
	raise_: Tuple[BetSize, ...] = ()
	raise_limit: Optional[int] = None

	@staticmethod
	def parse(
	 bet: Optional[str],
	 raise_: Optional[str],
	 raise_limit: Optional[int] = None,
	) -> "BetSizeOptions":
		if raise_limit is not None and int(raise_limit) < 0:
			raise ConfigurationError("NegativeRaiseLimit", "bet_size")
		return BetSizeOptions(
		 bet=parse_bet_sizes(bet, allow_prev_bet=False),
		 raise_=parse_bet_sizes(raise_, allow_prev_bet=True),
		 raise_limit=(None if raise_limit is None else int(raise_limit)),
		)

	def __str__(self) -> str:
		return ",".join(str(b) for b in self.bet) + " / " + ",".join(str(r) for r in self.raise_)


@dataclass(frozen=True)
class DonkSizeOptions:
	donk: Tuple[BetSize, ...] = field(default_factory=tuple)

	@staticmethod
	def parse(text: Optional[str]) -> Optional["DonkSizeOptions"]:
		if text is None:
			return None
		return DonkSizeOptions(donk=parse_bet_sizes(text, allow_prev_bet=False))


def round_half_up(x: float) -> int:
	return int(math.floor(float(x) + 0.5))


def _geometric_ratio(spr: float, num_streets: int) -> float:
	return (math.pow(2.0 * spr + 1.0, 1.0 / float(num_streets)) - 1.0) / 2.0


def bet_amount(
 size: BetSize,
 pot: int,
 max_amount: int,
 streets_remaining: int,
) -> int:
	"""Chips put in by an opening bet of `size`; AllIn resolves to `max_amount`."""
	k = size.kind
	if k == BetSizeKind.ALLIN:
		return int(max_amount)
	if k == BetSizeKind.POT_RELATIVE:
		amount = round_half_up(pot * size.ratio)
	else:
		if k == BetSizeKind.ADDITIVE:
			amount = int(size.amount)
		else:
			if k == BetSizeKind.GEOMETRIC:
				n = size.num_streets if size.num_streets > 0 else int(streets_remaining)
				ratio = _geometric_ratio(float(max_amount) / float(pot), max(n, 1))
				amount = round_half_up(pot * min(ratio, size.max_ratio))
			else:
				raise ConfigurationError("PrevBetRelativeNotAllowedForBet", "bet_size")
	return max(int(amount), 1)


def raise_to_amount(
 size: BetSize,
 pot: int,
 last_to: int,
 own_street: int,
 max_to: int,
 streets_remaining: int,
 num_raises: int,
) -> Optional[int]:
	"""Street "to" amount of a raise of `size`, or None when an additive cap blocks it.

	`pot` includes every chip committed so far, `last_to` is the bet being faced and
	`own_street` what the raiser already put in on this street.
	"""
	k = size.kind
	if k == BetSizeKind.ALLIN:
		return int(max_to)
	pot_after_call = pot + (last_to - own_street)
	if k == BetSizeKind.POT_RELATIVE:
		return last_to + round_half_up(pot_after_call * size.ratio)
	if k == BetSizeKind.PREV_BET_RELATIVE:
		return round_half_up(last_to * size.ratio)
	if k == BetSizeKind.ADDITIVE:
		if size.cap and num_raises >= size.cap:
			return None
		return last_to + int(size.amount)
	n = size.num_streets if size.num_streets > 0 else int(streets_remaining)
	spr = float(max_to - last_to) / float(pot_after_call)
	ratio = _geometric_ratio(spr, max(n, 1))
	return last_to + round_half_up(pot_after_call * min(ratio, size.max_ratio))
