"""
I implement the integer card encoding shared by the whole solver and the parsers for
external card text. A card is `4 * rank + suit` with ranks 2..A mapped to 0..12 and
suits c, d, h, s mapped to 0..3. I also index the 1326 unordered two-card hands so that
ranges, strategies and the persisted format address hands by one integer.

Key functions: card_from_str / card_to_string — parse and render a two-character code;
flop_from_str — parse exactly three distinct flop cards; parse_board_card — optional
turn or river card where an empty string means NOT_DEALT; card_pair_to_index /
index_to_card_pair — map between (c1, c2) with c1 < c2 and the hand index.

Inputs: strings like "Td", "Td9d6h" or "Td 9d 6h". Outputs: ints or tuples of ints.
Invariants: every returned card lies in 0..51; malformed, out-of-range or duplicate
cards raise ConfigurationError with the "card" category. Performance: the hand table is
built once at import.
"""

from postflop.constants import NOT_DEALT, NUM_CARDS, NUM_COMBOS
from postflop.errors import ConfigurationError
from typing import List, Tuple

RANKS = "23456789TJQKA"
SUITS = "cdhs"


def card_from_str(code: str) -> int:
	s = str(code).strip()
	if len(s) != 2:
		raise ConfigurationError(f"InvalidCard:{code!r}", "card")
	r = RANKS.find(s[0].upper())
	u = SUITS.find(s[1].lower())
	if r < 0 or u < 0:
		raise ConfigurationError(f"InvalidCard:{code!r}", "card")
	return 4 * r + u


def card_to_string(card: int) -> str:
	c = int(card)
	if c == NOT_DEALT:
		return "--"
	if c < 0 or c >= NUM_CARDS:
		raise ConfigurationError(f"CardOutOfRange:{c}", "card")
	return RANKS[c // 4] + SUITS[c % 4]


def cards_from_str(text: str) -> List[int]:
	s = str(text).replace(" ", "").replace(",", "")
	if len(s) % 2 != 0:
		raise ConfigurationError(f"InvalidCards:{text!r}", "card")
	out: List[int] = []
	i = 0
	while i < len(s):
		out.append(card_from_str(s[i:i + 2]))
		i += 2
	return out


def flop_from_str(text: str) -> Tuple[int, int, int]:
	cards = cards_from_str(text)
	if len(cards) != 3:
		raise ConfigurationError(f"FlopNeedsThreeCards:{text!r}", "card")
	if len(set(cards)) != 3:
		raise ConfigurationError(f"DuplicateCard:{text!r}", "card")
	cards.sort()
	return (cards[0], cards[1], cards[2])


def parse_board_card(text) -> int:
	if text is None:
		return NOT_DEALT
	s = str(text).strip()
	if s == "":
		return NOT_DEALT
	return card_from_str(s)


def card_pair_to_index(c1: int, c2: int) -> int:
	a = int(c1)
	b = int(c2)
	if a == b:
		raise ConfigurationError(f"PairOfIdenticalCards:{a}", "card")
	if a > b:
		a, b = b, a
	return a * (101 - a) // 2 + b - 1


def _build_hand_table() -> List[Tuple[int, int]]:
	table: List[Tuple[int, int]] = []
	c1 = 0
	while c1 < NUM_CARDS:
		c2 = c1 + 1
		while c2 < NUM_CARDS:
			table.append((c1, c2))
			c2 += 1
		c1 += 1
	return table


HAND_TABLE: List[Tuple[int, int]] = _build_hand_table()


def index_to_card_pair(index: int) -> Tuple[int, int]:
	i = int(index)
	if i < 0 or i >= NUM_COMBOS:
		raise ConfigurationError(f"HandIndexOutOfRange:{i}", "card")
	return HAND_TABLE[i]


def hand_to_string(hand: Tuple[int, int]) -> str:
	a, b = hand
	if a < b:
		a, b = b, a
	return card_to_string(a) + card_to_string(b)
