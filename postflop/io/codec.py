"""
I implement the little-endian binary encoding of every persisted value of a game. Scalars
are fixed width, sequences carry a u64 length prefix, optional values carry a u8 tag
(0 absent, 1 present) and tagged unions carry a u32 discriminant followed by the
payload of the variant. Every decoder consumes exactly the bytes its encoder produced, so
encode(decode(b)) == b for every valid b.

Key classes/functions: BinaryWriter / BinaryReader — primitive and array I/O over a
bytearray / memoryview; write_action / read_action, write_bet_size / read_bet_size,
write_board_state / read_board_state, write_state / read_state — tagged unions;
write_bet_size_options, write_donk_size_options, write_tree_config, write_range,
write_card_config, write_tree_node, write_bunching — structured values and their readers.

Discriminants: Action None=0, Fold=1, Check=2, Call=3, Bet(i32)=4, Raise(i32)=5,
AllIn(i32)=6, Chance(u8)=7; BetSize PotRelative(f64)=0, PrevBetRelative(f64)=1,
Additive(i32, i32)=2, Geometric(i32, f64)=3, AllIn=4; BoardState Flop=0, Turn=1,
River=2; State ConfigError=0 .. Solved=4.

Invariants: reading past the end raises CodecError("UnexpectedEndOfInput"); an
out-of-range discriminant raises UnexpectedVariantError naming the type, the value found
and the allowed range; decoded values pass the same validation as constructed ones
(a malformed range or config surfaces as CodecError, never as a half-built object); a
decoded tree node must have its kind's layout (decision nodes carry at least one non-chance
action, chance nodes exactly one chance action and one child, terminal nodes nothing).

Dependencies: struct and numpy for the primitive layer.
"""

from postflop.constants import NUM_COMBOS
from postflop.engine.action import Action
from postflop.engine.action_type import ActionType
from postflop.engine.board_state import BoardState
from postflop.engine.range import Range
from postflop.errors import CodecError, ConfigurationError, UnexpectedVariantError
from postflop.game.bunching import BunchingData
from postflop.game.card_config import CardConfig
from postflop.game.game_state import State
from postflop.tree.action_tree import (
 ActionTreeNode,
 PLAYER_CHANCE,
 PLAYER_FOLD_FLAG,
 PLAYER_IP,
 PLAYER_OOP,
 PLAYER_TERMINAL_FLAG,
)
from postflop.tree.bet_size import BetSize, BetSizeKind, BetSizeOptions, DonkSizeOptions
from postflop.tree.tree_config import TreeConfig
from typing import Callable, List, Optional, Tuple, TypeVar
import struct
import numpy as np

T = TypeVar("T")

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")
_F32 = struct.Struct("<f")
_F64 = struct.Struct("<d")


class BinaryWriter:
	def __init__(self):
		self.buf = bytearray()

	def u8(self, v: int) -> None:
		self.buf += _U8.pack(int(v))

	def u32(self, v: int) -> None:
		self.buf += _U32.pack(int(v))

	def i32(self, v: int) -> None:
		self.buf += _I32.pack(int(v))

	def u64(self, v: int) -> None:
		self.buf += _U64.pack(int(v))

	def f32(self, v: float) -> None:
		self.buf += _F32.pack(float(v))

	def f64(self, v: float) -> None:
		self.buf += _F64.pack(float(v))

	def boolean(self, v: bool) -> None:
		self.u8(1 if v else 0)

	def raw(self, data: bytes) -> None:
		self.buf += data

	def array(self, arr: np.ndarray, dtype: str) -> None:
		a = np.ascontiguousarray(arr, dtype=np.dtype(dtype).newbyteorder("<")).reshape(-1)
		self.u64(a.size)
		self.buf += a.tobytes()

	def seq(self, items, write_item: Callable) -> None:
		self.u64(len(items))
		for item in items:
			write_item(self, item)

	def option(self, value, write_item: Callable) -> None:
		if value is None:
			self.u8(0)
		else:
			self.u8(1)
			write_item(self, value)

	def getvalue(self) -> bytes:
		return bytes(self.buf)


class BinaryReader:
	def __init__(self, data: bytes):
		self.view = memoryview(bytes(data))
		self.pos = 0

	def _take(self, n: int) -> memoryview:
		if n < 0 or self.pos + n > len(self.view):
			raise CodecError("UnexpectedEndOfInput")
		out = self.view[self.pos:self.pos + n]
		self.pos += n
		return out

	def u8(self) -> int:
		return _U8.unpack(self._take(1))[0]

	def u32(self) -> int:
		return _U32.unpack(self._take(4))[0]

	def i32(self) -> int:
		return _I32.unpack(self._take(4))[0]

	def u64(self) -> int:
		return _U64.unpack(self._take(8))[0]

	def f32(self) -> float:
		return _F32.unpack(self._take(4))[0]

	def f64(self) -> float:
		return _F64.unpack(self._take(8))[0]

	def boolean(self) -> bool:
		v = self.u8()
		if v > 1:
			raise UnexpectedVariantError("bool", v, 1)
		return v == 1

	def raw(self, n: int) -> bytes:
		return bytes(self._take(n))

	def array(self, dtype: str) -> np.ndarray:
		n = self.u64()
		dt = np.dtype(dtype).newbyteorder("<")
		if n > self.remaining() // dt.itemsize:
			raise CodecError("UnexpectedEndOfInput")
		data = self._take(n * dt.itemsize)
		return np.frombuffer(data, dtype=dt).astype(np.dtype(dtype)).copy()

	def seq(self, read_item: Callable[["BinaryReader"], T]) -> List[T]:
		n = self.u64()
		if n > self.remaining():
			raise CodecError("UnexpectedEndOfInput")
		out: List[T] = []
		i = 0
		while i < n:
			out.append(read_item(self))
			i += 1
		return out

	def option(self, read_item: Callable[["BinaryReader"], T]) -> Optional[T]:
		tag = self.u8()
		if tag == 0:
			return None
		if tag == 1:
			return read_item(self)
		raise UnexpectedVariantError("Option", tag, 1)

	def remaining(self) -> int:
		return len(self.view) - self.pos

	def expect_end(self) -> None:
		if self.remaining() != 0:
			raise CodecError(f"TrailingBytes:{self.remaining()}")


def _variant(r: BinaryReader, type_name: str, maximum: int) -> int:
	tag = r.u32()
	if tag > maximum:
		raise UnexpectedVariantError(type_name, tag, maximum)
	return tag


def write_action(w: BinaryWriter, a: Action) -> None:
	t = ActionType(a.action_type)
	w.u32(int(t))
	if t == ActionType.CHANCE:
		w.u8(a.card)
	else:
		if t.has_amount():
			w.i32(a.amount)


def read_action(r: BinaryReader) -> Action:
	t = ActionType(_variant(r, "Action", int(ActionType.CHANCE)))
	if t == ActionType.CHANCE:
		return Action.chance(r.u8())
	if t.has_amount():
		amount = r.i32()
		if amount < 0:
			raise CodecError(f"NegativeActionAmount:{amount}")
		return Action(t, amount)
	return Action(t)


def write_bet_size(w: BinaryWriter, s: BetSize) -> None:
	kind = BetSizeKind(s.kind)
	w.u32(int(kind))
	if kind in (BetSizeKind.POT_RELATIVE, BetSizeKind.PREV_BET_RELATIVE):
		w.f64(s.ratio)
	else:
		if kind == BetSizeKind.ADDITIVE:
			w.i32(s.amount)
			w.i32(s.cap)
		else:
			if kind == BetSizeKind.GEOMETRIC:
				w.i32(s.num_streets)
				w.f64(s.max_ratio)


def read_bet_size(r: BinaryReader) -> BetSize:
	kind = BetSizeKind(_variant(r, "BetSize", int(BetSizeKind.ALLIN)))
	if kind == BetSizeKind.POT_RELATIVE:
		return BetSize.pot_relative(r.f64())
	if kind == BetSizeKind.PREV_BET_RELATIVE:
		return BetSize.prev_bet_relative(r.f64())
	if kind == BetSizeKind.ADDITIVE:
		amount = r.i32()
		return BetSize.additive(amount, r.i32())
	if kind == BetSizeKind.GEOMETRIC:
		streets = r.i32()
		return BetSize.geometric(streets, r.f64())
	return BetSize.allin()


def write_board_state(w: BinaryWriter, s: BoardState) -> None:
	w.u32(int(s))


def read_board_state(r: BinaryReader) -> BoardState:
	return BoardState(_variant(r, "BoardState", int(BoardState.RIVER)))


def write_state(w: BinaryWriter, s: State) -> None:
	w.u32(int(s))


def read_state(r: BinaryReader) -> State:
	return State(_variant(r, "State", int(State.SOLVED)))


def write_bet_size_options(w: BinaryWriter, o: BetSizeOptions) -> None:
	w.seq(o.bet, write_bet_size)
	w.seq(o.raise_, write_bet_size)
	w.option(o.raise_limit, lambda ww, v: ww.u32(v))


def read_bet_size_options(r: BinaryReader) -> BetSizeOptions:
	bet = tuple(r.seq(read_bet_size))
	raise_ = tuple(r.seq(read_bet_size))
	limit = r.option(lambda rr: rr.u32())
	return BetSizeOptions(bet=bet, raise_=raise_, raise_limit=limit)


def write_donk_size_options(w: BinaryWriter, o: DonkSizeOptions) -> None:
	w.seq(o.donk, write_bet_size)


def read_donk_size_options(r: BinaryReader) -> DonkSizeOptions:
	return DonkSizeOptions(donk=tuple(r.seq(read_bet_size)))


def _write_pair(w: BinaryWriter, pair: Tuple[BetSizeOptions, BetSizeOptions]) -> None:
	write_bet_size_options(w, pair[0])
	write_bet_size_options(w, pair[1])


def _read_pair(r: BinaryReader) -> Tuple[BetSizeOptions, BetSizeOptions]:
	oop = read_bet_size_options(r)
	return oop, read_bet_size_options(r)


def write_tree_config(w: BinaryWriter, c: TreeConfig) -> None:
	write_board_state(w, c.initial_state)
	w.i32(c.starting_pot)
	w.i32(c.effective_stack)
	w.f64(c.rake_rate)
	w.f64(c.rake_cap)
	_write_pair(w, c.flop_bet_sizes)
	_write_pair(w, c.turn_bet_sizes)
	_write_pair(w, c.river_bet_sizes)
	w.option(c.turn_donk_sizes, write_donk_size_options)
	w.option(c.river_donk_sizes, write_donk_size_options)
	w.f64(c.add_allin_threshold)
	w.f64(c.force_allin_threshold)
	w.f64(c.merging_threshold)


def read_tree_config(r: BinaryReader) -> TreeConfig:
	cfg = TreeConfig(
	 initial_state=read_board_state(r),
	 starting_pot=r.i32(),
	 effective_stack=r.i32(),
	 rake_rate=r.f64(),
	 rake_cap=r.f64(),
	 flop_bet_sizes=_read_pair(r),
	 turn_bet_sizes=_read_pair(r),
	 river_bet_sizes=_read_pair(r),
	 turn_donk_sizes=r.option(read_donk_size_options),
	 river_donk_sizes=r.option(read_donk_size_options),
	 add_allin_threshold=r.f64(),
	 force_allin_threshold=r.f64(),
	 merging_threshold=r.f64(),
	)
	try:
		cfg.validate()
	except ConfigurationError as e:
		raise CodecError(f"InvalidTreeConfig:{e}") from e
	return cfg


def write_range(w: BinaryWriter, rng: Range) -> None:
	w.raw(np.ascontiguousarray(rng.data, dtype="<f4").tobytes())


def read_range(r: BinaryReader) -> Range:
	data = np.frombuffer(r.raw(4 * NUM_COMBOS), dtype="<f4").astype(np.float32)
	try:
		return Range(data)
	except ConfigurationError as e:
		raise CodecError(f"InvalidRange:{e}") from e


def write_card_config(w: BinaryWriter, c: CardConfig) -> None:
	write_range(w, c.range[0])
	write_range(w, c.range[1])
	for card in c.flop:
		w.u8(card)
	w.u8(c.turn)
	w.u8(c.river)


def read_card_config(r: BinaryReader) -> CardConfig:
	oop = read_range(r)
	ip = read_range(r)
	flop = (r.u8(), r.u8(), r.u8())
	turn = r.u8()
	river = r.u8()
	return CardConfig(range=(oop, ip), flop=flop, turn=turn, river=river)


def write_tree_node(w: BinaryWriter, root: ActionTreeNode) -> None:
	# explicit stack: a deep tree must not hit the recursion limit
	stack = [root]
	while stack:
		node = stack.pop()
		w.u8(node.player)
		write_board_state(w, node.board_state)
		w.i32(node.amount)
		w.seq(node.actions, write_action)
		w.u64(len(node.children))
		stack.extend(reversed(node.children))


_TERMINAL_PLAYERS = (
 PLAYER_TERMINAL_FLAG,
 PLAYER_FOLD_FLAG | PLAYER_OOP,
 PLAYER_FOLD_FLAG | PLAYER_IP,
)


def _check_node_shape(
 player: int,
 actions: List[Action],
 n_children: int,
) -> None:
	# decision, chance and terminal nodes each have one fixed layout
	chances = sum(1 for a in actions if a.action_type == ActionType.CHANCE)
	if player in (PLAYER_OOP, PLAYER_IP):
		if not actions or chances:
			raise CodecError(f"MalformedDecisionNode:player={player},actions={len(actions)}")
	else:
		if player == PLAYER_CHANCE:
			if len(actions) != 1 or chances != 1 or n_children != 1:
				raise CodecError(f"MalformedChanceNode:actions={len(actions)},children={n_children}")
		else:
			if player not in _TERMINAL_PLAYERS:
				raise CodecError(f"InvalidNodePlayer:{player}")
			if actions or n_children:
				raise CodecError(f"MalformedTerminalNode:actions={len(actions)},children={n_children}")


def read_tree_node(r: BinaryReader) -> ActionTreeNode:
	def read_one() -> Tuple[ActionTreeNode, int]:
		player = r.u8()
		board_state = read_board_state(r)
		amount = r.i32()
		actions = r.seq(read_action)
		n_children = r.u64()
		if n_children > r.remaining():
			raise CodecError("UnexpectedEndOfInput")
		_check_node_shape(player, actions, n_children)
		return ActionTreeNode(player, board_state, amount, actions, []), n_children

	root, pending = read_one()
	stack = [(root, pending)]
	while stack:
		node, left = stack[-1]
		if left == 0:
			stack.pop()
			if len(node.children) != len(node.actions):
				raise CodecError(f"ChildCountMismatch:{len(node.children)}!={len(node.actions)}")
			continue
		stack[-1] = (node, left - 1)
		child, n = read_one()
		node.children.append(child)
		stack.append((child, n))
	return root


def write_bunching(w: BinaryWriter, b: BunchingData) -> None:
	for card in b.flop:
		w.u8(card)
	w.array(b.factors[0], "f8")
	w.array(b.factors[1], "f8")


def read_bunching(r: BinaryReader) -> BunchingData:
	flop = (r.u8(), r.u8(), r.u8())
	f0 = r.array("f8")
	f1 = r.array("f8")
	data = BunchingData(flop=flop, factors=(f0, f1))
	try:
		data.validate()
	except ConfigurationError as e:
		raise CodecError(f"InvalidBunching:{e}") from e
	return data
