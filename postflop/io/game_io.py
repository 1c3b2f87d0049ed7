"""
I save and load a whole game: its lifecycle state, card and tree configuration, the
abstract action tree, the optional bunching table, the compression flag, the iteration
count and, once memory is allocated, every regret and cumulative-strategy table.

Key functions: encode_game / decode_game — bytes in memory; save_game / load_game — the
same through a file path, creating parent directories on save.

Layout: magic b"PFSG", u32 format version, then State, CardConfig, TreeConfig, the action
tree in pre-order, Option<BunchingData>, compression flag (u8), iteration (u32), storage
flag (u8) and, when set, one record per decision node in arena order: regrets then
cumulative strategy, each a length-prefixed f64 array, or a f32 scale followed by a
length-prefixed i16 array when compressed.

Invariants: decode rebuilds the arena from the stored configuration and checks every
table against the rebuilt shapes; a mismatch, a bad header, truncation or trailing bytes
raise CodecError and produce no game, as does a tree that cannot be expanded over the
stored cards. A file that cannot be opened or read raises CodecError from load_game.
Only games that reached TREE_BUILT can be encoded.
"""

from postflop.constants import FORMAT_MAGIC, FORMAT_VERSION
from postflop.errors import CodecError, OrderingError
from postflop.game.game_state import State, allowed_states
from postflop.game.postflop_game import PostFlopGame
from postflop.io.codec import (
 BinaryReader,
 BinaryWriter,
 read_bunching,
 read_card_config,
 read_state,
 read_tree_config,
 read_tree_node,
 write_bunching,
 write_card_config,
 write_state,
 write_tree_config,
 write_tree_node,
)
from postflop.tree.action_tree import ActionTree
import logging
import os
import numpy as np

logger = logging.getLogger(__name__)


def encode_game(game: PostFlopGame) -> bytes:
	if game.state < State.TREE_BUILT:
		raise OrderingError("encode_game", game.state, allowed_states(State.TREE_BUILT))

	w = BinaryWriter()
	w.raw(FORMAT_MAGIC)
	w.u32(FORMAT_VERSION)
	write_state(w, game.state)
	write_card_config(w, game.card_config)
	write_tree_config(w, game.tree_config)
	write_tree_node(w, game.action_tree.root)
	w.option(game.bunching, write_bunching)
	w.boolean(game.is_compressed)
	w.u32(game.iteration)

	has_storage = game.state >= State.MEMORY_ALLOCATED
	w.boolean(has_storage)
	if has_storage:
		regrets, strategy, rscales, sscales = game.raw_tables()
		slot = 0
		while slot < len(regrets):
			if game.is_compressed:
				w.f32(rscales[slot])
				w.array(regrets[slot], "i2")
				w.f32(sscales[slot])
				w.array(strategy[slot], "i2")
			else:
				w.array(regrets[slot], "f8")
				w.array(strategy[slot], "f8")
			slot += 1
	return w.getvalue()


def _read_tables(r: BinaryReader, game: PostFlopGame, compressed: bool):
	shapes = game.table_shapes()
	regrets = []
	strategy = []
	rscales = []
	sscales = []
	dtype = "i2" if compressed else "f8"
	for shape in shapes:
		pair = []
		for _ in range(2):
			scale = np.float32(r.f32()) if compressed else None
			arr = r.array(dtype)
			if arr.size != shape[0] * shape[1]:
				raise CodecError(f"TableShapeMismatch:{arr.size}!={shape[0]}x{shape[1]}")
			pair.append((arr.reshape(shape), scale))
		regrets.append(pair[0][0])
		strategy.append(pair[1][0])
		if compressed:
			rscales.append(pair[0][1])
			sscales.append(pair[1][1])
	return regrets, strategy, rscales, sscales


def decode_game(data: bytes) -> PostFlopGame:
	r = BinaryReader(data)
	magic = r.raw(len(FORMAT_MAGIC))
	if magic != FORMAT_MAGIC:
		raise CodecError(f"BadMagic:{magic!r}")
	version = r.u32()
	if version != FORMAT_VERSION:
		raise CodecError(f"UnsupportedVersion:{version} (expected {FORMAT_VERSION})")

	state = read_state(r)
	if state < State.TREE_BUILT:
		raise CodecError(f"UnsavableState:{state.name}")
	card_config = read_card_config(r)
	tree_config = read_tree_config(r)
	root = read_tree_node(r)
	bunching = r.option(read_bunching)
	compressed = r.boolean()
	iteration = r.u32()
	has_storage = r.boolean()
	if has_storage != (state >= State.MEMORY_ALLOCATED):
		raise CodecError(f"StorageFlagMismatch:{state.name}")

	game = PostFlopGame()
	try:
		game.update_config(card_config, ActionTree.from_root(tree_config, root))
		if bunching is not None:
			game.set_bunching_effect(bunching)
	except (ValueError, IndexError) as e:
		raise CodecError(f"InvalidStoredConfig:{e}") from e

	if has_storage:
		tables = _read_tables(r, game, compressed)
		r.expect_end()
		game.allocate_memory(compressed)
		game.install_tables(*tables, compressed=compressed, iteration=iteration)
		game.state = state
	else:
		r.expect_end()
		game.iteration = iteration
		game.is_compressed = compressed
	return game


def save_game(game: PostFlopGame, path: str) -> str:
	data = encode_game(game)
	dirn = os.path.dirname(path)
	if dirn:
		if not os.path.isdir(dirn):
			os.makedirs(dirn, exist_ok=True)
	with open(path, "wb") as f:
		f.write(data)
	logger.info("saved game (%s, %d bytes) to %s", game.state.name, len(data), path)
	return path


def load_game(path: str) -> PostFlopGame:
	try:
		with open(path, "rb") as f:
			data = f.read()
	except OSError as e:
		raise CodecError(f"UnreadableGameFile:{path}") from e
	game = decode_game(data)
	logger.info("loaded game (%s, iteration %d) from %s", game.state.name, game.iteration, path)
	return game
