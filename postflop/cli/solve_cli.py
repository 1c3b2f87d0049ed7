"""
Command-line entry point `postflop-solve`: build a subgame from a YAML/JSON file and/or
flags, solve it, print a JSON summary (exploitability, root EVs, root actions and the
aggregate root strategy) and optionally save the solved game.
"""

from postflop.config_io import compose_session_config
from postflop.errors import PostflopError
from postflop.solving.session import PostflopSession
from postflop.utils.logging_setup import setup_logging
from typing import Any, Dict, Optional
import argparse
import json
import logging
import sys
import numpy as np

logger = logging.getLogger(__name__)

_GAME_FLAGS = (
 ("pot", "starting_pot"),
 ("stack", "effective_stack"),
 ("oop_range", "oop_range"),
 ("ip_range", "ip_range"),
 ("flop", "flop"),
 ("turn", "turn"),
 ("river", "river"),
 ("bet_sizes", "bet_sizes"),
 ("raise_sizes", "raise_sizes"),
 ("donk_sizes", "donk_sizes"),
)


def _build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
	 prog="postflop-solve",
	 add_help=True,
	)
	parser.add_argument("--config", type=str, default="")
	parser.add_argument("--pot", type=int, default=None)
	parser.add_argument("--stack", type=int, default=None)
	parser.add_argument("--oop-range", type=str, default=None)
	parser.add_argument("--ip-range", type=str, default=None)
	parser.add_argument("--flop", type=str, default=None)
	parser.add_argument("--turn", type=str, default=None)
	parser.add_argument("--river", type=str, default=None)
	parser.add_argument("--bet-sizes", type=str, default=None)
	parser.add_argument("--raise-sizes", type=str, default=None)
	parser.add_argument("--donk-sizes", type=str, default=None)
	parser.add_argument("--iters", type=int, default=None)
	parser.add_argument("--target-ratio", type=float, default=None)
	parser.add_argument("--threads", type=int, default=None)
	parser.add_argument("--compress", action="store_true")
	parser.add_argument("--save", type=str, default="")
	parser.add_argument("--log-level", type=str, default=None)
	parser.add_argument("--log-file", type=str, default="")
	return parser


def _solver_overrides(args) -> Dict[str, Any]:
	out: Dict[str, Any] = {}
	if args.iters is not None:
		out["max_iterations"] = int(args.iters)
	if args.target_ratio is not None:
		out["target_exploitability_ratio"] = float(args.target_ratio)
	if args.threads is not None:
		out["num_threads"] = int(args.threads)
	if args.compress:
		out["enable_compression"] = True
	if args.log_level is not None:
		out["log_level"] = str(args.log_level)
	return out


def _root_summary(session: PostflopSession) -> Dict[str, Any]:
	game = session.game
	actions = session.get_actions()
	out: Dict[str, Any] = {"root_actions": [repr(a) for a in actions]}
	if game.is_chance_node() or game.is_terminal_node():
		return out
	player = game.current_player()
	strategy = session.get_strategy().reshape(-1, len(actions))
	game.cache_normalized_weights()
	w = game.weights(player)
	total = float(np.sum(w))
	if total > 0.0:
		freq = (w[:, None] * strategy).sum(axis=0) / total
	else:
		freq = strategy.mean(axis=0)
	out["root_player"] = int(player)
	out["root_frequencies"] = {repr(a): float(f) for a, f in zip(actions, freq)}
	return out


def main(argv: Optional[list] = None) -> int:
	args = _build_parser().parse_args(argv)
	game_overrides = {field_name: getattr(args, flag) for flag, field_name in _GAME_FLAGS}

	try:
		game_cfg, solver_cfg = compose_session_config(
		 args.config or None,
		 _solver_overrides(args),
		 game_overrides,
		)
	except PostflopError as e:
		sys.stderr.write(f"{type(e).__name__}: {e}\n")
		return 2

	setup_logging(solver_cfg.log_level, args.log_file or None)

	try:
		session = PostflopSession(solver_cfg)
		session.init_game(game_cfg)
		exploitability = session.solve()
		summary: Dict[str, Any] = {
		 "exploitability": float(exploitability),
		 "iterations": int(session.game.iteration),
		 "root_ev": [float(x) for x in session.get_current_ev()],
		}
		summary.update(_root_summary(session))
		session.finalize()
		if args.save:
			summary["saved_to"] = session.save_to_file(args.save)
	except PostflopError as e:
		logger.error("%s: %s", type(e).__name__, e)
		return 2

	print(json.dumps(summary, indent=2, sort_keys=True))
	return 0


if __name__ == "__main__":
	sys.exit(main())
