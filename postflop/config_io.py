"""
I read and write configuration files (YAML through PyYAML, JSON otherwise) and compose
a session configuration from one file plus caller overrides.

Key functions: load_config / save_config — dict <-> file by extension;
compose_session_config — returns (GameConfig, SolverConfig) from a file with a "game"
section (pot, stack, ranges, board, bet abstraction) and an optional "solver" section
(any SolverConfig field, coerced by SolverConfig.from_env); _safe_int/_safe_str —
tolerant scalar coercion of game values.

Invariants: unknown keys are ignored; a missing or malformed required game field raises
ConfigurationError with the "config" category; overrides win over the file sections
(None-valued game overrides are skipped).
"""

from postflop.errors import ConfigurationError
from postflop.solver_config import SolverConfig
from postflop.solving.session import GameConfig
from typing import Any, Dict, Optional, Tuple
import json
import os
import yaml


def _safe_int(x, default_val=None):
	if isinstance(x, bool):
		return int(x)
	if isinstance(x, int):
		return x
	if isinstance(x, float):
		return int(x)
	if isinstance(x, str):
		s = x.strip()
		sign_ok = (s.startswith("-") and s[1:].isdigit()) or s.isdigit()
		if sign_ok:
			return int(s)
		else:
			return default_val
	return default_val


def _safe_str(x, default_val=""):
	if isinstance(x, str):
		return x
	if x is None:
		return default_val
	return str(x)


def _is_yaml_path(path: str) -> bool:
	return os.path.splitext(path)[1].lower() in (".yml", ".yaml")


def save_config(config, path):
	if isinstance(config, dict):
		data = dict(config)
	else:
		if hasattr(config, "__dict__"):
			data = {k: getattr(config, k) for k in vars(config).keys()}
		else:
			data = {}

	dirn = os.path.dirname(path)
	if dirn:
		if not os.path.isdir(dirn):
			os.makedirs(dirn, exist_ok=True)

	with open(path, "w") as f:
		if _is_yaml_path(path):
			yaml.safe_dump(data, f, sort_keys=True)
		else:
			json.dump(data, f, indent=2, sort_keys=True)

	return path


def load_config(path):
	with open(path, "r") as f:
		if _is_yaml_path(path):
			out = yaml.safe_load(f)
		else:
			out = json.load(f)
	if out:
		return out
	else:
		return {}


def _required(game: dict, key: str, coerce, default_val=None):
	if key not in game:
		raise ConfigurationError(f"MissingGameField:{key}", "config")
	val = coerce(game[key], default_val)
	if val is None:
		raise ConfigurationError(f"InvalidGameField:{key}", "config")
	return val


def _game_from_dict(game: dict) -> GameConfig:
	limit = game.get("raise_limit", None)
	return GameConfig(
	 starting_pot=_required(game, "starting_pot", _safe_int),
	 effective_stack=_required(game, "effective_stack", _safe_int),
	 oop_range=_required(game, "oop_range", _safe_str, None),
	 ip_range=_required(game, "ip_range", _safe_str, None),
	 flop=_required(game, "flop", _safe_str, None),
	 turn=_safe_str(game.get("turn", ""), ""),
	 river=_safe_str(game.get("river", ""), ""),
	 bet_sizes=_safe_str(game.get("bet_sizes"), None),
	 raise_sizes=_safe_str(game.get("raise_sizes"), None),
	 donk_sizes=_safe_str(game.get("donk_sizes"), None),
	 raise_limit=(None if limit is None else _safe_int(limit, None)),
	)


def compose_session_config(
 path: Optional[str],
 overrides: Optional[Dict[str, Any]] = None,
 game_overrides: Optional[Dict[str, Any]] = None,
) -> Tuple[GameConfig, SolverConfig]:
	data = load_config(path) if path else {}
	if not isinstance(data, dict):
		data = {}

	game = data.get("game", {})
	solv = data.get("solver", {})
	if not isinstance(game, dict):
		game = {}
	if not isinstance(solv, dict):
		solv = {}
	game = dict(game)
	for k, v in dict(game_overrides or {}).items():
		if v is not None:
			game[str(k)] = v

	merged: Dict[str, Any] = {}
	for k, v in solv.items():
		merged[str(k)] = v
	for k, v in dict(overrides or {}).items():
		merged[str(k)] = v

	game_cfg = _game_from_dict(game)
	solver_cfg = SolverConfig.from_env(merged)
	return game_cfg, solver_cfg
