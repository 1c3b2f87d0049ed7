"""
I centralize runtime configuration for building and solving a postflop subgame. I expose
SolverConfig with typed fields and a from_env helper that builds a profile for fast tests
or full runs. I let a caller pick the iteration budget, the exploitability target (as a
fraction of the starting pot), the exploitability check interval, the tree-building
thresholds, the default bet abstraction, storage compression and the thread count used
for the per-iteration fork-join over chance children.

Key classes/functions: SolverConfig — mutable config object; from_env — construct config
with env-aware defaults; _coerce — tolerant conversion of an override to its field's
type (unparseable or non-finite input keeps the default); _env_value — the same for an
environment variable.

Inputs: optional overrides dict and environment variables FAST_TESTS,
POSTFLOP_NUM_THREADS, POSTFLOP_MAX_ITERATIONS, POSTFLOP_LOG_LEVEL. Outputs: a populated
SolverConfig instance. Invariants: numeric fields are sane after from_env (positive
iteration budget and interval, at least one thread, non-negative thresholds and rake).

Internal dependencies: postflop.constants for defaults. External dependencies: Python
stdlib only. Side effects: none beyond reading environment variables.
"""

from postflop.constants import (
 DEFAULT_ADD_ALLIN_THRESHOLD,
 DEFAULT_BET_SIZES,
 DEFAULT_CHECK_INTERVAL,
 DEFAULT_FORCE_ALLIN_THRESHOLD,
 DEFAULT_MERGING_THRESHOLD,
 DEFAULT_RAISE_SIZES,
)
from dataclasses import dataclass, field
import math
import os
from typing import Optional, Dict, Any, Literal


Profile = Literal["full", "test"]


_TRUE_TOKENS = frozenset(("1", "true", "t", "yes", "y", "on"))
_FALSE_TOKENS = frozenset(("0", "false", "f", "no", "n", "off"))


def _parse_text(text: str, kind: type, default: Any) -> Any:
	token = text.strip()
	if kind is bool:
		token = token.lower()
		if token in _TRUE_TOKENS:
			return True
		if token in _FALSE_TOKENS:
			return False
		return bool(default)
	try:
		value = kind(token)
	except ValueError:
		return kind(default)
	if kind is float and not math.isfinite(value):
		return float(default)
	return value


def _coerce(value: Any, kind: type, default: Any) -> Any:
	if kind is str:
		return str(value)
	if isinstance(value, str):
		return _parse_text(value, kind, default)
	if isinstance(value, float) and not math.isfinite(value):
		return kind(default)
	if isinstance(value, (bool, int, float)):
		return kind(value)
	return kind(default)


def _env_value(name: str, kind: type, default: Any) -> Any:
	raw = os.getenv(name)
	if raw is None:
		return kind(default)
	return _parse_text(raw, kind, default)


_FIELD_KINDS: Dict[str, type] = {
 "target_exploitability_ratio": float,
 "add_allin_threshold": float,
 "force_allin_threshold": float,
 "merging_threshold": float,
 "rake_rate": float,
 "rake_cap": float,
 "max_iterations": int,
 "check_interval": int,
 "num_threads": int,
 "enable_compression": bool,
 "default_bet_sizes": str,
 "default_raise_sizes": str,
 "log_level": str,
}


@dataclass
class SolverConfig:
	profile: Profile = field(
	 default_factory=lambda: ("test" if os.getenv("FAST_TESTS") == "1" else "full")
	)

	max_iterations: int = 1000
	target_exploitability_ratio: float = 0.005
	check_interval: int = DEFAULT_CHECK_INTERVAL

	add_allin_threshold: float = DEFAULT_ADD_ALLIN_THRESHOLD
	force_allin_threshold: float = DEFAULT_FORCE_ALLIN_THRESHOLD
	merging_threshold: float = DEFAULT_MERGING_THRESHOLD

	default_bet_sizes: str = DEFAULT_BET_SIZES
	default_raise_sizes: str = DEFAULT_RAISE_SIZES

	rake_rate: float = 0.0
	rake_cap: float = 0.0

	enable_compression: bool = False
	num_threads: int = field(default_factory=lambda: _env_value("POSTFLOP_NUM_THREADS", int, 1))
	log_level: str = field(default_factory=lambda: os.getenv("POSTFLOP_LOG_LEVEL", "INFO"))

	def target_exploitability(
	 self,
	 starting_pot: float,
	) -> float:
		return float(starting_pot) * float(self.target_exploitability_ratio)

	@staticmethod
	def from_env(
	 overrides: Optional[Dict[str, Any]] = None
	) -> "SolverConfig":
		cfg = SolverConfig()

		if overrides:
			for k, v in overrides.items():
				if not hasattr(cfg, k):
					continue
				kind = _FIELD_KINDS.get(k)
				if kind is None:
					setattr(cfg, k, v)
				else:
					setattr(cfg, k, _coerce(v, kind, getattr(cfg, k)))

		if (not overrides) or ("max_iterations" not in overrides):
			cfg.max_iterations = _env_value("POSTFLOP_MAX_ITERATIONS", int, cfg.max_iterations)

		fast = _env_value("FAST_TESTS", bool, False)

		if fast:
			cfg.profile = "test"
			cfg.max_iterations = min(int(cfg.max_iterations), 50)
			cfg.check_interval = min(int(cfg.check_interval), 5)
			cfg.num_threads = 1

		if cfg.max_iterations < 0:
			cfg.max_iterations = 0
		if cfg.check_interval < 1:
			cfg.check_interval = 1
		if cfg.num_threads < 1:
			cfg.num_threads = 1

		i = 0
		thresholds = ("add_allin_threshold", "force_allin_threshold", "merging_threshold", "rake_rate", "rake_cap")
		while i < len(thresholds):
			name = thresholds[i]
			if float(getattr(cfg, name)) < 0.0:
				setattr(cfg, name, 0.0)
			i += 1

		if cfg.target_exploitability_ratio < 0.0:
			cfg.target_exploitability_ratio = 0.0

		return cfg
