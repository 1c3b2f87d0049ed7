"""
Tests for the postflop-solve entry point: a river solve from flags with a JSON summary
and a saved game, a run driven by a YAML file, and exit code 2 on bad input.
"""

import json
import logging
import pytest

from postflop.cli.solve_cli import main
from postflop.config_io import save_config
from postflop.game.game_state import State
from postflop.io.game_io import load_game
from postflop.utils.logging_setup import setup_logging

RANGE = "AA,KK,QQ,JJ,TT,99,AK,AQ,KQ,QJs,JTs,T9s"


@pytest.fixture(autouse=True)
def _restore_root_logging():
	"""
	main() installs its own root handlers; put the previous ones back after each test.
	"""
	root = logging.getLogger()
	handlers = root.handlers[:]
	level = root.level
	yield
	root.handlers[:] = handlers
	root.setLevel(level)


def _river_flags():
	return [
	 "--pot", "6",
	 "--stack", "25",
	 "--oop-range", RANGE,
	 "--ip-range", RANGE,
	 "--flop", "QsJh2c",
	 "--turn", "8d",
	 "--river", "3s",
	 "--bet-sizes", "50%,a",
	 "--raise-sizes", "",
	 "--iters", "20",
	 "--log-level", "WARNING",
	]


def test_cli_solves_prints_summary_and_saves(tmp_path, capsys, monkeypatch):
	"""Exit code 0, a JSON summary on stdout and a loadable solved game on disk."""
	monkeypatch.delenv("FAST_TESTS", raising=False)
	out_path = tmp_path / "games" / "river.pfsg"
	rc = main(_river_flags() + ["--save", str(out_path)])
	assert rc == 0
	summary = json.loads(capsys.readouterr().out)
	assert summary["exploitability"] >= 0.0
	assert 0 < summary["iterations"] <= 20
	assert summary["root_actions"] == ["Check", "Bet(3)", "AllIn(25)"]
	assert summary["root_player"] == 0
	assert abs(sum(summary["root_frequencies"].values()) - 1.0) < 1e-6
	assert summary["saved_to"] == str(out_path)
	assert load_game(str(out_path)).state == State.SOLVED


def test_cli_reads_yaml_config(tmp_path, capsys):
	"""Game and solver sections come from the file; flags are optional."""
	cfg = tmp_path / "river.yaml"
	save_config(
	 {
	  "game": {
	   "starting_pot": 6,
	   "effective_stack": 25,
	   "oop_range": "AA,KK,QQ",
	   "ip_range": "JJ,TT,AK",
	   "flop": "QsJh2c",
	   "turn": "8d",
	   "river": "3s",
	   "bet_sizes": "a",
	   "raise_sizes": "",
	  },
	  "solver": {"max_iterations": 5, "log_level": "ERROR"},
	 },
	 str(cfg),
	)
	rc = main(["--config", str(cfg)])
	assert rc == 0
	summary = json.loads(capsys.readouterr().out)
	assert summary["root_actions"] == ["Check", "AllIn(25)"]
	assert summary["iterations"] <= 5


def test_cli_missing_flop_exits_with_2(capsys):
	"""Without a flop the configuration is rejected before any solving."""
	flags = _river_flags()
	i = flags.index("--flop")
	del flags[i:i + 2]
	assert main(flags) == 2
	assert "MissingGameField:flop" in capsys.readouterr().err


def test_cli_bad_range_exits_with_2(capsys):
	"""A range that does not parse is reported and yields exit code 2."""
	flags = _river_flags()
	i = flags.index("--oop-range")
	flags[i + 1] = "AZ"
	assert main(flags) == 2
	assert capsys.readouterr().out == ""


def test_setup_logging_writes_to_file(tmp_path):
	"""A log file under a new directory receives formatted records; bad levels fail."""
	log_file = tmp_path / "logs" / "solve.log"
	setup_logging("debug", str(log_file), console=False)
	logging.getLogger("postflop.test").info("hello %d", 7)
	for handler in logging.getLogger().handlers:
		handler.flush()
	text = log_file.read_text()
	assert "postflop.test - INFO - hello 7" in text
	with pytest.raises(ValueError):
		setup_logging("chatty")
