"""
I define the numeric constants and built-in defaults shared across the solver. I keep
the card sentinel, hand-combination count, epsilon tolerances, tree-building thresholds
and the persisted-format header in one place so that the tree builder, the game, the
CFR loop and the codec agree on them.

Key symbols: NOT_DEALT — sentinel for an undealt turn/river card; NUM_CARDS and
NUM_COMBOS — deck and two-card combination counts; EPS_SUM / EPS_MASS — tolerances for
probability sums and mass checks; DEFAULT_* — the built-in bet abstraction and
thresholds; FORMAT_MAGIC / FORMAT_VERSION — header of saved games.

Internal dependencies: none. External dependencies: none. I serve no I/O myself.
"""

NOT_DEALT = 0xFF
NUM_CARDS = 52
NUM_COMBOS = 1326

EPS_SUM  = 1e-9
EPS_MASS = 1e-12
EPS_ROW  = 1e-6

DEFAULT_BET_SIZES   = "60%,100%,a"
DEFAULT_RAISE_SIZES = "2.5x"

DEFAULT_ADD_ALLIN_THRESHOLD   = 1.5
DEFAULT_FORCE_ALLIN_THRESHOLD = 0.15
DEFAULT_MERGING_THRESHOLD     = 0.1

DEFAULT_CHECK_INTERVAL = 10

FORMAT_MAGIC   = b"PFSG"
FORMAT_VERSION = 1
