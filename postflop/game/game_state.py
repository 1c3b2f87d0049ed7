"""
I define the lifecycle of a game and the guard that enforces it. State values are the
persisted discriminants. requires_state wraps a method so that calling it outside its
allowed states raises OrderingError and leaves the instance unchanged.
"""

from enum import IntEnum
from postflop.errors import OrderingError
from typing import Iterable, Optional
import functools


class State(IntEnum):
	CONFIG_ERROR = 0
	UNINITIALIZED = 1
	TREE_BUILT = 2
	MEMORY_ALLOCATED = 3
	SOLVED = 4


def allowed_states(
 minimum: State,
 maximum: Optional[State] = None,
) -> Iterable[State]:
	hi = State.SOLVED if maximum is None else maximum
	return tuple(s for s in State if int(minimum) <= int(s) <= int(hi))


def requires_state(
 minimum: State,
 maximum: Optional[State] = None,
):
	allowed = allowed_states(minimum, maximum)

	def deco(fn):
		@functools.wraps(fn)
		def wrapper(self, *args, **kwargs):
			if self.state not in allowed:
				raise OrderingError(fn.__name__, self.state, allowed)
			return fn(self, *args, **kwargs)
		return wrapper

	return deco
