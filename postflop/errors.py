"""
I define the error taxonomy of the solver. Every failure a caller can observe is one of
these classes, so a caller can tell a bad configuration apart from a call made in the
wrong lifecycle state, a bad navigation index, or a corrupt saved file.

Key classes: PostflopError — common base; ConfigurationError — malformed range, card or
bet-size text and invalid tree parameters, tagged with a category; OrderingError — an
operation invoked outside its allowed lifecycle states; NavigationError — an action
index out of range or no active tree; CodecError — corrupt or incompatible persisted
bytes; UnexpectedVariantError — a tagged-union discriminant outside its allowed range.

Invariants: messages follow the CamelCase-token style used by ValueError raises
elsewhere in the package; nothing here is retried or swallowed.
"""

from typing import Optional


class PostflopError(Exception):
	pass


class ConfigurationError(PostflopError, ValueError):
	CATEGORIES = ("range", "card", "bet_size", "tree", "config")

	def __init__(
	 self,
	 message: str,
	 category: str = "config",
	):
		super().__init__(message)
		if category in self.CATEGORIES:
			self.category = category
		else:
			self.category = "config"


class OrderingError(PostflopError, RuntimeError):
	def __init__(
	 self,
	 operation: str,
	 actual,
	 allowed,
	 message: Optional[str] = None,
	):
		names = ", ".join(getattr(s, "name", str(s)) for s in allowed)
		actual_name = getattr(actual, "name", str(actual))
		if message is None:
			message = f"InvalidStateFor:{operation} (state={actual_name}, allowed={names})"
		super().__init__(message)
		self.operation = operation
		self.actual = actual
		self.allowed = tuple(allowed)


class NavigationError(PostflopError, IndexError):
	pass


class CodecError(PostflopError, ValueError):
	pass


class UnexpectedVariantError(CodecError):
	def __init__(
	 self,
	 type_name: str,
	 found: int,
	 allowed_max: int,
	 allowed_min: int = 0,
	):
		super().__init__(
		 f"unexpected variant for {type_name}: found {found}, "
		 f"expected {allowed_min}..={allowed_max}"
		)
		self.type_name = type_name
		self.found = int(found)
		self.allowed = (int(allowed_min), int(allowed_max))
