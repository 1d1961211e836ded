"""
Error taxonomy for the Tic-Tac-Two engine and training stack.

Illegal moves are NOT exceptions: the engine reports them as a
DISQUALIFIED step result (see core.game). Everything defined here is
fatal and means the caller or the data is wrong.
"""


class EncodingError(ValueError):
    """Unknown cell signature / symbol, or positions without an action id."""


class ExhaustionError(RuntimeError):
    """A move was requested but none can be made (board full or game over)."""


class ConfigurationError(ValueError):
    """Malformed options detected at startup."""


class MalformedMoveError(ValueError):
    """Move whose shape contradicts itself (positions vs double flag, symbol)."""
