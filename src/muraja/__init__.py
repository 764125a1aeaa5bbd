"""muraja: SM-2 spaced-repetition review engine."""

from muraja.consts import VERSION

__version__ = VERSION
