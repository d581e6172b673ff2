"""Darts match engine.

Pure state transitions over a serializable ``MatchState``: no I/O, no
timers. Persistence and broadcasting live in ``store`` and the HTTP layer.
"""

from .engine import apply_throw, start_match, undo_last_throw
from .errors import (
    InvalidConfigurationError,
    InvalidThrowError,
    MatchError,
    TerminalMatchError,
)
from .state import Dart, MatchState, Player, PlayerStats, Turn

__all__ = [
    'apply_throw',
    'start_match',
    'undo_last_throw',
    'MatchError',
    'InvalidConfigurationError',
    'InvalidThrowError',
    'TerminalMatchError',
    'Dart',
    'MatchState',
    'Player',
    'PlayerStats',
    'Turn',
]
