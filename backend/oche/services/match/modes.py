import copy
from typing import Any, Dict

from .errors import InvalidConfigurationError

X01_501 = '501'
X01_301 = '301'
CRICKET = 'cricket'
AROUND_THE_CLOCK = 'aroundTheClock'

X01_MODES = (X01_501, X01_301)

GAME_MODES: Dict[str, Dict[str, Any]] = {
    X01_501: {
        'name': '501',
        'starting_score': 501,
        'require_double_out': True,
        'require_double_in': False,
    },
    X01_301: {
        'name': '301',
        'starting_score': 301,
        'require_double_out': True,
        'require_double_in': True,
    },
    CRICKET: {
        'name': 'Cricket',
        'targets': [20, 19, 18, 17, 16, 15, 25],
    },
    AROUND_THE_CLOCK: {
        'name': 'Around the Clock',
        'targets': list(range(1, 21)) + [25],
    },
}


def mode_config(mode: str) -> Dict[str, Any]:
    """Return a private copy of the ruleset for ``mode``."""
    if not isinstance(mode, str) or mode not in GAME_MODES:
        raise InvalidConfigurationError(f"Unsupported game mode: {mode!r}")
    return copy.deepcopy(GAME_MODES[mode])
