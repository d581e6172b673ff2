class MatchError(Exception):
    """Base class for every error raised by the match engine."""


class InvalidConfigurationError(MatchError):
    """A match cannot be started with the given mode or players."""


class InvalidThrowError(MatchError):
    """The dart cannot exist on a standard board (bad segment, multiplier or a triple bull)."""


class TerminalMatchError(MatchError):
    """A throw was submitted for a match that already has a winner."""
