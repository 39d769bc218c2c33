"""Exception hierarchy for the notation consistency resolver."""


class ScoreFixerError(Exception):
    """Base class for every error raised by scorefixer."""


class MalformedMeasureChain(ScoreFixerError):
    """A vertical measure slice is incomplete or its parts disagree on ids."""


class SignatureAccessFailure(ScoreFixerError):
    """A time signature could not be read or rewritten."""


class PageFormatError(ScoreFixerError, ValueError):
    """A page description could not be turned into a Page."""
