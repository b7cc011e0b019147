"""Exception types raised by flashstudy."""


class FlashstudyError(Exception):
    """Base class for all flashstudy errors."""


class EmptyDeckError(FlashstudyError):
    """A study session was started on a deck with no cards."""


class SessionStateError(FlashstudyError):
    """A session operation was called in a state that does not allow it."""


class DeckNotFoundError(FlashstudyError):
    """The deck does not exist or is not visible to the requesting user."""


class GenerationError(FlashstudyError):
    """The generation service failed or returned an unexpected payload."""
