"""Exception taxonomy for the showcase."""


class ShowcaseError(Exception):
    """Base class for all showcase errors."""


class ParseError(ShowcaseError, ValueError):
    """Malformed tensor input (bad JSON data or shape specification)."""


class InvalidArgument(ShowcaseError, ValueError):
    """Argument rejected before any work was done."""


class ExternalOperationFailure(ShowcaseError, RuntimeError):
    """Failure raised by the numeric backend while executing an operation."""
