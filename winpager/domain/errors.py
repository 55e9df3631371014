"""Errors raised by the paging domain."""


class PagingInvariantError(AssertionError):
    """A programming error: the public contract was violated."""


class PageSourceError(Exception):
    """A page source could not complete a query."""


def require(condition, message: str = "Paging invariant violated") -> None:
    if not condition:
        raise PagingInvariantError(message)
