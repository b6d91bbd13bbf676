"""
Error taxonomy for issue query resolution.

All of these are caught at the IssueQueryService boundary and turned into a
user-facing diagnostic; none of them escapes ``run()``.
"""

from __future__ import annotations


class LinearQueryError(RuntimeError):
    """Base error carrying a machine code and a human-readable message."""

    code = "query_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code or self.code
        self.message = message


class ResolutionNotFound(LinearQueryError):
    """A team or status name has no match. Terminal for the query."""

    code = "not_found"


class ResolutionError(LinearQueryError):
    """The remote call needed to resolve a name failed."""

    code = "resolution_error"


class DateParseFailure(LinearQueryError):
    """A single due-date bound could not be parsed. Only omits that bound."""

    code = "date_parse_failure"

    def __init__(self, bound: str, token: str):
        super().__init__(f'Could not parse {bound} date "{token}"; ignoring it')
        self.bound = bound
        self.token = token


class QueryError(LinearQueryError):
    """The issue listing call itself failed."""

    code = "query_error"
