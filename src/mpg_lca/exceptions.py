"""Exceptions raised by the LCA engine."""


class LCAError(Exception):
    """Base class for all mpg_lca errors."""


class NotFoundError(LCAError, LookupError):
    """A requested project (or other record) does not exist."""

    def __init__(self, kind: str, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class InvalidInputError(LCAError, ValueError):
    """Input that makes a result non-computable (e.g. zero floor area)."""


class RepositoryError(LCAError):
    """The project store could not be read (e.g. database unreachable)."""


class PersistenceError(RepositoryError):
    """Writing cached results back to the project store failed."""
