"""Exceptions raised by the reconciliation engine.

Expected business outcomes (unvalidated charges, missing matches) are
returned as result data; only the conditions below are raised.
"""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class InvalidInputError(ReconciliationError):
    """Input the engine cannot act on unambiguously."""

    pass


class AllocationInputError(InvalidInputError):
    """Pro-rata allocation is undefined for the given items and target."""

    pass


class ExternalCollaboratorError(ReconciliationError):
    """A collaborator (categorizer, ledger) failed or answered malformed data."""

    pass


class CategorizationError(ExternalCollaboratorError):
    """Item categorization failed or returned an unusable result."""

    pass


class LedgerError(ExternalCollaboratorError):
    """A ledger mutation (update, split, delete) failed."""

    pass
