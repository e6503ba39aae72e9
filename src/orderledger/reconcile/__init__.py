"""Reconciliation engine: validate, match, consolidate, allocate and split."""

from __future__ import annotations

from orderledger.reconcile.allocator import Allocation, AllocationResult, allocate
from orderledger.reconcile.consolidator import (
    ConsolidationResult,
    TransactionConsolidator,
)
from orderledger.reconcile.entities import (
    CategorizerItem,
    Category,
    ItemCategorization,
    LedgerTransaction,
    Order,
    OrderItem,
    OrderKind,
    OrderRecord,
    RecordStatus,
    SplitDetail,
    TransactionSplit,
    TransactionUpdate,
)
from orderledger.reconcile.errors import (
    AllocationInputError,
    CategorizationError,
    ExternalCollaboratorError,
    InvalidInputError,
    LedgerError,
    ReconciliationError,
)
from orderledger.reconcile.matcher import (
    MatcherConfig,
    MatchResult,
    MultiMatchResult,
    TransactionMatcher,
)
from orderledger.reconcile.processor import (
    OrderOutcome,
    OrderProcessor,
    ProcessResult,
    SkipReason,
)
from orderledger.reconcile.protocols import (
    ItemCategorizer,
    LedgerClient,
    OrderRecordStore,
)
from orderledger.reconcile.run import ReconciliationRun, RunError, RunSummary
from orderledger.reconcile.splitter import CategorySplitter
from orderledger.reconcile.validator import (
    ChargeFailure,
    ChargeValidation,
    validate_charges,
    validate_charges_simple,
)

__all__ = [
    # Entities
    "CategorizerItem",
    "Category",
    "ItemCategorization",
    "LedgerTransaction",
    "Order",
    "OrderItem",
    "OrderKind",
    "OrderRecord",
    "RecordStatus",
    "SplitDetail",
    "TransactionSplit",
    "TransactionUpdate",
    # Errors
    "AllocationInputError",
    "CategorizationError",
    "ExternalCollaboratorError",
    "InvalidInputError",
    "LedgerError",
    "ReconciliationError",
    # Pipeline
    "Allocation",
    "AllocationResult",
    "CategorySplitter",
    "ChargeFailure",
    "ChargeValidation",
    "ConsolidationResult",
    "MatchResult",
    "MatcherConfig",
    "MultiMatchResult",
    "OrderOutcome",
    "OrderProcessor",
    "ProcessResult",
    "ReconciliationRun",
    "RunError",
    "RunSummary",
    "SkipReason",
    "TransactionConsolidator",
    "TransactionMatcher",
    "allocate",
    "validate_charges",
    "validate_charges_simple",
    # Collaborator protocols
    "ItemCategorizer",
    "LedgerClient",
    "OrderRecordStore",
]
