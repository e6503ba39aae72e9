"""Item categorization services."""

from orderledger.tools.categorize.cache import CachingCategorizer, normalize_item_name
from orderledger.tools.categorize.categorizer_tool import (
    CategorizationResponse,
    CategorizationResult,
    CategorizerLogger,
    OpenAICategorizer,
)

__all__ = [
    "CachingCategorizer",
    "CategorizationResponse",
    "CategorizationResult",
    "CategorizerLogger",
    "OpenAICategorizer",
    "normalize_item_name",
]
