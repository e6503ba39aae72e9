from __future__ import annotations

import json

import loguru
from loguru import logger
from openai import OpenAI
from pydantic import BaseModel, Field, ValidationError

from orderledger.core.config import require_env
from orderledger.reconcile.entities import (
    CategorizerItem,
    Category,
    ItemCategorization,
)
from orderledger.reconcile.errors import CategorizationError
from orderledger.reconcile.money import format_dollars

SYSTEM_PROMPT = (
    "You are a helpful assistant that categorizes shopping items into "
    "appropriate budget categories. Always respond with valid JSON."
)

PROMPT_TEMPLATE = """\
Categorize the following shopping items into the most appropriate categories.

Items to categorize:
{items}

Available categories:
{categories}

Instructions:
1. Match each item to the MOST appropriate category, using only the IDs above
2. Use grocery categories ONLY for food and beverages
3. Cleaning supplies, paper products and household items are not groceries
4. Toiletries and cosmetics belong to personal care
5. Provide a confidence score (0.0 to 1.0) for each categorization

Return a JSON object with this structure:
{{
  "categorizations": [
    {{
      "item_name": "exact item name",
      "category_id": "category ID",
      "category_name": "category name",
      "confidence": 0.95
    }}
  ]
}}"""


class CategorizationResult(BaseModel):
    """Single item categorization returned by the LLM."""

    item_name: str = Field(..., description="Item name exactly as given")
    category_id: str = Field(..., description="ID of the chosen category")
    category_name: str = Field("", description="Name of the chosen category")
    confidence: float = Field(1.0, ge=0.0, le=1.0, description="Confidence score")


class CategorizationResponse(BaseModel):
    """Response containing one result per item."""

    categorizations: list[CategorizationResult]

    @classmethod
    def parse_json(cls, json_str: str) -> CategorizationResponse:
        """Parse JSON string into CategorizationResponse.

        Handles both formats:
        - Object with "categorizations" key: {"categorizations": [...]}
        - Raw array: [...]
        """
        data = json.loads(json_str)
        if isinstance(data, dict) and "categorizations" in data:
            return cls.model_validate(data)
        if isinstance(data, list):
            return cls(
                categorizations=[
                    CategorizationResult.model_validate(item) for item in data
                ]
            )
        raise ValueError(
            f"Expected JSON object with 'categorizations' or array, got {type(data)}"
        )


class CategorizerLogger:
    """Handles all logging for item categorization."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance.bind(component="categorizer")

    def api_call(self, item_count: int, category_count: int, model: str) -> None:
        self._logger.bind(items=item_count, categories=category_count).info(
            "Calling {} to categorize {} items into {} categories",
            model,
            item_count,
            category_count,
        )

    def cache_hits(self, hit_count: int, miss_count: int) -> None:
        self._logger.bind(hits=hit_count, misses=miss_count).debug(
            "Categorization cache: {} hits, {} misses", hit_count, miss_count
        )

    def categorization_summary(self, results: list[ItemCategorization]) -> None:
        category_ids = {result.category_id for result in results}
        self._logger.bind(items=len(results), categories=len(category_ids)).info(
            "Categorization complete: {} items across {} categories",
            len(results),
            len(category_ids),
        )


class OpenAICategorizer:
    """Categorizes order items with an OpenAI chat completion.

    Blocking; one request per call. Wrap in CachingCategorizer to avoid
    re-asking for item names already seen in the run.
    """

    def __init__(
        self,
        *,
        model: str = "gpt-4o",
        client: OpenAI | None = None,
        temperature: float = 0.1,
        categorizer_logger: CategorizerLogger | None = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._logger = categorizer_logger or CategorizerLogger()
        if client is None:
            client = OpenAI(api_key=require_env("OPENAI_API_KEY"))
        self._client = client

    def categorize_items(
        self, items: list[CategorizerItem], categories: list[Category]
    ) -> list[ItemCategorization]:
        """Pick one category per item.

        Raises:
            CategorizationError: Empty or unparsable response, or a category
                id that was not offered
        """
        if not items:
            return []

        self._logger.api_call(len(items), len(categories), self._model)
        response_text = self._call_openai_api(self._render_prompt(items, categories))
        response = self._parse_response(response_text)

        by_id = {category.category_id: category for category in categories}
        results: list[ItemCategorization] = []
        for result in response.categorizations:
            category = by_id.get(result.category_id)
            if category is None:
                raise CategorizationError(
                    f"unknown category id {result.category_id!r} "
                    f"for item {result.item_name!r}"
                )
            results.append(
                ItemCategorization(
                    item_name=result.item_name,
                    category_id=category.category_id,
                    category_name=category.name,
                    confidence=result.confidence,
                )
            )

        self._logger.categorization_summary(results)
        return results

    def _render_prompt(
        self, items: list[CategorizerItem], categories: list[Category]
    ) -> str:
        item_lines = "\n".join(
            f"{i}. {item.name} - {format_dollars(item.price_cents)}"
            for i, item in enumerate(items, start=1)
        )
        category_lines = "\n".join(
            f"- {category.name} (ID: {category.category_id})" for category in categories
        )
        return PROMPT_TEMPLATE.format(items=item_lines, categories=category_lines)

    def _call_openai_api(self, prompt: str) -> str:
        try:
            resp = self._client.chat.completions.create(
                model=self._model,
                temperature=self._temperature,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except Exception as exc:
            raise CategorizationError(f"OpenAI request failed: {exc}") from exc

        if not resp.choices:
            raise CategorizationError("no response from OpenAI")
        content = resp.choices[0].message.content
        if not content:
            raise CategorizationError("empty response from OpenAI")
        return content

    def _parse_response(self, response_text: str) -> CategorizationResponse:
        """Parse JSON string into CategorizationResponse using Pydantic."""
        try:
            return CategorizationResponse.parse_json(response_text)
        except (json.JSONDecodeError, ValidationError, ValueError) as e:
            raise CategorizationError(f"Failed to parse OpenAI response: {e}") from e
