from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from finpilot.api.dependencies import get_inference_client
from finpilot.core.taxonomy import CATEGORY_METADATA, EXPENSE_CATEGORIES, INCOME_CATEGORIES
from finpilot.models.transaction import CategorySuggestion
from finpilot.pipelines.receipt_parser import suggest_category
from finpilot.utils.llm_client import InferenceClient

router = APIRouter(prefix="/api/categories", tags=["categories"])


class SuggestRequest(BaseModel):
    description: str
    amount: float = Field(default=0, ge=0)


@router.get("")
async def list_categories() -> Dict[str, Any]:
    return {
        "income": list(INCOME_CATEGORIES),
        "expense": list(EXPENSE_CATEGORIES),
        "metadata": CATEGORY_METADATA,
    }


@router.post("/suggest", response_model=CategorySuggestion)
async def suggest(req: SuggestRequest, client: InferenceClient = Depends(get_inference_client)) -> CategorySuggestion:
    """Suggest a category for a manually entered transaction."""
    return await suggest_category(req.description, req.amount, client)
