"""
FinPilot receipt & bill scanning API.
Photographed receipts and PDF bills -> transaction candidates.
"""
from __future__ import annotations

import tempfile
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from loguru import logger
from pydantic import BaseModel

from finpilot.agents.receipt_agent import ReceiptAgent, ScanOutcome
from finpilot.api.dependencies import get_receipt_agent, get_transaction_store, get_user_id
from finpilot.api.uploads import save_upload
from finpilot.core.errors import ExtractionError, InputRejectedError
from finpilot.models.transaction import ParsedTransaction
from finpilot.services.transaction_store import InMemoryTransactionStore

router = APIRouter(prefix="/api/receipts", tags=["receipts"])


class ConfirmRequest(BaseModel):
    transactions: List[ParsedTransaction]


async def _scan(kind: str, file: UploadFile, agent: ReceiptAgent, user_id: str) -> ScanOutcome:
    with tempfile.TemporaryDirectory() as td:
        path = await save_upload(file, td, user_id)
        try:
            if kind == "pdf":
                return await agent.scan_pdf(str(path), file.content_type)
            return await agent.scan_image(str(path), file.content_type)
        except InputRejectedError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ExtractionError as e:
            logger.exception("Receipt extraction failed")
            raise HTTPException(status_code=422, detail=str(e))


@router.post("/scan-image", response_model=ScanOutcome)
async def scan_receipt_image(
    file: UploadFile = File(...),
    agent: ReceiptAgent = Depends(get_receipt_agent),
    user_id: str = Depends(get_user_id),
) -> ScanOutcome:
    """Photographed receipt -> OCR -> parsed transactions (or a fallback guess)."""
    return await _scan("image", file, agent, user_id)


@router.post("/scan-pdf", response_model=ScanOutcome)
async def scan_receipt_pdf(
    file: UploadFile = File(...),
    agent: ReceiptAgent = Depends(get_receipt_agent),
    user_id: str = Depends(get_user_id),
) -> ScanOutcome:
    """PDF bill -> text layer -> parsed transactions (or a fallback guess)."""
    return await _scan("pdf", file, agent, user_id)


@router.post("/confirm")
async def confirm_transactions(
    req: ConfirmRequest,
    store: InMemoryTransactionStore = Depends(get_transaction_store),
    user_id: str = Depends(get_user_id),
) -> Dict[str, Any]:
    """Persist the transactions the user accepted from a scan."""
    stored = [store.add(user_id, txn).to_dict() for txn in req.transactions]
    return {"saved": len(stored), "transactions": stored}
