from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Query, Response

from fraudlink.errors import GraphError
from fraudlink.models.enums import PaymentMethodType, TransferStatus, TransferType
from fraudlink.models.search import TransferSearchFilters, TransferSearchQuery
from fraudlink.models.transfer import TransferPatch
from fraudlink.services.graph import get_transfer, list_transfers, search_transfers, upsert_transfer

router = APIRouter(tags=["transfers"])


@router.post("/transfers")
def api_upsert_transfer(payload: TransferPatch, response: Response):
    """Create a transfer between two persons, or update one when ``id`` is supplied."""
    try:
        result = upsert_transfer(payload)
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to upsert transfer: {exc}")
    response.status_code = 201 if result.is_new else 200
    return {
        "status": "success",
        "message": "Transfer created successfully" if result.is_new else "Transfer updated successfully",
        "data": result.entity.to_graph(),
    }


@router.get("/transfers")
def api_list_transfers(page: int = Query(1), limit: int = Query(10)):
    try:
        result = list_transfers(page=page, limit=limit)
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to list transfers: {exc}")
    return {"status": "success", "data": result.to_graph()}


@router.get("/transfers/search")
def api_search_transfers(
    search_text: Optional[str] = Query(None, description="Case-insensitive text over id, description, currency and device id"),
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: Literal["timestamp", "amount", "status", "transfer_type", "currency", "created_at"] = Query("timestamp"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    transfer_type: Optional[TransferType] = Query(None),
    status: Optional[TransferStatus] = Query(None),
    payer_id: Optional[str] = Query(None),
    payee_id: Optional[str] = Query(None),
    currency: Optional[str] = Query(None),
    payment_method: Optional[PaymentMethodType] = Query(None),
    amount_min: Optional[float] = Query(None),
    amount_max: Optional[float] = Query(None),
    created_after: Optional[str] = Query(None),
    created_before: Optional[str] = Query(None),
    description: Optional[str] = Query(None),
):
    query = TransferSearchQuery(
        search_text=search_text,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        filters=TransferSearchFilters(
            transfer_type=transfer_type,
            status=status,
            payer_id=payer_id,
            payee_id=payee_id,
            currency=currency,
            payment_method=payment_method,
            amount_min=amount_min,
            amount_max=amount_max,
            created_after=created_after,
            created_before=created_before,
            description=description,
        ),
    )
    try:
        result = search_transfers(query)
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to search transfers: {exc}")
    return {"status": "success", "data": result.to_graph()}


@router.get("/transfers/{transfer_id}")
def api_get_transfer(transfer_id: str):
    try:
        transfer = get_transfer(transfer_id)
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to fetch transfer: {exc}")
    return {"status": "success", "data": transfer.to_graph()}
