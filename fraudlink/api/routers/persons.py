import os
from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException, Query, Response

from fraudlink.errors import GraphError
from fraudlink.models.enums import PaymentMethodType
from fraudlink.models.person import PersonPatch
from fraudlink.models.search import PersonSearchFilters, PersonSearchQuery
from fraudlink.services.graph import get_person, list_persons, search_persons, upsert_person

router = APIRouter(tags=["persons"])


def _unique_email() -> bool:
    return os.getenv("FRAUDLINK_UNIQUE_EMAIL") == "1"


@router.post("/persons")
def api_upsert_person(payload: PersonPatch, response: Response):
    """Create a person, or update one when ``id`` is supplied.

    Answers 201 on create and 200 on update.
    """
    try:
        result = upsert_person(payload, unique_email=_unique_email())
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to upsert person: {exc}")
    response.status_code = 201 if result.is_new else 200
    return {
        "status": "success",
        "message": "Person created successfully" if result.is_new else "Person updated successfully",
        "data": result.entity.to_graph(),
    }


@router.get("/persons")
def api_list_persons(page: int = Query(1), limit: int = Query(10)):
    try:
        result = list_persons(page=page, limit=limit)
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to list persons: {exc}")
    return {"status": "success", "data": result.to_graph()}


@router.get("/persons/search")
def api_search_persons(
    search_text: Optional[str] = Query(None, description="Case-insensitive text over names, email, phone and address"),
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: Literal["first_name", "last_name", "email", "created_at", "updated_at"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    first_name: Optional[str] = Query(None),
    last_name: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    phone: Optional[str] = Query(None, description="Prefix match"),
    city: Optional[str] = Query(None),
    region: Optional[str] = Query(None),
    country: Optional[str] = Query(None),
    postal_code: Optional[str] = Query(None),
    payment_method_types: Optional[List[PaymentMethodType]] = Query(None),
    created_after: Optional[str] = Query(None),
    created_before: Optional[str] = Query(None),
    updated_after: Optional[str] = Query(None),
    updated_before: Optional[str] = Query(None),
):
    query = PersonSearchQuery(
        search_text=search_text,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        filters=PersonSearchFilters(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            city=city,
            region=region,
            country=country,
            postal_code=postal_code,
            payment_method_types=payment_method_types,
            created_after=created_after,
            created_before=created_before,
            updated_after=updated_after,
            updated_before=updated_before,
        ),
    )
    try:
        result = search_persons(query)
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to search persons: {exc}")
    return {"status": "success", "data": result.to_graph()}


@router.get("/persons/{person_id}")
def api_get_person(person_id: str):
    try:
        person = get_person(person_id)
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to fetch person: {exc}")
    return {"status": "success", "data": person.to_graph()}
