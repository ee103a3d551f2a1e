from fastapi import APIRouter, HTTPException, Query

from fraudlink.errors import GraphError
from fraudlink.services.graph import find_shortest_path, get_person_connections, get_transfer_connections

router = APIRouter(prefix="/relationships", tags=["relationships"])


@router.get("/person/{person_id}")
def api_person_connections(person_id: str):
    """Shared-attribute links, sent/received transfers and device/IP-linked persons."""
    try:
        result = get_person_connections(person_id)
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to fetch person connections: {exc}")
    return {"status": "success", "data": result.to_graph()}


@router.get("/transfer/{transfer_id}")
def api_transfer_connections(transfer_id: str):
    try:
        result = get_transfer_connections(transfer_id)
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to fetch transfer connections: {exc}")
    return {"status": "success", "data": result.to_graph()}


@router.get("/shortest-path")
def api_shortest_path(
    start_person_id: str = Query(..., description="Person the path starts from"),
    target_person_id: str = Query(..., description="Person the path ends at"),
):
    try:
        result = find_shortest_path(start_person_id, target_person_id)
    except GraphError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to find shortest path: {exc}")
    return {"status": "success", "data": result.to_graph()}
