"""Filtered, sorted and paginated listings of persons and transfers.

Free text is a case-insensitive substring match OR'd across a fixed field list;
every explicit filter is AND'd with it and with each other. Sort fields are
allow-listed and mapped to stored property names, so user input never reaches the
query text.
"""
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from fraudlink.db.neo4j_connector import read_session, run_in
from fraudlink.errors import storage_errors
from fraudlink.models.enums import PaymentMethodType, TransferStatus, TransferType
from fraudlink.models.search import (
    Pagination,
    PersonPage,
    PersonSearchQuery,
    TransferPage,
    TransferSearchQuery,
)
from .persons import PERSON_DETAIL_RETURN, person_from_row
from .transfers import TRANSFER_DETAIL_RETURN, transfer_from_row

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

PERSON_SORT_FIELDS = {
    "first_name": "firstName",
    "last_name": "lastName",
    "email": "email",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

TRANSFER_SORT_FIELDS = {
    "timestamp": "timestamp",
    "amount": "amount",
    "status": "status",
    "transfer_type": "transferType",
    "currency": "currency",
    "created_at": "timestamp",
}

PERSON_TEXT_FIELDS = (
    "p.firstName",
    "p.lastName",
    "p.email",
    "p.phone",
    "a.city",
    "a.region",
    "a.country",
    "a.postalCode",
)

TRANSFER_TEXT_FIELDS = ("t.id", "t.description", "t.currency", "t.deviceId")

PERSON_BASE = "MATCH (p:Person) OPTIONAL MATCH (p)-[:HAS_ADDRESS]->(a:Address) WITH p, a "
TRANSFER_BASE = "MATCH (t:Transfer) WITH t "


def clamp_paging(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Clamp to page >= 1 and 1 <= limit <= 100 (limit defaults to 10)."""
    page = max(1, int(page or 1))
    limit = DEFAULT_LIMIT if limit is None else int(limit)
    return page, min(MAX_LIMIT, max(1, limit))


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    total_pages = max(1, math.ceil(total / limit)) if limit else 1
    current = min(page, total_pages)
    return Pagination(
        current_page=current,
        total_pages=total_pages,
        total_count=total,
        has_next_page=current < total_pages,
        has_previous_page=current > 1,
    )


def _text_condition(fields, search_text: Optional[str], params: Dict[str, Any]) -> Optional[str]:
    if not search_text or not search_text.strip():
        return None
    params["searchText"] = search_text.strip()
    ors = " OR ".join(f"toLower(coalesce({f}, '')) CONTAINS toLower($searchText)" for f in fields)
    return f"({ors})"


def _where(conditions: List[str]) -> str:
    return ("WHERE " + " AND ".join(conditions) + " ") if conditions else ""


def build_person_conditions(query: PersonSearchQuery) -> Tuple[str, Dict[str, Any]]:
    """Return (WHERE clause, parameters) for a person search."""
    params: Dict[str, Any] = {}
    conditions: List[str] = []
    text = _text_condition(PERSON_TEXT_FIELDS, query.search_text, params)
    if text:
        conditions.append(text)

    f = query.filters
    for field, prop in (("first_name", "firstName"), ("last_name", "lastName"), ("email", "email")):
        value = getattr(f, field)
        if value:
            params[prop] = value
            conditions.append(f"toLower(coalesce(p.{prop}, '')) CONTAINS toLower(${prop})")
    if f.phone:
        params["phone"] = f.phone
        conditions.append("p.phone STARTS WITH $phone")
    for field in ("city", "region", "country"):
        value = getattr(f, field)
        if value:
            params[field] = value
            conditions.append(f"a IS NOT NULL AND toLower(a.{field}) = toLower(${field})")
    if f.postal_code:
        params["postalCode"] = f.postal_code
        conditions.append("a IS NOT NULL AND a.postalCode = $postalCode")
    if f.payment_method_types:
        params["paymentMethodTypes"] = [PaymentMethodType(t).value for t in f.payment_method_types]
        conditions.append(
            "size([(p)-[:HAS_PAYMENT_METHOD]->(m:PaymentMethod) WHERE m.type IN $paymentMethodTypes | m]) > 0"
        )
    for field, name, prop, op in (
        ("created_after", "createdAfter", "createdAt", ">="),
        ("created_before", "createdBefore", "createdAt", "<="),
        ("updated_after", "updatedAfter", "updatedAt", ">="),
        ("updated_before", "updatedBefore", "updatedAt", "<="),
    ):
        value = getattr(f, field)
        if value:
            params[name] = value
            conditions.append(f"p.{prop} {op} ${name}")
    return _where(conditions), params


def build_transfer_conditions(query: TransferSearchQuery) -> Tuple[str, Dict[str, Any]]:
    """Return (WHERE clause, parameters) for a transfer search."""
    params: Dict[str, Any] = {}
    conditions: List[str] = []
    text = _text_condition(TRANSFER_TEXT_FIELDS, query.search_text, params)
    if text:
        conditions.append(text)

    f = query.filters
    if f.transfer_type:
        params["transferType"] = TransferType(f.transfer_type).value
        conditions.append("t.transferType = $transferType")
    if f.status:
        params["status"] = TransferStatus(f.status).value
        conditions.append("t.status = $status")
    if f.payer_id:
        params["payerId"] = f.payer_id
        conditions.append("t.payerId = $payerId")
    if f.payee_id:
        params["payeeId"] = f.payee_id
        conditions.append("t.payeeId = $payeeId")
    if f.currency:
        params["currency"] = f.currency
        conditions.append("t.currency = $currency")
    if f.payment_method:
        params["paymentMethod"] = PaymentMethodType(f.payment_method).value
        conditions.append(
            "size([(t)-[:USED_PAYMENT]->(x:PaymentType) WHERE x.type = $paymentMethod | x]) > 0"
        )
    if f.amount_min is not None:
        params["amountMin"] = f.amount_min
        conditions.append("t.amount >= $amountMin")
    if f.amount_max is not None:
        params["amountMax"] = f.amount_max
        conditions.append("t.amount <= $amountMax")
    if f.created_after:
        params["createdAfter"] = f.created_after
        conditions.append("t.timestamp >= $createdAfter")
    if f.created_before:
        params["createdBefore"] = f.created_before
        conditions.append("t.timestamp <= $createdBefore")
    if f.description:
        params["description"] = f.description
        conditions.append("t.description IS NOT NULL AND toLower(t.description) CONTAINS toLower($description)")
    return _where(conditions), params


def _order_by(var: str, prop: str, sort_order: str) -> str:
    return f"ORDER BY {var}.{prop} {'ASC' if sort_order == 'asc' else 'DESC'}"


def _count(runner, query: str, params: Dict[str, Any]) -> int:
    rows = run_in(runner, query, params)
    return int(rows[0].get("total") or 0) if rows else 0


def search_persons(query: PersonSearchQuery) -> PersonPage:
    page, limit = clamp_paging(query.page, query.limit)
    where, params = build_person_conditions(query)
    order = _order_by("p", PERSON_SORT_FIELDS[query.sort_by], query.sort_order)
    with storage_errors("search_persons", page=page, limit=limit), read_session() as session:
        total = _count(session, PERSON_BASE + where + "RETURN count(DISTINCT p) AS total", params)
        pagination = build_pagination(page, limit, total)
        rows = run_in(
            session,
            PERSON_BASE + where
            + f"WITH DISTINCT p {order} SKIP $offset LIMIT $limit "
            + PERSON_DETAIL_RETURN + " " + order,
            {**params, "offset": (pagination.current_page - 1) * limit, "limit": limit},
        )
    logger.debug("Person search matched %d (page %d/%d)", total, pagination.current_page, pagination.total_pages)
    return PersonPage(items=[person_from_row(r) for r in rows], pagination=pagination)


def search_transfers(query: TransferSearchQuery) -> TransferPage:
    page, limit = clamp_paging(query.page, query.limit)
    where, params = build_transfer_conditions(query)
    order = _order_by("t", TRANSFER_SORT_FIELDS[query.sort_by], query.sort_order)
    with storage_errors("search_transfers", page=page, limit=limit), read_session() as session:
        total = _count(session, TRANSFER_BASE + where + "RETURN count(DISTINCT t) AS total", params)
        pagination = build_pagination(page, limit, total)
        rows = run_in(
            session,
            TRANSFER_BASE + where
            + f"WITH DISTINCT t {order} SKIP $offset LIMIT $limit "
            + TRANSFER_DETAIL_RETURN + " " + order,
            {**params, "offset": (pagination.current_page - 1) * limit, "limit": limit},
        )
    logger.debug("Transfer search matched %d (page %d/%d)", total, pagination.current_page, pagination.total_pages)
    return TransferPage(items=[transfer_from_row(r) for r in rows], pagination=pagination)


def list_persons(page: int = 1, limit: int = DEFAULT_LIMIT) -> PersonPage:
    """All persons, newest first."""
    return search_persons(PersonSearchQuery(page=page, limit=limit))


def list_transfers(page: int = 1, limit: int = DEFAULT_LIMIT) -> TransferPage:
    """All transfers, most recent timestamp first."""
    return search_transfers(TransferSearchQuery(page=page, limit=limit))
