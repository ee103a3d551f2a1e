"""Create-or-update of persons and transfers as single atomic units.

An upsert runs in one write transaction: existence checks, the entity write, satellite
replacement and link refresh either all commit or all roll back.

Decision rule shared by both entity kinds:
- id supplied and found  -> update (is_new=False)
- id supplied, not found -> NotFoundError; nothing is created
- no id                  -> create (is_new=True)
"""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Set

from fraudlink.db.neo4j_connector import write_transaction
from fraudlink.errors import (
    ConflictError,
    GraphError,
    IntegrityError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from fraudlink.models.person import PersonPatch, PersonUpsertResult
from fraudlink.models.transfer import TransferPatch, TransferUpsertResult
from .links import refresh_person_links, refresh_transfer_links
from .persons import (
    PERSON_FIELDS,
    create_person,
    fetch_person,
    find_person_by_email,
    missing_person_ids,
    person_exists,
    replace_address,
    replace_payment_methods,
    update_person,
)
from .transfers import (
    TRANSFER_FIELDS,
    create_transfer,
    fetch_transfer,
    get_parties,
    replace_device_info,
    replace_payment_type,
    repoint_parties,
    transfer_exists,
    update_transfer,
)

logger = logging.getLogger(__name__)

PERSON_REQUIRED = ("first_name", "last_name", "email")
TRANSFER_REQUIRED = ("transfer_type", "status", "payer_id", "payee_id", "amount", "currency")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _props(patch, fields: Iterable[str]) -> Dict[str, Any]:
    """camelCase property map for the given (python-named) fields of a patch."""
    names = set(fields)
    if not names:
        return {}
    return patch.model_dump(mode="json", by_alias=True, include=names)


def _require(patch, required: Iterable[str], kind: str) -> None:
    missing = [f for f in required if getattr(patch, f) in (None, "")]
    if missing:
        raise ValidationError(
            f"Missing required {kind} fields: {', '.join(missing)}", {"fields": missing}
        )


def _forbid_clearing(patch, supplied: Set[str], required: Iterable[str], kind: str) -> None:
    cleared = [f for f in required if f in supplied and getattr(patch, f) in (None, "")]
    if cleared:
        raise ValidationError(
            f"Required {kind} fields cannot be cleared: {', '.join(cleared)}", {"fields": cleared}
        )


# --- persons -----------------------------------------------------------------

def upsert_person(patch: PersonPatch, *, unique_email: bool = False) -> PersonUpsertResult:
    """Create or update a Person and refresh its SHARED_* links.

    With ``unique_email`` the create path rejects an email already held by another
    person with ConflictError.
    """
    supplied = patch.supplied()
    if patch.id:
        _forbid_clearing(patch, supplied, PERSON_REQUIRED, "person")
    else:
        _require(patch, PERSON_REQUIRED, "person")

    now = _now()
    try:
        with write_transaction() as tx:
            if patch.id:
                if not person_exists(tx, patch.id):
                    raise NotFoundError("Person", [patch.id])
                person_id = patch.id
                update_person(tx, person_id, _props(patch, supplied & set(PERSON_FIELDS)), now)
                if "address" in supplied:
                    replace_address(tx, person_id, patch.address)
                if "payment_methods" in supplied:
                    replace_payment_methods(tx, person_id, patch.payment_methods or [])
                is_new = False
            else:
                if unique_email and find_person_by_email(tx, patch.email):
                    raise ConflictError(
                        f"A person with email {patch.email} already exists", {"email": patch.email}
                    )
                person_id = create_person(tx, _props(patch, PERSON_FIELDS), now)
                if patch.address is not None:
                    replace_address(tx, person_id, patch.address)
                if patch.payment_methods:
                    replace_payment_methods(tx, person_id, patch.payment_methods)
                is_new = True

            refresh_person_links(tx, person_id)
            person = fetch_person(tx, person_id)
            if person is None:
                raise IntegrityError(f"Person {person_id} missing after write", {"id": person_id})
    except GraphError:
        raise
    except Exception as exc:
        logger.exception("Person upsert failed (id=%s)", patch.id)
        raise StorageError(
            f"Error while upserting person: {exc}", {"operation": "upsert_person", "id": patch.id}
        ) from exc

    logger.info("Person %s %s", person.id, "created" if is_new else "updated")
    return PersonUpsertResult(entity=person, is_new=is_new)


# --- transfers ---------------------------------------------------------------

def _positive(value) -> bool:
    return math.isfinite(value) and value > 0


def _check_transfer_values(patch: TransferPatch, supplied: Set[str]) -> None:
    if "amount" in supplied and patch.amount is not None and not _positive(patch.amount):
        raise ValidationError("Amount must be a positive number", {"amount": patch.amount})
    if "currency" in supplied and patch.currency is not None and not patch.currency.strip():
        raise ValidationError("Currency is required", {"currency": patch.currency})
    if (
        "destination_amount" in supplied
        and patch.destination_amount is not None
        and not _positive(patch.destination_amount)
    ):
        raise ValidationError(
            "Destination amount must be a positive number",
            {"destination_amount": patch.destination_amount},
        )


def _check_distinct_parties(payer_id, payee_id) -> None:
    if payer_id and payer_id == payee_id:
        raise ValidationError(
            "Payer and payee cannot be the same person", {"payer_id": payer_id, "payee_id": payee_id}
        )


def upsert_transfer(patch: TransferPatch) -> TransferUpsertResult:
    """Create or update a Transfer, its payer/payee edges, satellites and SHARED_* links."""
    supplied = patch.supplied()
    _check_distinct_parties(patch.payer_id, patch.payee_id)
    if patch.id:
        _forbid_clearing(patch, supplied, TRANSFER_REQUIRED + ("timestamp",), "transfer")
    else:
        _require(patch, TRANSFER_REQUIRED, "transfer")
    _check_transfer_values(patch, supplied)

    try:
        with write_transaction() as tx:
            if patch.id:
                transfer_id = patch.id
                if not transfer_exists(tx, transfer_id):
                    raise NotFoundError("Transfer", [transfer_id])
                if "payer_id" in supplied or "payee_id" in supplied:
                    current_payer, current_payee = get_parties(tx, transfer_id)
                    payer_id = patch.payer_id if "payer_id" in supplied else current_payer
                    payee_id = patch.payee_id if "payee_id" in supplied else current_payee
                    _check_distinct_parties(payer_id, payee_id)
                    requested = [pid for pid in (patch.payer_id, patch.payee_id) if pid]
                    missing = missing_person_ids(tx, requested)
                    if missing:
                        raise NotFoundError("Person", missing)
                    repoint_parties(tx, transfer_id, payer_id, payee_id)
                update_transfer(tx, transfer_id, _props(patch, supplied & set(TRANSFER_FIELDS)))
                if "device_info" in supplied:
                    replace_device_info(tx, transfer_id, patch.device_info)
                if "payment_method" in supplied:
                    replace_payment_type(tx, transfer_id, patch.payment_method)
                is_new = False
            else:
                missing = missing_person_ids(tx, [patch.payer_id, patch.payee_id])
                if missing:
                    raise NotFoundError("Person", missing)
                props = _props(patch, TRANSFER_FIELDS)
                props["timestamp"] = patch.timestamp or _now()
                transfer_id = create_transfer(tx, props, patch.payer_id, patch.payee_id)
                if patch.device_info is not None:
                    replace_device_info(tx, transfer_id, patch.device_info)
                if patch.payment_method is not None:
                    replace_payment_type(tx, transfer_id, patch.payment_method)
                is_new = True

            refresh_transfer_links(tx, transfer_id)
            transfer = fetch_transfer(tx, transfer_id)
            if transfer is None:
                raise IntegrityError(f"Transfer {transfer_id} missing after write", {"id": transfer_id})
    except GraphError:
        raise
    except Exception as exc:
        logger.exception("Transfer upsert failed (id=%s)", patch.id)
        raise StorageError(
            f"Error while upserting transfer: {exc}", {"operation": "upsert_transfer", "id": patch.id}
        ) from exc

    logger.info("Transfer %s %s", transfer.id, "created" if is_new else "updated")
    return TransferUpsertResult(entity=transfer, is_new=is_new)
