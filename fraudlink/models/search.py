from typing import List, Literal, Optional
from pydantic import Field

from .base import GraphModel
from .enums import PaymentMethodType, TransferStatus, TransferType
from .person import PersonOut
from .transfer import TransferOut

SortOrder = Literal["asc", "desc"]


class PersonSearchFilters(GraphModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = Field(None, description="Prefix match")
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    payment_method_types: Optional[List[PaymentMethodType]] = None
    created_after: Optional[str] = None
    created_before: Optional[str] = None
    updated_after: Optional[str] = None
    updated_before: Optional[str] = None


class PersonSearchQuery(GraphModel):
    search_text: Optional[str] = None
    page: int = 1
    limit: int = 10
    sort_by: Literal["first_name", "last_name", "email", "created_at", "updated_at"] = "created_at"
    sort_order: SortOrder = "desc"
    filters: PersonSearchFilters = Field(default_factory=PersonSearchFilters)


class TransferSearchFilters(GraphModel):
    transfer_type: Optional[TransferType] = None
    status: Optional[TransferStatus] = None
    payer_id: Optional[str] = None
    payee_id: Optional[str] = None
    currency: Optional[str] = None
    payment_method: Optional[PaymentMethodType] = None
    amount_min: Optional[float] = None
    amount_max: Optional[float] = None
    created_after: Optional[str] = None
    created_before: Optional[str] = None
    description: Optional[str] = None


class TransferSearchQuery(GraphModel):
    search_text: Optional[str] = None
    page: int = 1
    limit: int = 10
    sort_by: Literal["timestamp", "amount", "status", "transfer_type", "currency", "created_at"] = "timestamp"
    sort_order: SortOrder = "desc"
    filters: TransferSearchFilters = Field(default_factory=TransferSearchFilters)


class Pagination(GraphModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next_page: bool
    has_previous_page: bool


class PersonPage(GraphModel):
    items: List[PersonOut]
    pagination: Pagination


class TransferPage(GraphModel):
    items: List[TransferOut]
    pagination: Pagination
