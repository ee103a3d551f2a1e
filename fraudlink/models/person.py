from typing import List, Optional, Set
from pydantic import Field

from .base import GraphModel
from .enums import PaymentMethodType

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class Address(GraphModel):
    street: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = Field(None, description="State / province / region")
    postal_code: Optional[str] = None
    country: Optional[str] = None


class PaymentMethod(GraphModel):
    """A payment instrument owned by a person (card, bank account, wallet, ...)."""

    id: str = Field(..., min_length=1, description="Instrument identifier, e.g. card token")
    type: PaymentMethodType


class PersonPatch(GraphModel):
    """Create-or-update payload for a Person.

    Every field is optional and *presence* matters: only fields that were supplied are
    written on update. ``address`` and ``payment_methods`` replace the stored satellites
    wholesale when supplied (``None`` / ``[]`` removes them).
    """

    id: Optional[str] = Field(None, description="Existing person id; omit to create")
    first_name: Optional[str] = Field(None, min_length=2)
    last_name: Optional[str] = Field(None, min_length=2)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(None, min_length=1)
    address: Optional[Address] = None
    payment_methods: Optional[List[PaymentMethod]] = None

    def supplied(self) -> Set[str]:
        """Names of the attributes present in the payload, excluding the id."""
        return set(self.model_fields_set) - {"id"}


class PersonPublic(GraphModel):
    """The fields of a person that may be shown next to someone else's record."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


class PersonOut(GraphModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[Address] = None
    payment_methods: List[PaymentMethod] = Field(default_factory=list)
    created_at: str
    updated_at: str


class PersonUpsertResult(GraphModel):
    entity: PersonOut
    is_new: bool
