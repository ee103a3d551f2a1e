from typing import Optional, Set
from pydantic import Field, IPvAnyAddress

from .base import GraphModel
from .enums import PaymentMethodType, TransferStatus, TransferType


class GeoHint(GraphModel):
    country: Optional[str] = None
    region: Optional[str] = None


class DeviceInfo(GraphModel):
    """Network fingerprint captured when the transfer was made."""

    ip_address: Optional[IPvAnyAddress] = None
    geolocation: Optional[GeoHint] = None


class TransferPatch(GraphModel):
    """Create-or-update payload for a Transfer.

    As with PersonPatch, only supplied fields are applied on update. ``device_info`` and
    ``payment_method`` replace their satellite nodes when supplied.
    """

    id: Optional[str] = Field(None, description="Existing transfer id; omit to create")
    transfer_type: Optional[TransferType] = None
    status: Optional[TransferStatus] = None
    payer_id: Optional[str] = None
    payee_id: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    destination_amount: Optional[float] = None
    destination_currency: Optional[str] = None
    timestamp: Optional[str] = Field(None, description="ISO-8601; defaults to now on create")
    description: Optional[str] = None
    device_id: Optional[str] = Field(None, min_length=1)
    device_info: Optional[DeviceInfo] = None
    payment_method: Optional[PaymentMethodType] = None

    def supplied(self) -> Set[str]:
        return set(self.model_fields_set) - {"id"}


class TransferSummary(GraphModel):
    """Compact transfer projection used when listing linked transfers."""

    id: str
    transfer_type: Optional[TransferType] = None
    status: Optional[TransferStatus] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    timestamp: Optional[str] = None
    device_id: Optional[str] = None


class TransferOut(GraphModel):
    id: str
    transfer_type: TransferType
    status: TransferStatus
    payer_id: str
    payee_id: str
    amount: float
    currency: str
    destination_amount: Optional[float] = None
    destination_currency: Optional[str] = None
    timestamp: str
    description: Optional[str] = None
    device_id: Optional[str] = None
    device_info: Optional[DeviceInfo] = None
    payment_method: Optional[PaymentMethodType] = None


class TransferUpsertResult(GraphModel):
    entity: TransferOut
    is_new: bool
