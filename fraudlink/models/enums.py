"""Enumeration types for persons and transfers."""

from enum import Enum


class TransferType(str, Enum):
    TRANSFER = "TRANSFER"
    PAYMENT = "PAYMENT"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    REFUND = "REFUND"


class TransferStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REVERSED = "REVERSED"


class PaymentMethodType(str, Enum):
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_ACCOUNT = "BANK_ACCOUNT"
    DIGITAL_WALLET = "DIGITAL_WALLET"
    CRYPTO = "CRYPTO"


class LinkType(str, Enum):
    """Relationship types between Person and Transfer nodes."""

    SHARED_EMAIL = "SHARED_EMAIL"
    SHARED_PHONE = "SHARED_PHONE"
    SHARED_ADDRESS = "SHARED_ADDRESS"
    SHARED_PAYMENT_METHOD = "SHARED_PAYMENT_METHOD"
    SHARED_IP = "SHARED_IP"
    SHARED_DEVICE = "SHARED_DEVICE"
    SENT = "SENT"
    RECEIVED_BY = "RECEIVED_BY"


PERSON_LINK_TYPES = (
    LinkType.SHARED_EMAIL,
    LinkType.SHARED_PHONE,
    LinkType.SHARED_ADDRESS,
    LinkType.SHARED_PAYMENT_METHOD,
)

TRANSFER_LINK_TYPES = (LinkType.SHARED_IP, LinkType.SHARED_DEVICE)
