from typing import Any, Dict, List, Literal, Optional
from pydantic import Field

from .base import GraphModel
from .person import PersonPublic
from .transfer import TransferOut, TransferSummary


class DirectRelationship(GraphModel):
    """A shared-attribute edge between the focal person and another person."""

    relationship_type: str
    person: PersonPublic
    payment_method_id: Optional[str] = Field(
        None, description="Shared instrument id (SHARED_PAYMENT_METHOD only)"
    )


class SharedTransferRelationship(GraphModel):
    """Another person reached through SHARED_IP / SHARED_DEVICE on the focal person's transfers."""

    relationship_type: str
    person: PersonPublic
    transfer_count: int


class ConnectedTransfer(GraphModel):
    transfer: TransferOut
    counterpart: PersonPublic


class PersonConnections(GraphModel):
    person_id: str
    direct_relationships: List[DirectRelationship] = Field(default_factory=list)
    transfer_relationships: List[SharedTransferRelationship] = Field(default_factory=list)
    sent_transfers: List[ConnectedTransfer] = Field(default_factory=list)
    received_transfers: List[ConnectedTransfer] = Field(default_factory=list)


class LinkedTransfer(GraphModel):
    relationship_type: str
    transfer: TransferSummary


class TransferConnections(GraphModel):
    transfer_id: str
    payer: PersonPublic
    payee: PersonPublic
    shared_device_transfers: List[LinkedTransfer] = Field(default_factory=list)
    shared_ip_transfers: List[LinkedTransfer] = Field(default_factory=list)


class PathNode(GraphModel):
    type: Literal["Person", "Transfer"]
    properties: Dict[str, Any]


class PathRelationship(GraphModel):
    type: Literal["SENT", "RECEIVED_BY"]
    start_node_id: str
    end_node_id: str


class PathDetail(GraphModel):
    nodes: List[PathNode]
    relationships: List[PathRelationship]


class ShortestPathResult(GraphModel):
    path: PathDetail
    length: int
