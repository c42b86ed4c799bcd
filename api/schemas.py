"""
api/schemas.py - Request bodies for the HTTP API.

Shape checks only: types and required fields. Signatures, balances and
nonces are the nodes' business.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.constants import NodeRole, NodeStatus
from core.models import normalize_node_url


class TransactionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    from_: str = Field(alias="from")
    to: str
    amount: Union[int, float]
    signature: str
    nonce: int
    data: Optional[Dict[str, Any]] = None
    fee: Optional[Union[int, float]] = None

    def to_payload(self) -> Dict[str, Any]:
        """Body relayed to validators, keyed as submitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class NodeIn(BaseModel):
    id: str = Field(min_length=1)
    url: str = Field(min_length=1)
    role: NodeRole
    version: Optional[str] = None
    location: Optional[str] = None

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        return normalize_node_url(value)


class NodeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: Optional[str] = None
    role: Optional[NodeRole] = None
    status: Optional[NodeStatus] = None
    version: Optional[str] = None
    location: Optional[str] = None

    @field_validator("url")
    @classmethod
    def check_url(cls, value: Optional[str]) -> Optional[str]:
        return normalize_node_url(value) if value is not None else None


class BlockHeightOut(BaseModel):
    height: int
    consensus: float
    responded: int
    total: int


class HealthOut(BaseModel):
    status: str
    cache: bool
    nodes: int
    liveness: bool
