"""
api/routes.py - HTTP endpoints under /blockchain.

Point lookups answer 404 when no node could serve them; list endpoints
answer []. Gateway errors are mapped to status codes in api.app.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.schemas import BlockHeightOut, HealthOut, NodeIn, NodeUpdate, TransactionIn
from core.constants import DEFAULT_LATEST_BLOCKS_LIMIT, NodeRole
from core.models import Node
from discovery.registry import NodeRegistry
from gateway.service import BlockchainGateway

router = APIRouter(prefix="/blockchain")


def get_gateway(request: Request) -> BlockchainGateway:
    return request.app.state.gateway


def get_registry(request: Request) -> NodeRegistry:
    return request.app.state.registry


# Fixed block paths are declared before blocks/{block_hash}

@router.get("/blocks/latest")
async def latest_blocks(
    limit: int = Query(DEFAULT_LATEST_BLOCKS_LIMIT, ge=1, le=1000),
    gateway: BlockchainGateway = Depends(get_gateway),
):
    return await gateway.get_latest_blocks(limit)


@router.get("/blocks/height", response_model=BlockHeightOut)
async def block_height(gateway: BlockchainGateway = Depends(get_gateway)):
    return await gateway.get_block_height()


@router.get("/blocks/type/{block_type}")
async def blocks_by_type(block_type: str, gateway: BlockchainGateway = Depends(get_gateway)):
    return await gateway.get_blocks_by_type(block_type)


@router.get("/blocks/{block_hash}")
async def block_by_hash(block_hash: str, gateway: BlockchainGateway = Depends(get_gateway)):
    block = await gateway.get_block(block_hash)
    if block is None:
        raise HTTPException(404, f"Block with hash {block_hash} not found")
    return block


@router.post("/transactions", status_code=201)
async def create_transaction(body: TransactionIn, gateway: BlockchainGateway = Depends(get_gateway)):
    return await gateway.create_transaction(body.to_payload())


@router.get("/transactions/{tx_hash}")
async def transaction_by_hash(tx_hash: str, gateway: BlockchainGateway = Depends(get_gateway)):
    tx = await gateway.get_transaction(tx_hash)
    if tx is None:
        raise HTTPException(404, f"Transaction with hash {tx_hash} not found")
    return tx


@router.get("/validators")
async def validators(gateway: BlockchainGateway = Depends(get_gateway)):
    return await gateway.get_validators()


@router.get("/status")
async def network_status(gateway: BlockchainGateway = Depends(get_gateway)):
    return await gateway.get_network_status()


# =============================================================================
# Node administration
# =============================================================================

@router.get("/nodes")
def list_nodes(
    role: Optional[NodeRole] = None,
    registry: NodeRegistry = Depends(get_registry),
) -> list[dict[str, Any]]:
    nodes = registry.list_by_role(role) if role else registry.all_nodes()
    return [n.to_dict() for n in nodes]


@router.post("/nodes", status_code=201)
def register_node(body: NodeIn, registry: NodeRegistry = Depends(get_registry)):
    node = Node.from_dict(body.model_dump())
    return registry.register(node).to_dict()


@router.patch("/nodes/{node_id}")
def update_node(node_id: str, body: NodeUpdate, registry: NodeRegistry = Depends(get_registry)):
    updates = body.model_dump(exclude_unset=True, exclude_none=True)
    node = registry.update_status(node_id, **updates)
    if node is None:
        raise HTTPException(404, f"Node {node_id} not found")
    return node.to_dict()


@router.delete("/nodes/{node_id}", status_code=204)
def remove_node(node_id: str, registry: NodeRegistry = Depends(get_registry)):
    if not registry.remove(node_id):
        raise HTTPException(404, f"Node {node_id} not found")


@router.get("/health", response_model=HealthOut)
async def health(request: Request):
    cache_ok = await request.app.state.cache.health_check()
    return HealthOut(
        status="ok" if cache_ok else "degraded",
        cache=cache_ok,
        nodes=len(request.app.state.registry),
        liveness=request.app.state.liveness.running,
    )
