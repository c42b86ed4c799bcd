"""
api/app.py - FastAPI application factory.

Builds one registry, node client, cache and gateway per app and hangs them
on app.state. The liveness sweep runs for the lifetime of the app.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.routes import router
from cache import create_cache
from cache.base import CacheLayer
from chains.providers import NodeClient
from config.settings import GatewaySettings, load_settings
from core.exceptions import GatewayError, SubmissionRejectedByAll, ValidatorUnavailable
from core.logging import get_logger
from discovery.liveness import HttpStatusProbe, LivenessChecker, LivenessProbe
from discovery.registry import NodeRegistry
from gateway.aggregation import AggregationGateway
from gateway.broadcaster import TransactionBroadcaster
from gateway.consensus import ConsensusEstimator
from gateway.service import BlockchainGateway
from monitoring.throughput import ThroughputMeter

logger = get_logger(__name__)


def status_code_for(exc: GatewayError) -> int:
    if isinstance(exc, ValidatorUnavailable):
        return 503
    if isinstance(exc, SubmissionRejectedByAll):
        return 502
    return 500


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    status = status_code_for(exc)
    log = logger.error if status == 500 else logger.warning
    log(
        f"{request.method} {request.url.path} failed: {exc}",
        extra={"context": {"code": exc.code.value, "status": status}},
    )
    return JSONResponse(status_code=status, content={"error": exc.to_dict()})


def create_app(
    settings: GatewaySettings | None = None,
    client: NodeClient | None = None,
    cache: CacheLayer | None = None,
    probe: LivenessProbe | None = None,
) -> FastAPI:
    """
    Wire the gateway and return the FastAPI app.

    Args:
        settings: Gateway settings (default: load_settings())
        client: Node HTTP client (default: built from settings)
        cache: Cache backend (default: create_cache(settings.cache))
        probe: Liveness probe (default: HttpStatusProbe over client)
    """
    settings = settings or load_settings()
    client = client or NodeClient(timeout_seconds=settings.node_timeout_seconds)
    cache = cache or create_cache(settings.cache)

    registry = NodeRegistry(settings.nodes)
    throughput = ThroughputMeter(window_seconds=settings.throughput_window_seconds)
    broadcaster = TransactionBroadcaster(registry, client, throughput)
    gateway = BlockchainGateway(
        registry=registry,
        client=client,
        aggregation=AggregationGateway(registry, client, cache),
        consensus=ConsensusEstimator(registry, client),
        broadcaster=broadcaster,
        throughput=throughput,
        cache_ttl=settings.cache_ttl,
        network_version=settings.network_version,
    )
    liveness = LivenessChecker(
        registry,
        probe or HttpStatusProbe(client, settings.liveness.probe_timeout_seconds),
        interval_seconds=settings.liveness.interval_seconds,
        probe_timeout_seconds=settings.liveness.probe_timeout_seconds,
        jitter_fraction=settings.liveness.jitter_fraction,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.liveness.enabled:
            liveness.start()
        logger.info(
            "Gateway started",
            extra={"context": {"nodes": len(registry), "cache": settings.cache.backend.value}},
        )
        try:
            yield
        finally:
            await liveness.stop()
            await broadcaster.drain()
            await client.close()
            await cache.close()
            logger.info("Gateway stopped")

    app = FastAPI(title="RELAYGATE", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.cache = cache
    app.state.client = client
    app.state.gateway = gateway
    app.state.liveness = liveness
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.include_router(router)
    return app
