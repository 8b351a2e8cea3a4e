"""Fortress Transaction Ledger Service.

This service screens transfer requests for fraud, routes admitted requests
through reviewer approval and settlement, and records every event in a
hash-chained audit ledger.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from fortress.api.routes.audit import router as audit_router
from fortress.api.routes.health import router as health_router
from fortress.api.routes.principals import router as principals_router
from fortress.api.routes.transactions import router as transactions_router
from fortress.core.config import AppEnvironment, Settings, get_settings
from fortress.core.crypto import FieldCipher
from fortress.core.errors import FortressError, get_status_code
from fortress.core.logging import setup_logging
from fortress.services.audit_ledger import AuditLedger
from fortress.services.fraud_detector import FraudDetector
from fortress.services.principal_service import PrincipalService
from fortress.services.transaction_service import TransactionService
from fortress.services.transaction_store import TransactionStore
from fortress.settlement.executor import build_settlement_executor

logger = logging.getLogger(__name__)

# API version prefix
API_V1_PREFIX = "/api/v1"


def build_services(app: FastAPI, settings: Settings) -> None:
    """Wire the core services onto app.state."""
    ledger = AuditLedger(max_page_size=settings.audit.max_page_size)
    store = TransactionStore(FieldCipher(settings.security.encryption_key.get_secret_value()))
    settlement_executor = build_settlement_executor(settings.settlement)

    app.state.settings = settings
    app.state.audit_ledger = ledger
    app.state.settlement_executor = settlement_executor
    app.state.transaction_service = TransactionService(
        store=store,
        ledger=ledger,
        fraud_detector=FraudDetector(settings.fraud),
        settlement_executor=settlement_executor,
        settlement_timeout_seconds=settings.settlement.timeout_seconds,
    )
    app.state.principal_service = PrincipalService(
        ledger=ledger,
        preset_roles=settings.principals.preset_roles_map,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan context manager."""
    settings = get_settings()

    setup_logging(settings)

    logger.info(
        "Starting Fortress Transaction Ledger Service",
        extra={
            "app": settings.app.name,
            "env": settings.app.env,
            "version": settings.app.version,
        },
    )

    build_services(app, settings)

    yield

    aclose = getattr(app.state.settlement_executor, "aclose", None)
    if aclose is not None:
        await aclose()

    logger.info("Fortress Transaction Ledger Service stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Fortress Transaction Ledger API",
        description=(
            "API for submitting transfer requests, reviewer decisions and "
            "reading the hash-chained audit ledger."
        ),
        version=settings.app.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.app.env != AppEnvironment.PROD else None,
        redoc_url="/redoc" if settings.app.env != AppEnvironment.PROD else None,
        openapi_url="/openapi.json" if settings.app.env != AppEnvironment.PROD else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_allowed_origins,
        allow_credentials=settings.security.cors_allow_credentials,
        allow_methods=settings.security.cors_allow_methods,
        allow_headers=settings.security.cors_allow_headers,
    )

    app.include_router(health_router, prefix=API_V1_PREFIX)
    app.include_router(transactions_router, prefix=API_V1_PREFIX)
    app.include_router(principals_router, prefix=API_V1_PREFIX)
    app.include_router(audit_router, prefix=API_V1_PREFIX)

    setup_telemetry(app, settings)

    @app.exception_handler(FortressError)
    async def domain_error_handler(  # type: ignore[reportUnusedFunction]
        request: Request, exc: FortressError
    ) -> JSONResponse:
        """Handle domain-specific errors and return appropriate HTTP responses."""
        status_code = get_status_code(exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, **({"errors": exc.details} if exc.details else {})},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(  # type: ignore[reportUnusedFunction]
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions and return 500 error responses."""
        logger.exception(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


def setup_telemetry(app: FastAPI, settings: Settings) -> None:
    """Setup OpenTelemetry instrumentation."""
    if not settings.observability.otlp_endpoint:
        return

    resource = Resource(
        attributes={
            SERVICE_NAME: settings.observability.service_name,
        }
    )

    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        endpoint=settings.observability.otlp_endpoint,
        insecure=settings.observability.otlp_insecure,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app)


def run() -> None:
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "fortress.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.app.env == AppEnvironment.LOCAL,
        workers=1 if settings.app.env == AppEnvironment.LOCAL else settings.server.workers,
        log_level=settings.app.log_level.value.lower(),
    )


if __name__ == "__main__":
    run()
