import asyncio
import logging
import secrets
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
import uvicorn

from app.api.endpoints import (
    auth,
    faucet,
    health,
)
from app.core.challenge_store import ChallengeStore
from app.core.config import settings
from app.core.exceptions import FaucetError, ValidationError
from app.core.jwt_utils import require_signing_key
from app.services.auth import AuthService, SiweConfig, run_challenge_sweeper
from app.services.blockchain import FaucetContract

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    """Name the first offending field, e.g. "Invalid address" or "Invalid limit"."""
    for error in exc.errors():
        # loc is ("body" | "query" | "path" | "header", field, ...), ints are list or JSON positions
        fields = [part for part in error.get("loc", ())[1:] if isinstance(part, str)]
        if fields:
            return f"Invalid {fields[-1]}"
    return "Invalid request body"


def _build_faucet_contract() -> Optional[FaucetContract]:
    if not (settings.RPC_URL and settings.CONTRACT_ADDRESS and settings.PRIVATE_KEY):
        logger.warning("RPC_URL, CONTRACT_ADDRESS or PRIVATE_KEY missing, faucet endpoints disabled")
        return None
    return FaucetContract.from_settings(settings)


def create_app(
    auth_service: Optional[AuthService] = None,
    faucet_contract: Optional[FaucetContract] = None,
) -> FastAPI:
    """Build the API. Services passed in replace the ones built from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # fail fast without a JWT secret
        require_signing_key()

        service = auth_service or AuthService(ChallengeStore(), SiweConfig.from_settings(settings))
        app.state.auth_service = service
        app.state.faucet_contract = faucet_contract or _build_faucet_contract()

        sweeper = asyncio.create_task(
            run_challenge_sweeper(service, settings.NONCE_SWEEP_INTERVAL_SECONDS)
        )
        logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)
        try:
            yield
        finally:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
            logger.info("%s stopped", settings.PROJECT_NAME)

    # Define the FastAPI application instance
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    @app.exception_handler(FaucetError)
    async def faucet_error_handler(request: Request, exc: FaucetError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return await faucet_error_handler(request, ValidationError(_describe_validation_error(exc)))

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Endpoint not found"})

    security = HTTPBasic()
    def doc_auth(credentials: HTTPBasicCredentials = Depends(security)):
        correct_password = bool(settings.DOC_PASSWORD) and secrets.compare_digest(
            credentials.password, settings.DOC_PASSWORD
        )
        if not correct_password:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect password",
                headers={"WWW-Authenticate": "Basic"},
            )
        return credentials.username

    @app.get("/docs", include_in_schema=False)
    async def get_swagger_documentation(username: str = Depends(doc_auth)):
        return get_swagger_ui_html(openapi_url="/openapi.json", title="docs")

    @app.get("/redoc", include_in_schema=False)
    async def get_redoc_documentation(username: str = Depends(doc_auth)):
        return get_redoc_html(openapi_url="/openapi.json", title="docs")

    @app.get("/openapi.json", include_in_schema=False)
    async def openapi(username: str = Depends(doc_auth)):
        return get_openapi(title=app.title, version=app.version, routes=app.routes)

    app.include_router(health.router)
    app.include_router(auth.router, prefix="/auth")
    app.include_router(faucet.router, prefix="/faucet")
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        ssl_keyfile=settings.SSL_KEY,
        ssl_certfile=settings.SSL_CERT,
        reload=settings.DEBUG
    )
