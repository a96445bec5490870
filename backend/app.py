import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.deps import build_llm, build_store
from backend.routes import router
from betfunnels.config import Settings
from betfunnels.errors import CopyError
from betfunnels.llm import LLM
from betfunnels.storage import TemplateStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    store: TemplateStore | None = None,
    llm: LLM | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="Betfunnels Copy")
    app.state.settings = settings
    app.state.store = store or build_store(settings)
    app.state.llm = llm or build_llm(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type", "x-app-password"],
    )

    @app.exception_handler(CopyError)
    async def copy_error_handler(request: Request, exc: CopyError):
        logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err["loc"] if p != "body") for err in exc.errors()]
        return JSONResponse(
            status_code=422,
            content={"error": "Dados do formulário inválidos.", "invalidFields": fields},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unexpected error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Erro inesperado."})

    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (reads settings from the environment)
app = create_app()
