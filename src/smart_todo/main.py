import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import ConcurrencyConflictError, InterpreterError
from .interpreter import InstructionInterpreter, get_interpreter
from .logging_config import setup_logging
from .middleware import RequestLoggerMiddleware
from .routers import todos as todos_router
from .settings import get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "CRUD operations for Todo items and natural-language instruction processing.",
    },
]

_settings = get_settings()

setup_logging(level=_settings.log_level, fmt=_settings.log_format)
log = structlog.get_logger()

app = FastAPI(
    title="Smart Todo Backend",
    description="Todo API whose items are categorized, and whose instructions are interpreted, by an AI service.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggerMiddleware)


# Global exception handlers for consistent JSON on validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(ConcurrencyConflictError)
async def conflict_exception_handler(request: Request, exc: ConcurrencyConflictError) -> JSONResponse:
    """Concurrent modification during a replace is fatal for the request."""
    log.error("concurrency conflict", todo_id=exc.todo_id, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "ConcurrencyConflict", "message": str(exc)},
    )


@app.exception_handler(InterpreterError)
async def interpreter_exception_handler(request: Request, exc: InterpreterError) -> JSONResponse:
    """The AI service failed or answered with something unusable."""
    log.error("instruction interpreter failed", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=502,
        content={"error": "InterpreterUnavailable", "message": str(exc)},
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check(interpreter: InstructionInterpreter = Depends(get_interpreter)):
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health and the configured backends.
    """
    return {
        "message": "Healthy",
        "backend": _settings.persistence_backend,
        "interpreter": interpreter.name,
    }


# Include routers
app.include_router(todos_router.router)
