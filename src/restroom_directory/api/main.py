from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from restroom_directory.api.routes import router
from restroom_directory.api.schemas import HealthResponse
from restroom_directory.config import settings
from restroom_directory.data.database import check_connection, create_db_engine, create_session_factory, init_db
from restroom_directory.exceptions import NotFoundError, StoreFailureError, ValidationError
from restroom_directory.logging_config import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests (or an embedding service) may hand us a session factory already
    owns_engine = getattr(app.state, "session_factory", None) is None
    if owns_engine:
        settings.setup()
        engine = create_db_engine()
        init_db(engine)
        app.state.session_factory = create_session_factory(engine)
        logger.info("Session factory ready")

    yield

    if owns_engine:
        app.state.session_factory.kw["bind"].dispose()
        app.state.session_factory = None
        logger.info("Database engine disposed")


app = FastAPI(
    title="Restroom Directory API",
    description="Find public restrooms by text, location and features, with aggregated ratings.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    # Client mistakes are expected traffic, not server errors
    logger.debug("400 on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=400, content={"message": exc.message, "details": jsonable_encoder(exc.details)})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    logger.debug("400 on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid parameters", "details": {"errors": jsonable_encoder(exc.errors())}},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"message": exc.message, "details": jsonable_encoder(exc.details)})


@app.exception_handler(StoreFailureError)
async def store_failure_handler(request: Request, exc: StoreFailureError):
    # Full context is already in the server log; callers get a generic body
    logger.error("500 on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=500, content={"message": "Server error", "details": {}})


@app.get("/health", response_model=HealthResponse)
def health_check():
    """Liveness plus a trivial database round trip."""
    engine = app.state.session_factory.kw["bind"]
    return HealthResponse(status="healthy", database=check_connection(engine))
