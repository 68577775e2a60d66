import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src import config
from src.auth.routes import router as auth_router
from src.blog.routes import router as blog_router
from src.database.connection import close_client, get_db, open_client, ping
from src.utils.errors import BlogAPIError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = open_client()
    app.state.db = client[config.DB_NAME]
    try:
        yield
    finally:
        close_client(client)


app = FastAPI(title="Blog Posts API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BlogAPIError)
async def blog_api_exception_handler(request: Request, exc: BlogAPIError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Missing or mistyped payload fields are client errors, reported as 400
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # account payloads carry credentials; never echo them back
    echo_input = not request.url.path.startswith("/auth")
    errors = []
    for error in exc.errors():
        error_dict = {
            "loc": list(error["loc"]),
            "msg": error["msg"],
            "type": error["type"]
        }
        if echo_input and "input" in error:
            error_dict["input"] = error["input"]
        errors.append(error_dict)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request payload", "errors": errors}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error", "error": str(exc)},
    )


app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(blog_router, prefix="/posts", tags=["posts"])


@app.get("/")
def root():
    return {"message": "Blog Posts API running"}


@app.get("/health")
def health(db=Depends(get_db)):
    try:
        ping(db)
    except PyMongoError as exc:
        logger.error("Database ping failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"message": "Database unavailable", "error": str(exc)},
        )
    return {"status": "ok"}
