import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from postapi.cache import cache
from postapi.config import settings
from postapi.exceptions import PostAPIError
from postapi.middleware import RequestLogMiddleware
from postapi.routers import comments, posts, users

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; the feed cache disables itself when Redis is unreachable.
    await cache.connect()
    yield
    # Shutdown
    await cache.disconnect()

app = FastAPI(
    title="PostAPI",
    description="Users, posts and threaded comments behind bearer-token auth",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(PostAPIError)
async def postapi_error_handler(request: Request, exc: PostAPIError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code, content={"detail": exc.message}, headers=headers
    )

# Routers
app.include_router(users.router)
app.include_router(posts.router)
app.include_router(comments.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
