from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from annotations.application.significance import SignificanceGate
from annotations.interfaces.routes import router as snapshots_router
from annotations.interfaces.routes import significance_router
from annotations.interfaces.ws_handler import router as ws_router
from shared.config import settings
from shared.exceptions import (
    AppError,
    ConflictError,
    InvalidRangeError,
    NotFoundError,
)
from shared.infrastructure.database import engine
from shared.infrastructure.redis import close_redis_pool
from shared.log_config import configure_logging

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    gate = SignificanceGate(settings)
    gate.init()
    app.state.significance_gate = gate
    yield
    gate.dispose()
    await engine.dispose()
    await close_redis_pool()


app = FastAPI(
    title="Line Trace",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(snapshots_router)
app.include_router(significance_router)
app.include_router(ws_router)


@app.exception_handler(NotFoundError)
async def not_found_handler(request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ConflictError)
async def conflict_handler(request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(InvalidRangeError)
async def invalid_range_handler(request, exc: InvalidRangeError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(AppError)
async def app_error_handler(request, exc: AppError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.get("/health")
async def health_check():
    return {"status": "ok"}
