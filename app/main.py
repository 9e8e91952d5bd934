# app/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.logging import setup_logging
from app.db.base import init_models
from app.http_problem_handlers import register_exception_handlers
from app.obs.metrics import PrometheusMiddleware
from app.router_mount import mount_routers

settings = get_settings()
setup_logging(settings.LOG_LEVEL, json=settings.JSON_LOG)
logger = logging.getLogger("shipfee")

init_models()

app = FastAPI(
    title="Shipping Fee Service",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(PrometheusMiddleware)

register_exception_handlers(app)
mount_routers(app)

logger.info("app ready: env=%s routes=%d", settings.ENV, len(app.routes))


@app.get("/")
def root():
    return {"name": "shipfee", "version": "1.0.0"}


@app.get("/healthz")
def healthz():
    return {"status": "ok"}
