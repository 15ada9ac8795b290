# -*- coding: utf-8 -*-
"""
Corridor Priority Engine FastAPI Application
"""
import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import registry
from api.routers import config, connections, priorities, zones


@asynccontextmanager
async def lifespan(app: FastAPI):
    registry.load()
    yield


app = FastAPI(title="Corridor Priority Engine", version="1.0.0", lifespan=lifespan)


allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:8000,http://127.0.0.1:8000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.include_router(priorities.router, prefix="/api", tags=["priorities"])
app.include_router(connections.router, prefix="/api", tags=["connections"])
app.include_router(zones.router, prefix="/api", tags=["risk-zones"])
app.include_router(config.router, prefix="/api", tags=["config"])


@app.get(
    "/health",
    summary="Service health",
    description="Reports whether the corridor dataset is loaded and how many entities it holds.",
    response_description="status(healthy/degraded/unavailable), version, entity counts",
)
async def health():
    try:
        dataset = registry.get_dataset()
        return {
            "status": "healthy" if dataset.stations else "degraded",
            "version": app.version,
            "stations": len(dataset.stations),
            "connections": len(dataset.connections),
            "zones": len(dataset.zones),
        }
    except RuntimeError:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "detail": "Engine not loaded"},
        )


@app.post(
    "/api/reload",
    summary="Reload corridor data",
    description="Re-reads stations.csv, connections.csv and zones.json after the files changed.",
    response_description="Reload status and new entity counts",
)
async def reload_data():
    try:
        with registry.lock:
            registry.load()
        dataset = registry.get_dataset()
        return {
            "status": "ok",
            "stations": len(dataset.stations),
            "connections": len(dataset.connections),
            "zones": len(dataset.zones),
        }
    except Exception as e:
        logging.exception("Data reload failed")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "detail": f"Reload failed: {e}"},
        )
