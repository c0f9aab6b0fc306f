from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from covergrid import __version__
from covergrid.api.v1 import router as v1_router
from covergrid.config import config
from covergrid.utils.logging import configure_logging

log = configure_logging()

app = FastAPI(
    title="CoverGrid",
    description="Album cover grid preview and brightness-ordered canvas export",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=[
        "Content-Disposition",
        "X-Request-ID",
        "X-Fallback-Tiles",
        "X-Canvas-Size"
    ]
)

app.include_router(v1_router)

log.info("CoverGrid API ready", extra={
    "version": __version__,
    "canvas_edge": config.CANVAS_EDGE,
    "cluster_count": config.CLUSTER_COUNT
})
