from datetime import datetime, timezone
from pathlib import Path

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from . import __version__
from .config import get_settings
from .exceptions import AssetParseError, MetadataError
from .schemas import CatalogRequest, Metadata, MetadataRequest, Section
from .services.catalog import parse_assets
from .services.crates_dump import open_cached_db
from .services.metadata import MetadataClients, resolve_metadata

settings = get_settings()
app = FastAPI(title="Generate Assets", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# FastAPI runs sync endpoints in a thread pool
clients = MetadataClients.from_settings(
    settings, crates_db=open_cached_db(settings, check_same_thread=False)
)


@app.get("/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/metadata", response_model=Metadata)
def metadata(body: MetadataRequest):
    try:
        resolved = resolve_metadata(body.link, clients)
    except MetadataError as exc:
        logger.warning(f"[api] metadata for {body.link} failed: {exc}")
        raise HTTPException(status_code=422, detail=str(exc))
    except httpx.HTTPError as exc:
        raise HTTPException(status_code=502, detail=f"Upstream error: {exc}")
    # skipped hosts answer with empty metadata
    return resolved or Metadata()


def resolve_asset_dir(asset_dir: str) -> Path:
    """Relative paths are taken from the asset root; nothing may point outside it."""
    root = Path(settings.asset_root).resolve()
    target = (root / asset_dir).resolve()
    if not target.is_relative_to(root):
        logger.warning(f"[api] rejected asset_dir outside {root}: {asset_dir}")
        raise HTTPException(status_code=403, detail=f"asset_dir must be inside the asset root: {asset_dir}")
    return target


@app.post("/catalog", response_model=Section)
def catalog(body: CatalogRequest):
    asset_dir = resolve_asset_dir(body.asset_dir)
    selected = MetadataClients(
        crates_io=clients.crates_io if body.use_crates_db else None,
        github=clients.github,
        gitlab=clients.gitlab,
    )
    try:
        return parse_assets(str(asset_dir), selected)
    except AssetParseError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
