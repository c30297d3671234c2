"""FastAPI web application for depbump (read-only status)."""

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from core.compare import compare_versions
from core.config import UpdaterSettings
from core.errors import ResolutionFailure
from core.extract import extract_version
from core.models import Comparison
from core.resolve import build_resolver

VERSION = "0.1.0"

app = FastAPI(
    title="depbump",
    description="Check whether a pinned project dependency is on its latest release",
    version=VERSION,
)


class CheckResponse(BaseModel):
    """Response model for a version check."""
    package: str
    manifest: str | None
    current_version: str | None
    latest_version: str
    source: str
    comparison: str
    update_available: bool
    notes: str
    published_at: str
    info_url: str
    backup_present: bool


def get_settings() -> UpdaterSettings:
    return UpdaterSettings.from_env()


@app.get("/api/health")
async def health():
    """Liveness probe."""
    return {"status": "ok", "version": VERSION}


@app.get("/api/check", response_model=CheckResponse)
async def check():
    """Report current and latest version without touching the manifest."""
    try:
        settings = get_settings()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=f"Invalid configuration: {e}")

    handle = settings.manifest_handle()
    current = extract_version(handle) if handle else None

    try:
        latest = await build_resolver(settings).resolve()
    except ResolutionFailure as e:
        raise HTTPException(status_code=502, detail=str(e))

    comparison = compare_versions(latest.version, current)
    return CheckResponse(
        package=settings.package_id,
        manifest=str(handle.path) if handle else None,
        current_version=current,
        latest_version=latest.version,
        source=latest.source_name,
        comparison=comparison.value,
        update_available=comparison is Comparison.NEWER,
        notes=latest.notes,
        published_at=latest.published_at,
        info_url=latest.info_url,
        backup_present=handle.backup_path.exists() if handle else False,
    )
