"""Entry point for the FastAPI-powered TMDB reference service."""

from __future__ import annotations

import logging
import secrets
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field, ValidationError, field_validator

from .config import Settings, settings
from .database import Database
from .services.link_preview import LinkPreviewClient
from .services.reference_cache import ReferenceCache
from .services.reference_provider import TMDBReferenceProvider
from .services.settings_store import SettingsStore
from .services.tmdb import TMDBClient
from .urls import IMAGE_SIZES, URLBuilder
from .utils import coerce_setting_value

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

USER_HEADER = "x-user-id"
ADMIN_TOKEN_HEADER = "x-admin-token"
STATIC_DIR = Path(__file__).resolve().parent / "static"

# Changing any of these alters what a resolution would return.
RESOLUTION_SETTING_KEYS: frozenset[str] = frozenset(
    {"api_key", "language", "link_preview_enabled", "token"}
)

app: FastAPI


@dataclass(slots=True)
class ServiceContainer:
    """Collaborators shared by every request."""

    settings: Settings
    settings_store: SettingsStore
    tmdb: TMDBClient
    link_preview: LinkPreviewClient
    cache: ReferenceCache
    url_builder: URLBuilder


class ConfigValues(BaseModel):
    """Body accepted by the settings relay endpoints."""

    values: dict[str, Any] = Field(default_factory=dict)

    @field_validator("values")
    @classmethod
    def _reject_blank_keys(cls, value: dict[str, Any]) -> dict[str, Any]:
        if any(not str(key).strip() for key in value):
            raise ValueError("Setting keys may not be empty")
        return value


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(15.0, connect=5.0),
        )
    )
    preview_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            timeout=httpx.Timeout(settings.link_preview_timeout, connect=5.0),
            headers={"User-Agent": f"{settings.app_name} (tmdbref)"},
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    settings_store = SettingsStore(database.session_factory)
    fastapi_app.state.services = ServiceContainer(
        settings=settings,
        settings_store=settings_store,
        tmdb=TMDBClient(
            settings,
            tmdb_http_client,
            settings_store,
            image_client=preview_http_client,
        ),
        link_preview=LinkPreviewClient(preview_http_client),
        cache=ReferenceCache(database.session_factory, settings.reference_cache_seconds),
        url_builder=URLBuilder(settings.public_base_url, settings.app_id),
    )
    fastapi_app.state.database = database

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Link previews for themoviedb.org movies, people and series",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "PUT"],
        allow_headers=["*"],
    )
    fastapi_app.mount(
        f"/static/{settings.app_id}",
        StaticFiles(directory=STATIC_DIR),
        name="static",
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_services(fastapi_app: FastAPI) -> ServiceContainer:
    services = getattr(fastapi_app.state, "services", None)
    if not isinstance(services, ServiceContainer):
        raise RuntimeError("Services not initialised")
    return services


def current_user_id(request: Request) -> str | None:
    """Return the acting user named by the request, if any."""

    user_id = (request.headers.get(USER_HEADER) or "").strip()
    return user_id or None


def build_provider(services: ServiceContainer, user_id: str | None) -> TMDBReferenceProvider:
    return TMDBReferenceProvider(
        settings_reader=services.settings_store,
        metadata=services.tmdb,
        fallback=services.link_preview,
        cache=services.cache,
        url_builder=services.url_builder,
        app_id=services.settings.app_id,
        user_id=user_id,
    )


def register_routes(fastapi_app: FastAPI) -> None:
    async def _parse_config_values(request: Request) -> dict[str, str]:
        try:
            body = await request.json()
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Invalid payload") from exc
        try:
            payload = ConfigValues.model_validate(body)
        except ValidationError as exc:
            raise HTTPException(
                status_code=400, detail=exc.errors(include_url=False, include_context=False)
            ) from exc
        return {
            str(key).strip(): coerce_setting_value(value)
            for key, value in payload.values.items()
        }

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/provider")
    async def provider_info(request: Request) -> dict[str, Any]:
        provider = build_provider(get_services(fastapi_app), current_user_id(request))
        return {
            "id": provider.get_id(),
            "title": provider.get_title(),
            "order": provider.get_order(),
            "icon_url": provider.get_icon_url(),
            "search_provider_ids": await provider.get_supported_search_provider_ids(),
        }

    @fastapi_app.get("/references/match")
    async def match_reference(
        request: Request, text: str = Query(..., min_length=1)
    ) -> dict[str, bool]:
        provider = build_provider(get_services(fastapi_app), current_user_id(request))
        return {"matched": await provider.matches(text)}

    @fastapi_app.get("/references/resolve")
    async def resolve_reference(
        request: Request,
        text: str = Query(..., min_length=1),
        reference_id: str = Query(..., min_length=1),
    ) -> JSONResponse:
        """Resolve ``text``, caching the result under the caller's ``reference_id``."""

        services = get_services(fastapi_app)
        provider = build_provider(services, current_user_id(request))
        if not await provider.matches(text):
            return JSONResponse({"reference": None, "cached": False})

        prefix = provider.cache_prefix(reference_id)
        key = provider.cache_key(reference_id)
        entry = await services.cache.get(prefix, key)
        if entry is not None:
            preview = entry.preview
            return JSONResponse(
                {
                    "reference": preview.model_dump(mode="json") if preview else None,
                    "cached": True,
                }
            )

        preview = await provider.resolve(text)
        await services.cache.set(prefix, key, preview)
        return JSONResponse(
            {
                "reference": preview.model_dump(mode="json") if preview else None,
                "cached": False,
            }
        )

    @fastapi_app.put("/config")
    async def set_config(request: Request) -> JSONResponse:
        user_id = current_user_id(request)
        if user_id is None:
            raise HTTPException(status_code=401, detail="Authentication required")
        values = await _parse_config_values(request)
        services = get_services(fastapi_app)
        namespace = services.settings.app_id
        for key, value in values.items():
            await services.settings_store.set_user_value(user_id, namespace, key, value)
        if RESOLUTION_SETTING_KEYS.intersection(values):
            provider = build_provider(services, user_id)
            await provider.invalidate_user_cache(user_id)
        return JSONResponse("")

    @fastapi_app.put("/admin-config")
    async def set_admin_config(request: Request) -> JSONResponse:
        services = get_services(fastapi_app)
        expected_token = services.settings.admin_token
        if expected_token:
            supplied = request.headers.get(ADMIN_TOKEN_HEADER) or ""
            if not secrets.compare_digest(supplied, expected_token):
                raise HTTPException(status_code=403, detail="Admin token required")
        values = await _parse_config_values(request)
        namespace = services.settings.app_id
        for key, value in values.items():
            await services.settings_store.set_app_value(namespace, key, value)
        if RESOLUTION_SETTING_KEYS.intersection(values):
            await services.cache.clear()
        return JSONResponse("")

    @fastapi_app.get("/images/{size}/{image_path:path}")
    async def proxy_image(size: str, image_path: str) -> Response:
        if size not in IMAGE_SIZES:
            raise HTTPException(status_code=400, detail="Unsupported image size")
        if not image_path:
            raise HTTPException(status_code=404, detail="Image not found")
        services = get_services(fastapi_app)
        result = await services.tmdb.get_image(size, image_path)
        if result is None:
            raise HTTPException(status_code=404, detail="Image not found")
        content, media_type = result
        return Response(
            content=content,
            media_type=media_type,
            headers={"Cache-Control": "public, max-age=86400"},
        )


app = create_app()
