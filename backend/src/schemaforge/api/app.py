"""FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from schemaforge.config import Settings, configure_logging, load_validator_modules
from schemaforge.metadata.loader import MetadataLoader
from schemaforge.metadata.validator import validate_metadata_dir
from schemaforge.validation import ConfigurationError, ValidationService

logger = logging.getLogger(__name__)


class ValidateRequest(BaseModel):
    """Body of a validation request: a flat map of field short name to value."""

    data: dict[str, Any] = Field(default_factory=dict)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the API app.

    Metadata and custom validators are loaded at startup; settings are read
    from the environment when not supplied.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or Settings.from_env()
        configure_logging(resolved.log_level)
        load_validator_modules(resolved.validator_modules)

        # Lint metadata (warn on issues, don't block startup)
        issues = validate_metadata_dir(resolved.metadata_path)
        for issue in issues:
            if issue.severity == "error":
                logger.error("Metadata error: %s", issue)
            else:
                logger.warning("Metadata warning: %s", issue)

        loader = MetadataLoader(resolved.metadata_path)
        loader.load_all()
        logger.info(
            "Loaded %d field(s) and %d object(s) from %s",
            len(loader.fields),
            len(loader.objects),
            resolved.metadata_path,
        )

        app.state.loader = loader
        app.state.service = ValidationService(strict_field_refs=resolved.strict_field_refs)
        yield

    app = FastAPI(title="schemaforge", lifespan=lifespan)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error("Configuration error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"error": {"code": "CONFIGURATION_ERROR", "message": str(exc)}},
        )

    def get_loader(request: Request) -> MetadataLoader:
        loader = getattr(request.app.state, "loader", None)
        if loader is None:
            raise HTTPException(500, "Metadata loader not initialized")
        return loader

    @app.get("/api/metadata/fields")
    async def list_fields(request: Request) -> dict[str, Any]:
        loader = get_loader(request)
        return {"data": [loader.fields[name].to_dict() for name in loader.list_fields()]}

    @app.get("/api/metadata/objects")
    async def list_objects(request: Request) -> dict[str, Any]:
        loader = get_loader(request)
        return {"data": [loader.objects[name].to_dict() for name in loader.list_objects()]}

    @app.get("/api/metadata/objects/{name}")
    async def get_object(name: str, request: Request) -> dict[str, Any]:
        loader = get_loader(request)
        obj = loader.get_object(name)
        if obj is None:
            raise HTTPException(404, f"Object '{name}' not found")
        return {
            "data": {
                **obj.to_dict(),
                "fieldDefinitions": [f.to_dict() for f in loader.fields_for(obj)],
            }
        }

    @app.post("/api/objects/{name}/validate")
    async def validate_record(name: str, body: ValidateRequest, request: Request):
        loader = get_loader(request)
        obj = loader.get_object(name)
        if obj is None:
            raise HTTPException(404, f"Object '{name}' not found")

        service: ValidationService = request.app.state.service
        result = await service.validate_instance(obj, loader.fields_for(obj), body.data)

        if not result.valid:
            return JSONResponse(
                status_code=400,
                content=jsonable_encoder({
                    "error": {
                        "code": "VALIDATION_ERROR",
                        "message": "Validation failed",
                        "details": [e.to_dict() for e in result.errors],
                    }
                }),
            )
        return {"data": result.to_dict()}

    return app


app = create_app()
