"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.dependencies import admin_key_protection
from src.catalog.service import CatalogError, CatalogService
from src.database.base import DocumentStore
from src.database.factory import create_store
from src.error_handler import ErrorHandler
from src.utils.config_loader import load_catalog_config

config = load_catalog_config()

# Setup logging
logging.basicConfig(level=getattr(logging, config.api.log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Catalog Admin API",
    description="Categories, subcategories and products kept in a single JSON document",
    version="1.0.0",
)

CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = "Content-Type, X-API-KEY"

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=CORS_ALLOW_METHODS,
    allow_headers=["*"],
)


@app.middleware("http")
async def permissive_cors_headers(request: Request, call_next):
    """
    Put CORS headers on every response, not only on requests carrying an
    Origin, and answer browser preflights with an empty 200.
    """
    origins = config.api.cors_origins
    origin = request.headers.get("origin")
    if "*" in origins:
        allow_origin = "*"
    elif origin in origins:
        allow_origin = origin
    else:
        return await call_next(request)

    if request.method == "OPTIONS" and "access-control-request-method" in request.headers:
        response = Response(status_code=200)
    else:
        response = await call_next(request)
    response.headers.setdefault("Access-Control-Allow-Origin", allow_origin)
    response.headers.setdefault("Access-Control-Allow-Headers", CORS_ALLOW_HEADERS)
    response.headers.setdefault("Access-Control-Allow-Methods", ", ".join(CORS_ALLOW_METHODS))
    return response


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

store = create_store(config.store)
catalog_service = CatalogService(store)
error_handler = ErrorHandler()


def get_store() -> DocumentStore:
    return store


def get_service() -> CatalogService:
    return catalog_service


api_router = APIRouter(dependencies=[Depends(admin_key_protection)])


def _error_response(exc: CatalogError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _internal_error(exc: Exception, context: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=500, content=error_handler.handle_exception(exc, context=context))


# ============================================================================
# ENDPOINTS
# ============================================================================


@app.get("/", tags=["Health"])
async def root():
    return {"message": "Catalog Admin API", "version": "1.0.0"}


@app.get("/health", tags=["Health"])
async def health_check(store: DocumentStore = Depends(get_store)):
    return {"status": "healthy", "store": "connected" if store.ping() else "unavailable"}


@api_router.options("/data", tags=["Catalog"])
async def preflight():
    return Response(status_code=200)


@api_router.get("/data", tags=["Catalog"])
async def get_data(action: Optional[str] = None, service: CatalogService = Depends(get_service)):
    if action:
        return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
    try:
        return JSONResponse(status_code=200, content=service.list_all())
    except Exception as e:
        return _internal_error(e, {"method": "GET"})


@api_router.post("/data", tags=["Catalog"])
async def create_entity(request: Request, service: CatalogService = Depends(get_service)):
    entity_type = None
    try:
        body = await request.json()
        entity_type = body.get("type")
        fields = {k: v for k, v in body.items() if k != "type"}
        entity = service.create(entity_type, fields)
        return {"success": True, entity_type: entity}
    except CatalogError as e:
        return _error_response(e)
    except Exception as e:
        return _internal_error(e, {"method": "POST", "type": entity_type})


@api_router.delete("/data", tags=["Catalog"])
async def delete_entity(
    entity_type: Optional[str] = Query(default=None, alias="type"),
    key: Optional[str] = None,
    service: CatalogService = Depends(get_service),
):
    try:
        service.delete(entity_type, key)
        return {"success": True}
    except CatalogError as e:
        return _error_response(e)
    except Exception as e:
        return _internal_error(e, {"method": "DELETE", "type": entity_type, "key": key})


@api_router.put("/data", tags=["Catalog"])
async def update_entity(request: Request, service: CatalogService = Depends(get_service)):
    entity_type = None
    try:
        body = await request.json()
        entity_type = body.get("type")
        entity = service.update(entity_type, body)
        return {"success": True, entity_type: entity}
    except CatalogError as e:
        return _error_response(e)
    except Exception as e:
        return _internal_error(e, {"method": "PUT", "type": entity_type})


@api_router.api_route("/data", methods=["HEAD", "PATCH", "TRACE"], include_in_schema=False)
async def unsupported_method():
    return JSONResponse(status_code=404, content={"error": "Endpoint not found"})


app.include_router(api_router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info("Catalog API starting with %s backend", config.store.backend)
    if not store.ping():
        logger.warning("Document store is not reachable; reads will return an empty catalog")
