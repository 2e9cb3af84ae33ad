import os
import time
import uuid
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from dotenv import load_dotenv
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from resources_service.schemas import PayloadError, parse_resource, render_resource, render_resources
from resources_service.store import ResourceStore

# Chargement des variables d'environnement
load_dotenv()

SERVICE_NAME = "resources-service"
JSON_MEDIA_TYPE = "application/json"

# Config logging JSON (niveaux INFO, WARNING, ERROR)
logger.remove()
logger.add(
    sink=os.getenv("LOG_FILE", "logs.json"),
    format="{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level} | {message} | {extra}",
    level=os.getenv("LOG_LEVEL", "INFO"),
    serialize=True,
    rotation="1 day",
)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["service", "method", "endpoint"]
)
ERROR_COUNT = Counter(
    "http_errors_total",
    "Total HTTP errors",
    ["service", "endpoint", "error_type"]
)


def bad_request(endpoint: str, error_type: str, detail: str) -> HTTPException:
    logger.bind(error_type=error_type).warning(detail)
    ERROR_COUNT.labels(service=SERVICE_NAME, endpoint=endpoint, error_type=error_type).inc()
    return HTTPException(status_code=400, detail=detail)


def endpoint_label(request: Request) -> str:
    """Route template when a route matched, raw path otherwise."""
    route = request.scope.get("route")
    return route.path if route is not None else request.url.path


def not_found(endpoint: str, resource_id: int) -> HTTPException:
    logger.warning(f"Resource {resource_id} not found")
    ERROR_COUNT.labels(service=SERVICE_NAME, endpoint=endpoint, error_type="not_found").inc()
    return HTTPException(status_code=404, detail="Resource not found")


def create_app(store: ResourceStore) -> FastAPI:
    """
    Build the service around the given store.

    Handlers only touch the store passed in here, so tests can run each
    app against a fresh, empty store.
    """
    app = FastAPI(title="Resources Service")

    # Middleware pour logger les requests avec correlation ID
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        # Generate or propagate correlation ID (trace-id)
        trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
        start_time = time.time()

        with logger.contextualize(trace_id=trace_id, service=SERVICE_NAME):
            # bind plutôt que extra=: le chemin peut contenir des accolades
            logger.bind(method=request.method, url=str(request.url)).info(
                f"Request: {request.method} {request.url.path}"
            )

            response = await call_next(request)

            latency = time.time() - start_time
            endpoint = endpoint_label(request)

            REQUEST_COUNT.labels(
                service=SERVICE_NAME,
                method=request.method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()
            REQUEST_LATENCY.labels(
                service=SERVICE_NAME,
                method=request.method,
                endpoint=endpoint
            ).observe(latency)

            logger.bind(status=response.status_code, latency=latency).info(
                f"Response status: {response.status_code}"
            )

            response.headers["X-Trace-ID"] = trace_id
            return response

    # Un id non entier dans le chemin est une mauvaise requête, pas un 422
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        error = bad_request(endpoint_label(request), "validation_error", "Invalid request parameters")
        return JSONResponse(status_code=error.status_code, content={"detail": error.detail})

    @app.get("/metrics")
    async def metrics():
        """Endpoint /metrics compatible Prometheus"""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {"status": "healthy", "service": SERVICE_NAME}

    @app.get("/resources")
    async def get_resources(request: Request):
        params = dict(request.query_params)
        logger.bind(params=params).info("Fetching all resources")
        return Response(content=render_resources(store.all()), media_type=JSON_MEDIA_TYPE)

    # Upsert: un id existant est écrasé sans conflit
    @app.post("/resources/create")
    async def create_resource(request: Request):
        try:
            resource = parse_resource(await request.body())
        except PayloadError as e:
            raise bad_request("/resources/create", "invalid_body", str(e))

        logger.info(f"Creating resource {resource.id}: {resource.name}")
        store.put(resource.id, resource)
        return Response(status_code=200)

    @app.get("/resources/{resource_id}")
    async def get_resource(resource_id: int):
        logger.info(f"Fetching resource {resource_id}")
        result = store.get(resource_id)
        if result.not_found:
            raise not_found("/resources/{resource_id}", resource_id)
        return Response(content=render_resource(result.value), media_type=JSON_MEDIA_TYPE)

    @app.put("/resources/{resource_id}")
    async def update_resource(resource_id: int, request: Request):
        endpoint = "/resources/{resource_id}"
        # 400 checks come before the existence check
        try:
            resource = parse_resource(await request.body())
        except PayloadError as e:
            raise bad_request(endpoint, "invalid_body", str(e))
        if resource.id != resource_id:
            raise bad_request(
                endpoint,
                "id_mismatch",
                f"Body id {resource.id} does not match path id {resource_id}",
            )

        logger.info(f"Updating resource {resource_id}")
        result = store.update(resource_id, resource)
        if result.not_found:
            raise not_found(endpoint, resource_id)
        return Response(status_code=200)

    @app.delete("/resources/{resource_id}")
    async def delete_resource(resource_id: int):
        logger.info(f"Deleting resource {resource_id}")
        result = store.delete(resource_id)
        if result.not_found:
            raise not_found("/resources/{resource_id}", resource_id)
        return Response(status_code=200)

    return app


# Stockage en mémoire, vit aussi longtemps que le process
resource_store = ResourceStore()
app = create_app(resource_store)


if __name__ == "__main__":
    port = int(os.getenv("PORT", 8001))
    logger.info(f"Starting Resources Service on port {port}")
    import uvicorn
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=port)
