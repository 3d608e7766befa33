import os
import re
import time
import uuid
from typing import List, Optional
from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger
from dotenv import load_dotenv
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from models import ProductNotFound, ProductStore
from schemas import DeleteResponse, ErrorResponse, ProductCreate, ProductResponse, validation_message

# Chargement des variables d'environnement
load_dotenv()

SERVICE_NAME = "products-service"
NOT_FOUND_MESSAGE = "Producto no encontrado"
PRODUCT_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
INTERNAL_ERROR_MESSAGE = "Error interno del servidor"

PORT = int(os.getenv("PORT", 3000))
HOST = os.getenv("HOST", "0.0.0.0")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

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

app = FastAPI(
    title="Mi Tienda Digital API",
    version="1.0.0",
    description="API REST para gestionar productos (ejercicio)",
    docs_url="/api-docs",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Stockage en mémoire, remplaçable dans les tests
app.state.store = ProductStore.seeded()


def get_store(request: Request) -> ProductStore:
    return request.app.state.store


def endpoint_label(request: Request) -> str:
    """Route template for metric labels, never the raw client path."""
    route = request.scope.get("route")
    return route.path if route is not None else "unmatched"


# Middleware pour logger les requests avec correlation ID
@app.middleware("http")
async def log_requests(request: Request, call_next):
    # Generate or propagate correlation ID (trace-id)
    trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
    start_time = time.time()

    # Bind trace_id to logger context
    with logger.contextualize(trace_id=trace_id, service=SERVICE_NAME):
        logger.info(
            f"Request: {request.method} {request.url.path}",
            extra={"method": request.method, "url": str(request.url), "trace_id": trace_id}
        )

        try:
            response = await call_next(request)
        except Exception:
            # Dernière barrière: une requête en échec ne doit pas arrêter le process
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            ERROR_COUNT.labels(service=SERVICE_NAME, endpoint=endpoint_label(request), error_type="internal_error").inc()
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": INTERNAL_ERROR_MESSAGE},
            )

        # Calculate latency
        latency = time.time() - start_time

        # Record metrics
        REQUEST_COUNT.labels(
            service=SERVICE_NAME,
            method=request.method,
            endpoint=endpoint_label(request),
            status=response.status_code
        ).inc()
        REQUEST_LATENCY.labels(
            service=SERVICE_NAME,
            method=request.method,
            endpoint=endpoint_label(request)
        ).observe(latency)

        logger.info(
            f"Response status: {response.status_code}",
            extra={"status": response.status_code, "latency": latency, "trace_id": trace_id}
        )

        # Add trace_id to response headers for tracing
        response.headers["X-Trace-ID"] = trace_id
        return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Toutes les erreurs HTTP sortent sous la forme {"error": ...}"""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = validation_message(exc.errors())
    logger.warning(f"Invalid input on {request.method} {request.url.path}: {message}")
    ERROR_COUNT.labels(service=SERVICE_NAME, endpoint=endpoint_label(request), error_type="invalid_input").inc()
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


def parse_product_id(raw: str) -> Optional[int]:
    """Path ids that are not integers match no product."""
    if PRODUCT_ID_PATTERN.fullmatch(raw) is None:
        return None
    return int(raw)


def not_found(product_id: str, endpoint: str) -> HTTPException:
    logger.warning(f"Product {product_id} not found")
    ERROR_COUNT.labels(service=SERVICE_NAME, endpoint=endpoint, error_type="not_found").inc()
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)


NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": NOT_FOUND_MESSAGE}}
INVALID_RESPONSE = {400: {"model": ErrorResponse, "description": "Datos inválidos"}}


@app.get("/metrics")
async def metrics():
    """Endpoint /metrics compatible Prometheus"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy", "service": SERVICE_NAME}


@app.get("/api/products", response_model=List[ProductResponse], summary="Obtener lista de productos")
async def get_products(store: ProductStore = Depends(get_store)):
    logger.info("Fetching all products")
    return store.list()


@app.get(
    "/api/products/{product_id}",
    response_model=ProductResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Obtener un producto por id",
)
async def get_product(product_id: str, store: ProductStore = Depends(get_store)):
    logger.info(f"Fetching product {product_id}")
    pid = parse_product_id(product_id)
    if pid is None:
        raise not_found(product_id, "/api/products/{product_id}")
    try:
        return store.get(pid)
    except ProductNotFound:
        raise not_found(product_id, "/api/products/{product_id}")


@app.post(
    "/api/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses=INVALID_RESPONSE,
    summary="Crear un producto",
)
async def create_product(product: ProductCreate, store: ProductStore = Depends(get_store)):
    logger.info(f"Creating product: {product.name}")
    new_product = store.create(product.name, product.price)
    logger.info(f"Product created with ID {new_product.id}")
    return new_product


@app.put(
    "/api/products/{product_id}",
    response_model=ProductResponse,
    responses={**INVALID_RESPONSE, **NOT_FOUND_RESPONSE},
    summary="Actualizar producto",
)
async def update_product(product_id: str, product: ProductCreate, store: ProductStore = Depends(get_store)):
    logger.info(f"Updating product {product_id}")
    pid = parse_product_id(product_id)
    if pid is None:
        raise not_found(product_id, "/api/products/{product_id}")
    try:
        return store.update(pid, product.name, product.price)
    except ProductNotFound:
        raise not_found(product_id, "/api/products/{product_id}")


@app.delete(
    "/api/products/{product_id}",
    response_model=DeleteResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Eliminar producto",
)
async def delete_product(product_id: str, store: ProductStore = Depends(get_store)):
    logger.info(f"Deleting product {product_id}")
    pid = parse_product_id(product_id)
    if pid is None:
        raise not_found(product_id, "/api/products/{product_id}")
    try:
        removed = store.delete(pid)
    except ProductNotFound:
        raise not_found(product_id, "/api/products/{product_id}")
    logger.info(f"Product {pid} deleted")
    return {"message": "Producto eliminado", "product": removed}


if __name__ == "__main__":
    logger.info(f"API corriendo en http://localhost:{PORT}")
    logger.info(f"Docs (Swagger): http://localhost:{PORT}/api-docs")
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
