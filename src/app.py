"""Invoicing FastAPI application.

Web server that prices invoice drafts and processes invoice commands
synchronously via HTTP. Every request under ``/invoices`` runs inside the
invoicing domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# Routes are imported first so every command handler is registered before init.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from invoicing.api.routes import invoice_router
from invoicing.domain import invoicing
from invoicing.utils.logging import add_context, clear_context, configure_logging
from protean.exceptions import ObjectNotFoundError, ValidationError

configure_logging()
invoicing.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Invoicing API",
    description="Invoice drafting, pricing and lifecycle",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the invoicing domain context for invoice routes.

    Request method and path are bound into the structlog context for the
    duration of the request.
    """
    clear_context()
    add_context(method=request.method, path=request.url.path)
    try:
        if request.url.path.startswith("/invoices"):
            with invoicing.domain_context():
                response = await call_next(request)
            return response
        # No domain match, pass through (health check, docs, etc.)
        return await call_next(request)
    finally:
        clear_context()


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"errors": exc.messages})


@app.exception_handler(ObjectNotFoundError)
async def not_found_handler(request: Request, exc: ObjectNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(invoice_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domains": {"invoicing": {"name": invoicing.name}}})
