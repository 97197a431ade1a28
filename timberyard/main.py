from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .database import engine, Base
from .errors import PricingError
from .routers import cart, catalog, delivery, products

logger = logging.getLogger("timberyard")

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Timberyard Storefront API",
    description=f"Pricing, cart and delivery engine for {settings.COMPANY_NAME}",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PricingError)
async def pricing_error_handler(request: Request, exc: PricingError) -> JSONResponse:
    """Validation failures in pricing or the cart: the caller must re-prompt."""
    logger.warning("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "kind": exc.kind},
    )


# API routes
app.include_router(catalog.router, prefix="/api")
app.include_router(products.router, prefix="/api")
app.include_router(cart.router, prefix="/api")
app.include_router(delivery.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "timberyard"}


@app.on_event("startup")
def auto_seed():
    """Seed the option catalog and delivery settings on first run."""
    from .database import SessionLocal
    db = SessionLocal()
    try:
        groups = catalog.seed_catalog(db)
        settings_rows = delivery.seed_delivery_settings(db)
        if groups or settings_rows:
            logger.info("Seeded %d option categories and %d delivery settings", groups, settings_rows)
    finally:
        db.close()
