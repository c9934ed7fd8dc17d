from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
import logging
from fazztrack.config import get_settings
from fazztrack.core.error_handlers import setup_error_handlers
from fazztrack.routers import orders, order_items
from fazztrack.routers import payments
from fazztrack.routers import designs
from fazztrack.routers import jobs
from fazztrack.routers import files
from fazztrack.routers import tracking
from fazztrack.utils.storage import MEDIA_ROOT

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

app = FastAPI(title="FazzTrack")


@app.on_event("startup")
def on_startup():
    # Ensure all DB tables exist after all models are imported
    from fazztrack.models.user import Base, engine  # Base/engine single source
    import fazztrack.models.order  # register Client/Product/Order/OrderItem models
    import fazztrack.models.payment  # register Payment model
    import fazztrack.models.design  # register FileAttachment/OrderDesign models
    import fazztrack.models.job  # register Job model
    Base.metadata.create_all(bind=engine)


# Ensure media directory exists before mounting
MEDIA_ROOT.mkdir(parents=True, exist_ok=True)

# Serve uploaded design files and receipts
app.mount("/media", StaticFiles(directory=str(MEDIA_ROOT)), name="media")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_error_handlers(app)

# Include routers
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(order_items.router, prefix="/api", tags=["order-items"])
app.include_router(payments.router, prefix="/api/payments", tags=["payments"])
app.include_router(designs.router, prefix="/api/designs", tags=["designs"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(files.router, prefix="/api/files", tags=["files"])
app.include_router(tracking.router, prefix="/api/tracking", tags=["tracking"])


@app.get("/api/health", tags=["health"])
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn, os
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("fazztrack.main:app", host="0.0.0.0", port=port, reload=False)
