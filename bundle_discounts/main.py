from fastapi import FastAPI

from bundle_discounts.config import settings
from bundle_discounts.evaluator import router as evaluator_router
from bundle_discounts.monitoring import configure_logging

configure_logging(level=settings.log_level, json_format=settings.log_json)

app = FastAPI(title="Bundle Discounts")

app.include_router(evaluator_router, tags=["discounts"])


@app.get("/")
async def root():
    return {"message": "Bundle Discounts API is running."}


@app.get("/health")
async def health():
    return {"status": "ok", "service": "bundle-discounts", "environment": settings.environment}
