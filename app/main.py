from fastapi import FastAPI
import logging

from app.api.health import router as health_router
from core.logging import setup_json_logging

# Setup logging
setup_json_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Snapflow Analytics Worker", version="1.0.0")

app.include_router(health_router)
