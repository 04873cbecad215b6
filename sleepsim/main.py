"""
Sleep-Simulator API entry point.
Run: uvicorn sleepsim.main:app --host 0.0.0.0 --port 8000
"""

import logging

from fastapi import FastAPI

from sleepsim.api.routes import router
from sleepsim.config import LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="Sleep-Simulator", version="1.0.0")
app.include_router(router)
