"""
Glaucoma Risk API Server
Patient questionnaire scoring and advice administration.
"""

import os
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from glaucoma_risk import __version__
from glaucoma_risk.advice.admin import router as advice_admin_router
from glaucoma_risk.catalog.admin import router as catalog_admin_router
from glaucoma_risk.health.router import router as health_router
from glaucoma_risk.questionnaire.router import router as questionnaire_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ============================================
# App Configuration
# ============================================
app = FastAPI(
    title="Glaucoma Risk API",
    description="Glaucoma risk questionnaire scoring",
    version=__version__
)

# ============================================
# CORS Configuration
# ============================================
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# ============================================
# Routers
# ============================================
app.include_router(questionnaire_router)
app.include_router(advice_admin_router)
app.include_router(catalog_admin_router)
app.include_router(health_router)


@app.get("/")
def root():
    return {"service": "glaucoma-risk-api", "version": __version__, "status": "running"}


logger.info(f"Glaucoma Risk API {__version__} ready")
