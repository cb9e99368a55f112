"""
API v1 Routes
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from app.api.v1 import (
    auth,
    scm_laboratories,
    scm_launches,
    scm_portal,
    scm_settings,
    scm_standard_phases,
)

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(auth.router)
api_v1_router.include_router(scm_portal.router)
api_v1_router.include_router(scm_launches.router)
api_v1_router.include_router(scm_laboratories.router)
api_v1_router.include_router(scm_standard_phases.router)
api_v1_router.include_router(scm_settings.router)

# Esportazione
__all__ = ["api_v1_router"]
