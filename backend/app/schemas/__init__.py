"""
Schemas Pydantic per il progetto CoreGRE SCM

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle richieste e risposte API.
"""

from app.schemas.user import UserCreate, UserLogin, UserResponse
from app.schemas.token import (
    LaboratoryLogin,
    LaboratoryLoginResponse,
    TokenPayload,
    TokenRefresh,
    TokenResponse,
)
from app.schemas.laboratory import (
    LaboratoryCreate,
    LaboratoryListItem,
    LaboratoryRead,
    LaboratoryUpdate,
)
from app.schemas.standard_phase import (
    StandardPhaseCreate,
    StandardPhaseRead,
    StandardPhaseUpdate,
)
from app.schemas.launch import (
    ArticlePhaseRead,
    ArticlePhaseUpdate,
    LaboratoryDetail,
    LaunchArticleCreate,
    LaunchArticleRead,
    LaunchArticleUpdate,
    LaunchCreate,
    LaunchPhaseInput,
    LaunchRead,
    LaunchStatus,
    LaunchUpdate,
    PhaseStatus,
    ProgressTrackingCreate,
    ProgressTrackingRead,
)
from app.schemas.setting import SettingRead, SettingValue
from app.schemas.statistics import LaboratoryDashboard, ScmStatistics

__all__ = [
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "LaboratoryLogin",
    "LaboratoryLoginResponse",
    "TokenPayload",
    "TokenRefresh",
    "TokenResponse",
    "LaboratoryCreate",
    "LaboratoryListItem",
    "LaboratoryRead",
    "LaboratoryUpdate",
    "LaboratoryDetail",
    "StandardPhaseCreate",
    "StandardPhaseRead",
    "StandardPhaseUpdate",
    "ArticlePhaseRead",
    "ArticlePhaseUpdate",
    "LaunchArticleCreate",
    "LaunchArticleRead",
    "LaunchArticleUpdate",
    "LaunchCreate",
    "LaunchPhaseInput",
    "LaunchRead",
    "LaunchStatus",
    "LaunchUpdate",
    "PhaseStatus",
    "ProgressTrackingCreate",
    "ProgressTrackingRead",
    "SettingRead",
    "SettingValue",
    "LaboratoryDashboard",
    "ScmStatistics",
]
