"""
Modelli Database SQLAlchemy
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Import centralizzato di tutti i modelli per create_all e usage generico.

Modelli:
- Laboratory: Laboratori esterni
- Launch: Lanci di produzione
- LaunchArticle: Articoli di un lancio
- StandardPhase: Catalogo fasi standard
- ArticlePhase: Fasi di lavorazione per articolo
- ProgressTracking: Avanzamento quantità per fase
- ScmSetting: Impostazioni chiave/valore
- User: Utenti del back-office
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from app.models.laboratory import Laboratory
from app.models.standard_phase import StandardPhase
from app.models.launch import ArticlePhase, Launch, LaunchArticle, ProgressTracking
from app.models.setting import ScmSetting
from app.models.user import User

__all__ = [
    "Base",
    "Laboratory",
    "StandardPhase",
    "Launch",
    "LaunchArticle",
    "ArticlePhase",
    "ProgressTracking",
    "ScmSetting",
    "User",
]
