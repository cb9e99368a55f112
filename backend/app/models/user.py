"""
Modello SQLAlchemy per l'entità User
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Utenti del back-office che accedono agli endpoint di amministrazione.
"""

from __future__ import annotations
from enum import Enum
import uuid

from sqlalchemy import JSON, Boolean, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.mixins import TimestampMixin


class UserRole(str, Enum):
    """Ruoli utente nel sistema."""
    ADMIN = "admin"
    MANAGER = "manager"
    OPERATOR = "operator"


class User(Base, TimestampMixin):
    """
    Modello per gli utenti del sistema.

    Attributes:
        id: UUID primary key, generato automaticamente
        email: Email univoca dell'utente
        hashed_password: Password hashata
        full_name: Nome completo dell'utente
        role: Ruolo dell'utente (admin, manager, operator)
        permissions: Mappa permesso -> abilitato (es. {"scm_admin": true})
        is_active: Indica se l'utente è attivo
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="UUID primary key",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        doc="Email univoca dell'utente",
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Password hashata",
    )

    full_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Nome completo dell'utente",
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.OPERATOR.value,
        doc="Ruolo dell'utente",
    )

    permissions: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="Permessi per modulo (nome -> abilitato)",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        doc="Indica se l'utente è attivo",
    )

    __table_args__ = (
        Index("ix_users_email", "email"),
        Index("ix_users_role", "role"),
    )

    def has_permission(self, permission: str) -> bool:
        """Gli amministratori possiedono implicitamente ogni permesso."""
        if self.role == UserRole.ADMIN.value:
            return True
        return bool((self.permissions or {}).get(permission))

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
