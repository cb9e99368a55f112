from __future__ import annotations
from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.mixins import TimestampMixin


class ScmSetting(Base, TimestampMixin):
    """Impostazione chiave/valore del modulo SCM."""

    __tablename__ = "scm_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"ScmSetting(key={self.key!r})"
