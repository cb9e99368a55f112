from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class SettingValue(CamelModel):
    """Corpo di PUT /scm/settings/{key}."""

    value: Optional[str] = Field(None, description="Valore dell'impostazione")


class SettingRead(CamelModel):
    key: str
    value: Optional[str] = None
