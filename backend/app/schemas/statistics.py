"""
Schemas Pydantic per statistiche e dashboard laboratori
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)
"""

import datetime
from typing import List

from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.launch import LaunchStatus


class StatusBucket(CamelModel):
    count: int = 0
    pairs: int = 0


class StatusBreakdown(CamelModel):
    in_preparation: StatusBucket = Field(default_factory=StatusBucket)
    in_progress: StatusBucket = Field(default_factory=StatusBucket)
    completed: StatusBucket = Field(default_factory=StatusBucket)
    blocked: StatusBucket = Field(default_factory=StatusBucket)


class ScmStatistics(CamelModel):
    """Conteggio lanci e paia, totale e per stato."""

    total_launches: int = 0
    total_pairs: int = 0
    by_status: StatusBreakdown = Field(default_factory=StatusBreakdown)


class DashboardLaunch(CamelModel):
    id: int
    code: str
    description: str
    status: LaunchStatus
    created_at: datetime.date
    total_articles: int
    total_pairs: int


class DashboardGroups(CamelModel):
    preparazione: List[DashboardLaunch] = Field(default_factory=list)
    lavorazione: List[DashboardLaunch] = Field(default_factory=list)
    completi: List[DashboardLaunch] = Field(default_factory=list)


class DashboardStatistics(CamelModel):
    total_launches: int = 0
    total_pairs: int = 0
    in_preparation: int = 0
    in_progress: int = 0
    completed: int = 0


class LaboratoryDashboard(CamelModel):
    """Vista del portale laboratori: lanci raggruppati per stato."""

    launches_by_status: DashboardGroups = Field(default_factory=DashboardGroups)
    statistics: DashboardStatistics = Field(default_factory=DashboardStatistics)
