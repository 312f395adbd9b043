from typing import Dict, List

from pydantic import BaseModel

from app.schemas.publication import PublicationSummary


class AdminStatsOut(BaseModel):
    total_users: int
    total_clients: int
    active_clients: int
    total_publications: int
    publications_by_status: Dict[str, int]


class ClientStatsOut(BaseModel):
    total_publications: int
    publications_by_status: Dict[str, int]
    top_publications: List[PublicationSummary]
