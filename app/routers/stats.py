from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.stats import AdminStatsOut, ClientStatsOut
from app.services import stats as stats_service
from app.services.authz import require_admin, require_client
from app.services.tokens import Identity

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=AdminStatsOut)
def admin_overview(db: Session = Depends(get_db), _: Identity = Depends(require_admin)):
    return stats_service.admin_stats(db)


@router.get("/client/stats", response_model=ClientStatsOut)
def client_overview(db: Session = Depends(get_db), identity: Identity = Depends(require_client)):
    return stats_service.client_stats(db, identity.client_id)
