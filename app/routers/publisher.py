from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.authz import require_admin
from app.services.publisher_worker import fetch_due
from app.services.tokens import Identity

router = APIRouter(prefix="/publisher", tags=["publisher"])


@router.get("/due")
def due(db: Session = Depends(get_db), _: Identity = Depends(require_admin)):
    ids = fetch_due(db)
    return {"due": len(ids), "publication_ids": ids}


@router.post("/run")
async def run_now(request: Request, _: Identity = Depends(require_admin)):
    res = await request.app.state.scheduler.run_once()
    if res is None:
        return {"ok": False, "due": 0, "published": 0}
    return {"ok": True, **res}
