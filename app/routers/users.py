from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.client import ClientOut
from app.schemas.user import ClientStatusUpdate, LoginRequest, LoginResponse, UserCreate, UserOut
from app.services import users as users_service
from app.services.authz import require_admin
from app.services.tokens import Identity

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    token, user = users_service.login(
        db,
        request.app.state.token_service,
        email=payload.email,
        password=payload.password,
    )
    return {"token": token, "user": user}


@router.post("", response_model=UserOut, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_admin),
):
    return users_service.create_user(db, **payload.model_dump())


@router.patch("/{user_id}/status", response_model=ClientOut)
def set_client_status(
    user_id: int,
    payload: ClientStatusUpdate,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_admin),
):
    return users_service.set_client_active(db, user_id, payload.is_active)
