import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.schemas.user import UserCreate, UserLogin, UserOut
from app.models.user import User
from app.utils.auth import hash_password, verify_password, create_token
from app.database import get_db
from app.errors import Unauthenticated, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/signup", status_code=201)
def signup(user: UserCreate, db: Session = Depends(get_db)):
    exists = db.query(User).filter(User.username == user.username).first()
    if exists:
        raise ValidationError("username", "already exists")

    try:
        hashed = hash_password(user.password)
    except ValueError as e:
        raise ValidationError("password", str(e))

    new_user = User(username=user.username, password=hashed)
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent signup for the same name
        db.rollback()
        raise ValidationError("username", "already exists")
    db.refresh(new_user)
    logger.info("Signed up user %s", new_user.id)
    return {
        "message": "User created successfully",
        "token": create_token(new_user.id),
        "user": UserOut.model_validate(new_user),
    }

@router.post("/login")
def login(user: UserLogin, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.username == user.username.strip()).first()
    if not db_user or not verify_password(user.password, db_user.password):
        logger.warning("Failed login for username %r", user.username)
        raise Unauthenticated("Invalid credentials")

    return {"token": create_token(db_user.id)}
