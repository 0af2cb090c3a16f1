from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from db.init import get_db
from models.user import User, RegisterRequest, UserCreate, USER_ROLES
from models.login import LoginRequest
from utils.deps import get_current_user, role_required
from utils.errors import ValidationError, NotFoundError, AuthorizationError
from utils.security import hash_password, verify_password, create_access_token
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "created_at": user.created_at,
    }


def issue_token(user: User) -> str:
    return create_access_token({"sub": user.email, "role": user.role, "uid": user.id})


def _create_user(db: Session, name, email, password, role) -> User:
    if role not in USER_ROLES:
        raise ValidationError(f"Invalid role '{role}'")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(name=name, email=email, password_hash=hash_password(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created {role} account {email}")
    return user


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    user = _create_user(db, body.name, body.email, body.password, "user")
    return {
        "message": "User created successfully",
        "access_token": issue_token(user),
        "token_type": "bearer",
        "user": serialize_user(user),
    }


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email).first()
    if not user or not verify_password(body.password, user.password_hash):
        raise AuthorizationError("Invalid credentials", status_code=status.HTTP_401_UNAUTHORIZED)

    return {"access_token": issue_token(user), "token_type": "bearer", "role": user.role}


@router.get("/me")
def me(db: Session = Depends(get_db), payload=Depends(get_current_user)):
    user = db.query(User).filter(User.email == payload.get("sub")).first()
    if not user:
        raise NotFoundError("User not found")
    return serialize_user(user)


@router.get("/users", dependencies=[Depends(role_required("admin"))])
def get_all_users(db: Session = Depends(get_db)):
    return [serialize_user(u) for u in db.query(User).order_by(User.id.asc()).all()]


@router.post("/users", dependencies=[Depends(role_required("admin"))], status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreate, db: Session = Depends(get_db)):
    return serialize_user(_create_user(db, body.name, body.email, body.password, body.role))
