from typing import Optional

from sqlalchemy.orm import Session

from app.users.models import User, Role


def create_user(
    db: Session,
    email: str,
    hashed_password: str,
    name: Optional[str] = None,
    role: str = "user",
    **profile
) -> User:
    new_user = User(
        email=email,
        name=name,
        hashed_password=hashed_password,
        role=Role(role or "user"),
        **profile
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    return new_user


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def get_all_users(db: Session):
    return db.query(User).order_by(User.id).all()
