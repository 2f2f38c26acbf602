import secrets
import string
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from . import models

ALPHABET = string.ascii_lowercase + string.digits
CODE_LENGTH = 7


def generate_code(length: int = CODE_LENGTH) -> str:
    # No uniqueness check here; the links.short_code constraint is the final authority
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


# ---------- Users ----------

def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter_by(email=email).first()


def create_user(db: Session, email: str, password_hash: str) -> models.User:
    user = models.User(email=email, password_hash=password_hash)
    db.add(user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user


# ---------- Links ----------

def get_link(db: Session, link_id: int) -> models.Link | None:
    return db.get(models.Link, link_id)


def get_link_by_code(db: Session, code: str) -> models.Link | None:
    return (
        db.query(models.Link)
        .filter(or_(models.Link.short_code == code, models.Link.custom_short_code == code))
        .first()
    )


def short_code_exists(db: Session, code: str, user_id: int | None = None) -> bool:
    query = db.query(models.Link.id).filter(models.Link.short_code == code)
    if user_id is not None:
        query = query.filter(models.Link.user_id == user_id)
    return query.first() is not None


def create_link(
    db: Session,
    *,
    original_url: str,
    short_code: str,
    custom_short_code: str | None,
    password_hash: str | None,
    description: str | None,
    is_active: bool,
    user_id: int | None,
) -> models.Link:
    link = models.Link(
        original_url=original_url,
        short_code=short_code,
        custom_short_code=custom_short_code,
        password_hash=password_hash,
        description=description,
        is_active=is_active,
        user_id=user_id,
    )
    db.add(link)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(link)
    return link


def update_link(db: Session, link: models.Link, changes: dict[str, Any]) -> models.Link:
    for column, value in changes.items():
        setattr(link, column, value)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(link)
    return link


def delete_link(db: Session, link: models.Link) -> None:
    db.delete(link)
    db.commit()


def get_links_by_owner(db: Session, user_id: int) -> list[models.Link]:
    return (
        db.query(models.Link)
        .filter(models.Link.user_id == user_id)
        .order_by(models.Link.created_at.desc(), models.Link.id.desc())
        .all()
    )
