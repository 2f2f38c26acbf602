"""Account, link-management and link-resolution policy.

Handlers call into this module with an open session; every failure is
raised as a ``ServiceError`` variant and rendered by the app.
"""
import logging
from urllib.parse import urlparse

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import auth, crud, models, schemas
from .errors import (
    DetailsNotFoundOrInactive,
    EmailTaken,
    IncorrectPassword,
    InternalError,
    InvalidCredentials,
    InvalidRedirectTarget,
    LinkNotFound,
    NotFoundOrInactive,
    NotFoundOrUnprotected,
    NotOwner,
    ShortCodeTaken,
)

logger = logging.getLogger("miniurl.services")

REDIRECT_SCHEMES = {"http", "https"}


# ---------- Accounts ----------

def register_user(db: Session, email: str, password: str) -> models.User:
    if crud.get_user_by_email(db, email):
        raise EmailTaken()
    try:
        user = crud.create_user(db, email, auth.hash_password(password))
    except IntegrityError as exc:
        # Lost a race with a concurrent registration
        raise EmailTaken() from exc
    logger.info("Registered user id=%s", user.id)
    return user


def authenticate_user(db: Session, email: str, password: str) -> models.User:
    user = crud.get_user_by_email(db, email)
    if not user or not auth.verify_password(password, user.password_hash):
        logger.info("Failed login for email=%s", email)
        raise InvalidCredentials()
    return user


# ---------- Link management ----------

def create_link(db: Session, link_in: schemas.LinkCreate, owner_id: int) -> models.Link:
    custom_code = link_in.custom_short_code
    if custom_code:
        if crud.short_code_exists(db, custom_code):
            raise ShortCodeTaken()
        short_code = custom_code
    else:
        short_code = crud.generate_code()

    password_hash = auth.hash_password(link_in.password) if link_in.password else None

    # Re-check right before the insert; the unique constraint still has the final say
    if custom_code and crud.short_code_exists(db, custom_code, user_id=owner_id):
        raise ShortCodeTaken()

    try:
        link = crud.create_link(
            db,
            original_url=link_in.original_url,
            short_code=short_code,
            custom_short_code=custom_code or None,
            password_hash=password_hash,
            description=link_in.description,
            is_active=link_in.is_active if link_in.is_active is not None else True,
            user_id=owner_id,
        )
    except IntegrityError as exc:
        if custom_code:
            raise ShortCodeTaken() from exc
        # Generated codes are not retried on collision
        logger.error("Generated short code collided: code=%s owner=%s", short_code, owner_id)
        raise InternalError() from exc

    logger.info("Created link id=%s code=%s owner=%s protected=%s",
                link.id, link.short_code, owner_id, password_hash is not None)
    return link


def list_links(db: Session, owner_id: int) -> list[models.Link]:
    return crud.get_links_by_owner(db, owner_id)


def _get_owned_link(db: Session, link_id: int, owner_id: int) -> models.Link:
    link = crud.get_link(db, link_id)
    if not link:
        raise LinkNotFound()
    if link.user_id != owner_id:
        logger.info("Ownership check failed: link=%s caller=%s", link_id, owner_id)
        raise NotOwner()
    return link


def update_link(db: Session, link_id: int, link_in: schemas.LinkUpdate, owner_id: int) -> models.Link:
    link = _get_owned_link(db, link_id, owner_id)
    present = link_in.model_fields_set

    changes = {}
    if link_in.original_url:
        changes["original_url"] = link_in.original_url
    if "description" in present:
        changes["description"] = link_in.description
    if "is_active" in present and link_in.is_active is not None:
        changes["is_active"] = link_in.is_active
    if "password" in present:
        changes["password_hash"] = auth.hash_password(link_in.password) if link_in.password else None

    link = crud.update_link(db, link, changes)
    logger.info("Updated link id=%s fields=%s owner=%s", link.id, sorted(changes), owner_id)
    return link


def delete_link(db: Session, link_id: int, owner_id: int) -> None:
    link = _get_owned_link(db, link_id, owner_id)
    crud.delete_link(db, link)
    logger.info("Deleted link id=%s owner=%s", link_id, owner_id)


# ---------- Resolution ----------

def _get_active_link(
    db: Session, code: str, not_found: type[NotFoundOrInactive] = NotFoundOrInactive
) -> models.Link:
    link = crud.get_link_by_code(db, code)
    if not link or not link.is_active:
        raise not_found()
    return link


def is_safe_redirect_target(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme.lower() in REDIRECT_SCHEMES and bool(parsed.netloc)


def resolve_redirect(db: Session, code: str, frontend_base_url: str) -> str:
    """Return the landing-page location for ``code``.

    Protected links go to the password page; everything else goes to the
    public landing page. The stored URL is never the redirect location.
    """
    link = _get_active_link(db, code)
    if link.requires_password:
        return f"{frontend_base_url}/protected-link/{code}"
    if not is_safe_redirect_target(link.original_url):
        logger.warning("Refusing redirect for link id=%s: unsupported target", link.id)
        raise InvalidRedirectTarget()
    return f"{frontend_base_url}/{code}"


def get_link_details(db: Session, code: str) -> schemas.LinkDetailsOut:
    link = _get_active_link(db, code, not_found=DetailsNotFoundOrInactive)
    if link.requires_password:
        return schemas.LinkDetailsOut(requires_password=True, description=link.description)
    return schemas.LinkDetailsOut(
        requires_password=False,
        description=link.description,
        original_url=link.original_url,
    )


def verify_link_password(db: Session, code: str, password: str) -> str:
    link = crud.get_link_by_code(db, code)
    if not link or not link.is_active or not link.requires_password:
        raise NotFoundOrUnprotected()
    if not auth.verify_password(password, link.password_hash):
        raise IncorrectPassword()
    return link.original_url
