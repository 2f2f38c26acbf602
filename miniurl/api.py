from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from . import auth, schemas, services
from .database import get_db
from .rate_limiter import rate_limit

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])
urls_router = APIRouter(prefix="/api/urls", tags=["urls"])
redirect_router = APIRouter(tags=["redirect"])


def public_base_url(request: Request) -> str:
    return request.app.state.settings.base_url or str(request.base_url).rstrip("/")


# ---------- Auth ----------

@auth_router.post("/register", response_model=schemas.RegisterOut, status_code=status.HTTP_201_CREATED)
def register(user_in: schemas.RegisterIn, db: Session = Depends(get_db)):
    user = services.register_user(db, user_in.email, user_in.password)
    return schemas.RegisterOut(message="User registered successfully", user_id=user.id)


@auth_router.post("/login", response_model=schemas.LoginOut)
def login(
    credentials: schemas.LoginIn,
    db: Session = Depends(get_db),
    tokens: auth.TokenIssuer = Depends(auth.get_token_issuer),
):
    user = services.authenticate_user(db, credentials.email, credentials.password)
    return schemas.LoginOut(message="Logged in successfully.", token=tokens.issue(user.id))


# ---------- URLs ----------

@urls_router.post(
    "/shorten",
    response_model=schemas.ShortenOut,
    dependencies=[Depends(rate_limit("shorten"))],
)
def shorten(
    link_in: schemas.LinkCreate,
    request: Request,
    db: Session = Depends(get_db),
    user_id: int = Depends(auth.get_current_user_id),
):
    link = services.create_link(db, link_in, user_id)
    return schemas.ShortenOut(
        message="URL shortened successfully",
        short_url=f"{public_base_url(request)}/{link.short_code}",
        id=link.id,
    )


@urls_router.get("/my-urls", response_model=list[schemas.LinkOut])
def my_urls(db: Session = Depends(get_db), user_id: int = Depends(auth.get_current_user_id)):
    return services.list_links(db, user_id)


@urls_router.get(
    "/url-details/{short_code}",
    response_model=schemas.LinkDetailsOut,
    response_model_exclude_unset=True,
)
def url_details(short_code: str, db: Session = Depends(get_db)):
    return services.get_link_details(db, short_code)


@urls_router.post(
    "/verify-password",
    response_model=schemas.VerifyPasswordOut,
    dependencies=[Depends(rate_limit("verify-password"))],
)
def verify_password(payload: schemas.VerifyPasswordIn, db: Session = Depends(get_db)):
    original_url = services.verify_link_password(db, payload.short_code, payload.password)
    return schemas.VerifyPasswordOut(original_url=original_url)


@urls_router.put("/{link_id}", response_model=schemas.LinkUpdateOut)
def update_url(
    link_id: int,
    link_in: schemas.LinkUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(auth.get_current_user_id),
):
    link = services.update_link(db, link_id, link_in, user_id)
    return schemas.LinkUpdateOut(
        message="URL updated successfully",
        url=schemas.LinkOut.model_validate(link),
    )


@urls_router.delete("/{link_id}", response_model=schemas.MessageOut)
def delete_url(link_id: int, db: Session = Depends(get_db), user_id: int = Depends(auth.get_current_user_id)):
    services.delete_link(db, link_id, user_id)
    return schemas.MessageOut(message="URL deleted successfully")


# ---------- Redirect ----------

@redirect_router.get("/{short_code}", include_in_schema=False)
def redirect(short_code: str, request: Request, db: Session = Depends(get_db)):
    location = services.resolve_redirect(db, short_code, request.app.state.settings.frontend_base_url)
    return RedirectResponse(url=location, status_code=status.HTTP_302_FOUND)
