"""Authentication router for handling user authentication endpoints."""
import logging
import os
import secrets
from urllib.parse import urlencode

import requests
from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import User, UserRole
from ..schemas.user import UserResponse
from .models import ChangePassword, Token, UserRegister
from .service import AuthService, get_current_active_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Authentication"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency to get an instance of AuthService."""
    return AuthService(db)


def _client_info(request: Request) -> tuple:
    user_agent = request.headers.get("user-agent")
    ip_address = request.client.host if request.client else None
    return user_agent, ip_address


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserRegister,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new student or teacher account."""
    return service.register_user(user_data)


@router.post("/login", response_model=Token)
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service)
):
    """OAuth2 compatible token login, get an access token for future requests."""
    user_agent, ip_address = _client_info(request)

    user = service.authenticate_user(form_data.username, form_data.password)
    if not user:
        service.record_login_attempt(
            email=form_data.username,
            ip_address=ip_address,
            user_agent=user_agent,
            success=False
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    service.record_login_attempt(
        email=user.email,
        ip_address=ip_address,
        user_agent=user_agent,
        success=True
    )
    logger.info(f"User {user.email} logged in")
    return service.issue_tokens(user, user_agent=user_agent, ip_address=ip_address)


@router.post("/refresh", response_model=Token)
async def refresh_access_token(
    refresh_token: str = Body(embed=True),
    service: AuthService = Depends(get_auth_service)
):
    """Refresh an access token using a refresh token."""
    return service.refresh_tokens(refresh_token)


@router.post("/logout")
async def logout(
    refresh_token: str = Body(embed=True),
    service: AuthService = Depends(get_auth_service)
):
    """Revoke a refresh token."""
    service.revoke_refresh_token(refresh_token)
    return {"message": "Successfully logged out"}


@router.get("/user", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    """Get the current user's profile."""
    return current_user


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    password_data: ChangePassword,
    current_user: User = Depends(get_current_active_user),
    service: AuthService = Depends(get_auth_service)
):
    """Change the current user's password."""
    if not current_user.verify_password(password_data.current_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    current_user.set_password(password_data.new_password)
    service.db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Google OAuth (direct integration) ---

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
OAUTH_STATE_COOKIE = "oauth_state"


def _google_oauth_config():
    client_id = os.getenv("GOOGLE_CLIENT_ID")
    client_secret = os.getenv("GOOGLE_CLIENT_SECRET")
    redirect_uri = os.getenv("GOOGLE_REDIRECT_URI")
    if not client_id or not client_secret or not redirect_uri:
        raise HTTPException(status_code=500, detail="Google OAuth not configured")
    return client_id, client_secret, redirect_uri


def _split_name(name: str, email: str) -> tuple:
    parts = (name or "").split(None, 1)
    if not parts:
        return email.split("@")[0], ""
    return parts[0], parts[1] if len(parts) > 1 else ""


@router.get("/oauth/google/login")
async def google_login(request: Request):
    """Initiate Google OAuth authorization code flow."""
    client_id, _, redirect_uri = _google_oauth_config()
    state = secrets.token_urlsafe(24)
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "access_type": "offline",
        "include_granted_scopes": "true",
        "state": state,
        "prompt": "consent",
    }
    url = f"{GOOGLE_AUTH_URL}?{urlencode(params)}"
    response = RedirectResponse(url, status_code=307)
    response.set_cookie(OAUTH_STATE_COOKIE, state, httponly=True, max_age=600, samesite="lax")
    return response


@router.get("/oauth/google/callback")
async def google_callback(
    request: Request,
    code: str,
    state: str,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """Handle Google OAuth callback: exchange code, fetch userinfo, upsert user, issue tokens."""
    client_id, client_secret, redirect_uri = _google_oauth_config()
    state_cookie = request.cookies.get(OAUTH_STATE_COOKIE)
    if not state_cookie or state_cookie != state:
        raise HTTPException(status_code=400, detail="Invalid OAuth state")

    data = {
        "code": code,
        "client_id": client_id,
        "client_secret": client_secret,
        "redirect_uri": redirect_uri,
        "grant_type": "authorization_code",
    }
    token_resp = requests.post(GOOGLE_TOKEN_URL, data=data, timeout=10)
    if token_resp.status_code != 200:
        raise HTTPException(status_code=401, detail="Failed to exchange code for tokens")
    access_token = token_resp.json().get("access_token")
    if not access_token:
        raise HTTPException(status_code=401, detail="No access token returned by provider")

    userinfo_resp = requests.get(
        GOOGLE_USERINFO_URL,
        headers={"Authorization": f"Bearer {access_token}"},
        timeout=10,
    )
    if userinfo_resp.status_code != 200:
        raise HTTPException(status_code=401, detail="Failed to fetch user info")
    userinfo = userinfo_resp.json()
    email = userinfo.get("email")
    if not email:
        raise HTTPException(status_code=400, detail="Email not provided by provider")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        first_name, last_name = _split_name(userinfo.get("name") or userinfo.get("given_name"), email)
        user = User(
            email=email,
            first_name=userinfo.get("given_name") or first_name,
            last_name=userinfo.get("family_name") or last_name,
            role=UserRole.student,
            is_active=True,
        )
        # Google users never log in with a password
        user.set_password(secrets.token_urlsafe(12))
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created student account for Google user {email}")
    elif not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    user_agent, ip_address = _client_info(request)
    tokens = service.issue_tokens(user, user_agent=user_agent, ip_address=ip_address)

    frontend_redirect = os.getenv("FRONTEND_OAUTH_REDIRECT_URI")
    if frontend_redirect:
        fragment = urlencode({
            "access_token": tokens.access_token,
            "refresh_token": tokens.refresh_token,
            "token_type": "bearer",
        })
        return RedirectResponse(f"{frontend_redirect}#{fragment}")

    return {
        "access_token": tokens.access_token,
        "token_type": "bearer",
        "refresh_token": tokens.refresh_token,
        "email": user.email,
        "name": user.full_name,
    }
