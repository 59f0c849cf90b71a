"""Authentication package for the application."""
from .models import RefreshToken, LoginAttempt, Token, TokenData, UserRegister, ChangePassword
from .service import AuthService, get_current_user, get_current_active_user, require_roles

__all__ = [
    'RefreshToken',
    'LoginAttempt',
    'Token',
    'TokenData',
    'UserRegister',
    'ChangePassword',
    'AuthService',
    'get_current_user',
    'get_current_active_user',
    'require_roles',
]
