from .httpx import SalesforceAuth
from .types import SalesforceLogin, SalesforceToken, TokenRefreshCallback
from .login_lazy import lazy_login
from .login_cli import cli_login
from .login_soap import security_token_login


__all__ = [
    "SalesforceAuth",
    "SalesforceLogin",
    "SalesforceToken",
    "TokenRefreshCallback",
    "lazy_login",
    "cli_login",
    "security_token_login",
]
