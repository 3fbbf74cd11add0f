__all__ = ("lazy_login",)

from .login_cli import cli_login
from .login_soap import lazy_soap_login
from .types import SalesforceLogin


def lazy_login(**kwargs) -> SalesforceLogin:
    """Pick a login flow from the keyword arguments provided"""
    if "sf_cli_alias" in kwargs:
        return cli_login(kwargs.pop("sf_cli_alias"), kwargs.pop("sf_cli_exec_path", None))

    elif all(key in kwargs for key in ["username", "password"]):
        return lazy_soap_login(**kwargs)
    else:
        raise ValueError(
            "Could not determine authentication method from provided parameters. "
            "Please provide appropriate parameters for CLI or SOAP authentication."
        )
