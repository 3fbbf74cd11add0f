import json
import os
from pathlib import Path
from shutil import which
from subprocess import run as subprocess_run

import httpx

from ..exceptions import SalesforceAuthenticationFailed
from ..logger import getLogger
from .types import SalesforceLogin, SalesforceToken, SalesforceTokenGenerator

LOGGER = getLogger("auth.cli")


def cli_login(
    alias_or_username: str | None = None, sf_exec_path: str | Path | None = None
) -> SalesforceLogin:
    """Log in with the credentials cached by the sf (or legacy sfdx) CLI"""
    if not sf_exec_path:
        sf_exec_path = which("sf") or which("sfdx")
        if not sf_exec_path:
            raise ValueError("Could not find sf executable.")
    elif isinstance(sf_exec_path, Path):
        sf_exec_path = str(sf_exec_path.resolve())

    def _cli_login() -> SalesforceTokenGenerator:
        """Fetches the authentication credentials from sf or sfdx command line tools."""
        LOGGER.info("Logging in via SF CLI at %s", sf_exec_path)
        yield None  # yield to make this a generator
        command: list[str] = [str(sf_exec_path), "org", "display", "--json"]
        if alias_or_username:
            command.extend(["-o", alias_or_username])

        # color codes in the CLI output break the json parse
        cmd_env = {**os.environ}
        for var in ("CLICOLOR", "FORCE_COLOR", "CLICOLOR_FORCE"):
            if var in cmd_env:
                cmd_env[var] = "0"

        result = subprocess_run(command, check=False, capture_output=True, env=cmd_env)

        output = json.loads(result.stdout)
        if output["status"] != 0:
            raise SalesforceAuthenticationFailed(
                output.get("name"),
                "Failed to get credentials for org "
                + (alias_or_username or "[default]")
                + ":\n"
                + output["message"],
            )
        token_result = output["result"]
        if token_result.get("connectedStatus", "Connected") != "Connected":
            raise SalesforceAuthenticationFailed(
                token_result["connectedStatus"],
                "Check SF CLI. Unable to connect to "
                + token_result["instanceUrl"]
                + " as "
                + token_result["username"],
            )
        return SalesforceToken(
            httpx.URL(token_result["instanceUrl"]), token_result["accessToken"]
        )

    return _cli_login
