"""
Utility functions and types to assist in parsing API usage metadata
"""

from typing import NamedTuple
import re


class Usage(NamedTuple):
    used: int
    total: int


class PerAppUsage(NamedTuple):
    used: int
    total: int
    name: str


class ApiUsage(NamedTuple):
    api_usage: Usage | None = None
    per_app_api_usage: PerAppUsage | None = None


def parse_api_usage(sforce_limit_info: str) -> ApiUsage:
    """
    Parse API usage and limits out of the Sforce-Limit-Info header
    Arguments:
    * sforce_limit_info: The value of response header 'Sforce-Limit-Info'
        Example 1: 'api-usage=18/5000'
        Example 2: 'api-usage=25/5000;
            per-app-api-usage=17/250(appName=sample-connected-app)'
    """
    api_usage = re.search(
        r"(?<!-)\bapi-usage=(?P<used>\d+)/(?P<tot>\d+)", sforce_limit_info
    )
    per_app_api_usage = re.search(
        r"per-app-api-usage=(?P<u>\d+)/(?P<t>\d+)\(appName=(?P<n>[^)]+)\)",
        sforce_limit_info,
    )

    usage = None
    per_app = None
    if api_usage:
        usage = Usage(used=int(api_usage["used"]), total=int(api_usage["tot"]))
    if per_app_api_usage:
        per_app = PerAppUsage(
            used=int(per_app_api_usage["u"]),
            total=int(per_app_api_usage["t"]),
            name=per_app_api_usage["n"],
        )
    return ApiUsage(usage, per_app)
