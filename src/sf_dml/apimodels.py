from typing import Any


class ApiVersion:
    """
    An API version available in the org, as listed by GET /services/data
    https://developer.salesforce.com/docs/atlas.en-us.api_rest.meta/api_rest/resources_versions.htm
    """

    version: float
    label: str
    url: str

    def __init__(self, version: float | str, label: str = "", url: str = ""):
        self.version = float(version)
        self.label = label
        self.url = url or f"/services/data/v{self.version:.01f}"

    @classmethod
    def lazy_build(cls, value: "ApiVersion | int | float | str") -> "ApiVersion":
        if isinstance(value, ApiVersion):
            return value
        if isinstance(value, str):
            value = value.lower().removeprefix("v")
        return cls(float(value))

    def __eq__(self, other):
        if isinstance(other, ApiVersion):
            return self.version == other.version
        if isinstance(other, (int, float)):
            return self.version == float(other)
        return NotImplemented

    def __hash__(self):
        return hash(self.version)

    def __repr__(self):
        return f"ApiVersion(version={self.version}, label={self.label!r}, url={self.url!r})"


class UserInfo:
    """Subset of the OpenID Connect userinfo response used for logging"""

    def __init__(
        self,
        name: str = "",
        preferred_username: str = "",
        user_id: str = "",
        organization_id: str = "",
        **additional_properties: Any,
    ):
        self.name = name
        self.preferred_username = preferred_username
        self.user_id = user_id
        self.organization_id = organization_id
        self._raw_data = additional_properties
