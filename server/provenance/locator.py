"""Parse repository URLs into owner/name locators."""

import re
from dataclasses import dataclass

from errors import InvalidLocatorError

SEGMENT = r"[a-zA-Z0-9_.-]+"


@dataclass(frozen=True)
class RepositoryLocator:
    owner: str
    name: str
    host: str = "github.com"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def url(self) -> str:
        return f"https://{self.host}/{self.owner}/{self.name}"


def parse_locator(url: str, host: str = "github.com") -> RepositoryLocator:
    """
    Validate a repository URL of the form https://<host>/<owner>/<name>[/].

    Extra path segments, query strings and fragments are rejected. A trailing
    .git on the name is dropped. Raises InvalidLocatorError.
    """
    if not isinstance(url, str):
        raise InvalidLocatorError("Invalid GitHub URL format")

    pattern = rf"https://{re.escape(host)}/({SEGMENT})/({SEGMENT})/?"
    match = re.fullmatch(pattern, url.strip())
    if not match:
        raise InvalidLocatorError(
            f"Invalid GitHub URL. Must be https://{host}/username/repo-name"
        )

    owner, name = match.group(1), match.group(2)
    if name.endswith(".git"):
        name = name[:-4]
    if not name or owner in (".", "..") or name in (".", ".."):
        raise InvalidLocatorError(
            f"Invalid GitHub URL. Must be https://{host}/username/repo-name"
        )

    return RepositoryLocator(owner=owner, name=name, host=host)
