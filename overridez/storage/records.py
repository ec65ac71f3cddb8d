"""Pydantic schemas for stored override records."""

from __future__ import annotations

import json
import re
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import MalformedRecord

GITHUB_URL_PATTERN = re.compile(r"^https://github\.com/([^/]+)/([^/]+)\.git$")

# cabal2nix emits `pname = "foo";` inside the mkDerivation call
_PNAME_PATTERN = re.compile(r'\bpname\s*=\s*"([^"]+)"\s*;')


class GithubSource(NamedTuple):
    """Provenance needed to fetch a repository snapshot from GitHub."""

    owner: str
    repo: str
    rev: str
    sha256: str


def parse_github_url(url: str) -> tuple[str, str]:
    """Split a GitHub clone URL into (owner, repo).

    Examples:
        "https://github.com/reflex-frp/reflex-dom.git" → ("reflex-frp", "reflex-dom")

    Raises:
        ValueError: If the URL is not of the form https://github.com/<owner>/<repo>.git
    """
    match = GITHUB_URL_PATTERN.match(url.strip())
    if not match:
        raise ValueError(
            f"Not a GitHub clone URL: {url!r}. "
            f"Expected format: 'https://github.com/<owner>/<repo>.git'"
        )
    return match.group(1), match.group(2)


def extract_expression_name(expression: str) -> str | None:
    """Return the package name declared in a build expression, if any."""
    match = _PNAME_PATTERN.search(expression)
    return match.group(1) if match else None


class GitDescriptor(BaseModel):
    """A source-repository descriptor, as printed by nix-prefetch-git.

    Fields other than url/rev/sha256 (date, fetchSubmodules, ...) are kept so
    that a saved record round-trips the prefetcher output unchanged.
    """

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    url: str = Field(min_length=1)
    rev: str = Field(min_length=1)
    sha256: str = Field(min_length=1)

    @property
    def owner_repo(self) -> tuple[str, str]:
        return parse_github_url(self.url)

    def to_source(self) -> GithubSource:
        owner, repo = self.owner_repo
        return GithubSource(owner=owner, repo=repo, rev=self.rev, sha256=self.sha256)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(), indent=2) + "\n"

    @classmethod
    def parse_record(cls, project_id: str, content: str) -> "GitDescriptor":
        """Parse stored JSON text, raising MalformedRecord on any defect."""
        try:
            descriptor = cls.model_validate_json(content)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
                for err in exc.errors()
            )
            raise MalformedRecord(project_id, problems) from exc
        try:
            parse_github_url(descriptor.url)
        except ValueError as exc:
            raise MalformedRecord(project_id, str(exc)) from exc
        return descriptor
