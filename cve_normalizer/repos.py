"""
Resolve reference URLs to canonical repositories and commits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Pattern, Sequence, Tuple
from urllib.parse import SplitResult, urlsplit

from .denylist import INVALID_REPO_REGEX, INVALID_REPOS
from .errors import Denylisted, MalformedURL, NormalizerError, UnsupportedURL
from .interfaces import URLBuilder, URLPredicate
from .models import GitCommit


logger = logging.getLogger(__name__)

SUPPORTED_HOSTS = ("github.com", "gitlab.org", "bitbucket.org")

FREEDESKTOP_CGIT_HOST = "cgit.freedesktop.org"
FREEDESKTOP_GITLAB = "https://gitlab.freedesktop.org"

GITHUB_GITLAB_OBJECT_MARKERS = (
    "commit",
    "blob",
    "releases/tag",
    "releases",
    "tags",
    "security/advisories",
    "issues",
)

BITBUCKET_MARKERS = (
    "changeset",
    "downloads",
    "wiki",
    "issues",
    "security",
    "pull-requests",
    "commits",
)

GITWEB_PATH = "/cgi-bin/gitweb.cgi"


@dataclass(frozen=True)
class RepoRule:
    """A host-specific repository rule: when ``matches`` holds, ``build`` applies."""

    name: str
    matches: URLPredicate
    build: URLBuilder


def parse_url(url: str) -> SplitResult:
    """Split a URL, raising MalformedURL when it has no usable scheme or host."""
    try:
        parsed = urlsplit(url)
        hostname = parsed.hostname
    except ValueError as e:
        raise MalformedURL(f"{url!r} could not be parsed: {e}") from e
    if not parsed.scheme or not hostname:
        raise MalformedURL(f"{url!r} is missing a scheme or host")
    return parsed


def _host(parsed: SplitResult) -> str:
    """Host as written in the URL: original case, IPv6 brackets kept, no userinfo or port."""
    host = parsed.netloc.rpartition("@")[2]
    if host.startswith("["):
        return host[:host.index("]") + 1]
    return host.partition(":")[0]


def _origin(parsed: SplitResult) -> str:
    return f"{parsed.scheme}://{_host(parsed)}"


def _first_three_segments(parsed: SplitResult) -> str:
    return _origin(parsed) + "/".join(parsed.path.split("/")[0:3])


def _query_param(query: str, name: str) -> Optional[str]:
    """Return the value of a ``;``-delimited gitweb query parameter."""
    prefix = name + "="
    for param in query.split(";"):
        if param.startswith(prefix):
            return param[len(prefix):]
    return None


def _is_github_or_gitlab(host: str) -> bool:
    return host == "github.com" or host.startswith("gitlab.")


# cgit, e.g.
# https://git.dpkg.org/cgit/dpkg/dpkg.git/commit/?id=faa4c92debe45412bfcf8a44f26e827800bb24be
def _is_cgit_commit(parsed: SplitResult) -> bool:
    return (
        parsed.path.startswith("/cgit")
        and parsed.path.endswith("commit/")
        and parsed.query.startswith("id=")
    )


def _cgit_repo(parsed: SplitResult) -> str:
    return _origin(parsed) + parsed.path.removesuffix("/commit/")


# GitWeb, e.g.
# https://git.gnupg.org/cgi-bin/gitweb.cgi?p=libksba.git;a=commit;h=f61a5ea4e0f6a80fd4b28ef0174bee77793cf070
def _is_gitweb_project(parsed: SplitResult) -> bool:
    return parsed.path.startswith(GITWEB_PATH) and bool(_query_param(parsed.query, "p"))


def _gitweb_repo(parsed: SplitResult) -> str:
    return f"{_origin(parsed)}/{_query_param(parsed.query, 'p')}"


# cgit.freedesktop.org mirrors gitlab.freedesktop.org, e.g.
# https://cgit.freedesktop.org/xorg/lib/libXRes/commit/?id=c05c6d918b0e2011d4bfa370c321482e34630b17
# http://cgit.freedesktop.org/spice/spice/refs/tags
def _is_freedesktop_commit(parsed: SplitResult) -> bool:
    return (
        parsed.hostname == FREEDESKTOP_CGIT_HOST
        and parsed.path.endswith("commit/")
        and parsed.query.startswith("id=")
    )


def _is_freedesktop_tags(parsed: SplitResult) -> bool:
    return parsed.hostname == FREEDESKTOP_CGIT_HOST and parsed.path.endswith("refs/tags")


def _is_freedesktop_repo(parsed: SplitResult) -> bool:
    return parsed.hostname == FREEDESKTOP_CGIT_HOST and len(parsed.path.split("/")) == 4


def _freedesktop_repo(parsed: SplitResult) -> str:
    path = parsed.path.removesuffix("/commit/").removesuffix("/refs/tags")
    return FREEDESKTOP_GITLAB + path


# e.g. https://github.com/MariaDB/server/commit/b1351c15946349f9daa7e5297fb2ac6f3139e4a8
# https://gitlab.com/wireshark/wireshark/-/issues/18307
def _is_github_gitlab_object(parsed: SplitResult) -> bool:
    return _is_github_or_gitlab(parsed.hostname) and any(
        marker in parsed.path for marker in GITHUB_GITLAB_OBJECT_MARKERS
    )


# e.g. https://git.drupalcode.org/project/views/-/compare/7.x-3.21...7.x-3.x
def _is_compare(parsed: SplitResult) -> bool:
    return "compare" in parsed.path


def _is_github_pull(parsed: SplitResult) -> bool:
    return parsed.hostname == "github.com" and "pull" in parsed.path


def _is_gitlab_merge_request(parsed: SplitResult) -> bool:
    return parsed.hostname.startswith("gitlab.") and "merge_requests" in parsed.path


# e.g. https://bitbucket.org/snakeyaml/snakeyaml/issues/566
def _is_bitbucket(parsed: SplitResult) -> bool:
    return parsed.hostname == "bitbucket.org" and any(
        marker in parsed.path for marker in BITBUCKET_MARKERS
    )


RULES: Tuple[RepoRule, ...] = (
    RepoRule("cgit", _is_cgit_commit, _cgit_repo),
    RepoRule("gitweb", _is_gitweb_project, _gitweb_repo),
    RepoRule("freedesktop-commit", _is_freedesktop_commit, _freedesktop_repo),
    RepoRule("freedesktop-tags", _is_freedesktop_tags, _freedesktop_repo),
    RepoRule("freedesktop-repo", _is_freedesktop_repo, _freedesktop_repo),
    RepoRule("github-gitlab-object", _is_github_gitlab_object, _first_three_segments),
    RepoRule("compare", _is_compare, _first_three_segments),
    RepoRule("github-pull", _is_github_pull, _first_three_segments),
    RepoRule("gitlab-merge-request", _is_gitlab_merge_request, _first_three_segments),
    RepoRule("bitbucket", _is_bitbucket, _first_three_segments),
)


class RepoResolver:
    """Resolve reference URLs against a denylist and an ordered rule table."""

    def __init__(
        self,
        denylist: Sequence[str] = INVALID_REPOS,
        denylist_regex: Pattern[str] = INVALID_REPO_REGEX,
        rules: Sequence[RepoRule] = RULES,
    ) -> None:
        self.denylist = tuple(denylist)
        self.denylist_regex = denylist_regex
        self.rules = tuple(rules)

    def repo(self, url: str) -> str:
        """Return the base repository URL for a supported repository host.

        Args:
            url: Any URL found in an advisory reference

        Returns:
            Scheme, host and the path segments identifying the repository

        Raises:
            MalformedURL: The URL could not be parsed
            Denylisted: The URL is excluded from resolution
            UnsupportedURL: No rule recognises the URL
        """
        parsed = parse_url(url)

        if self.denylist_regex.search(url):
            raise Denylisted(f"{url!r} matched invalid repo regexp")

        for prefix in self.denylist:
            if url.startswith(prefix):
                raise Denylisted(f"{url!r} found in denylist")

        # Already a base repository URL.
        if parsed.hostname in SUPPORTED_HOSTS:
            path = parsed.path.removesuffix("/")
            if len(path.split("/")) == 3:
                return _origin(parsed) + path

        for rule in self.rules:
            if rule.matches(parsed):
                logger.debug("Rule %s matched %s", rule.name, url)
                return rule.build(parsed)

        raise UnsupportedURL(f"repo(): unsupported URL: {url}")

    def commit(self, url: str) -> str:
        """Return the commit identifier referenced by a URL.

        Raises:
            MalformedURL: The URL could not be parsed
            UnsupportedURL: The URL does not reference a single commit
        """
        parsed = parse_url(url)

        # cgit, including the cgit.freedesktop.org mirror.
        if parsed.path.endswith("commit/") and parsed.query.startswith("id="):
            return parsed.query[len("id="):].split("&")[0]

        if parsed.path.startswith(GITWEB_PATH) and "a=commit" in parsed.query:
            commit_hash = _query_param(parsed.query, "h")
            if commit_hash:
                return commit_hash

        # GitHub and GitLab use .../commit/<hash>, Bitbucket .../commits/<hash>,
        # sometimes with a trailing slash.
        directory, _, possible_hash = parsed.path.removesuffix("/").rpartition("/")
        if possible_hash and directory.endswith(("commit", "commits")):
            return possible_hash

        raise UnsupportedURL(f"commit(): unsupported URL: {url}")

    def git_commit(self, url: str) -> Optional[GitCommit]:
        """Return the GitCommit a reference points at, or None."""
        try:
            return GitCommit(repo=self.repo(url), commit=self.commit(url))
        except NormalizerError as e:
            logger.debug("Skipping reference %s: %s", url, e)
            return None


_DEFAULT_RESOLVER = RepoResolver()


def repo(url: str) -> str:
    """Resolve a base repository URL using the built-in tables."""
    return _DEFAULT_RESOLVER.repo(url)


def commit(url: str) -> str:
    """Extract a commit identifier using the built-in tables."""
    return _DEFAULT_RESOLVER.commit(url)


def extract_git_commit(url: str) -> Optional[GitCommit]:
    """Resolve a reference URL to a GitCommit using the built-in tables."""
    return _DEFAULT_RESOLVER.git_commit(url)
