"""Maven coordinates and repository references.

Coordinates follow ``group:artifact:version[:classifier][@type]``. A script's
own identity (``//GAV``) may omit the version, in which case
``999-SNAPSHOT`` is assumed.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .directives import DirectiveError

DEFAULT_VERSION = "999-SNAPSHOT"

GAV_PATTERN = re.compile(
    r"^(?P<group>[^:\s]+):(?P<artifact>[^:\s]+):(?P<version>[^:@\s]+)"
    r"(?::(?P<classifier>[^@\s]*))?(?:@(?P<type>\S+))?$"
)

ALIAS_MAVEN_CENTRAL = "mavencentral"
ALIAS_JCENTER = "jcenter"
ALIAS_GOOGLE = "google"
ALIAS_JITPACK = "jitpack"

REPO_MAVEN_CENTRAL = "https://repo1.maven.org/maven2/"
REPO_JCENTER = "https://jcenter.bintray.com/"
REPO_GOOGLE = "https://maven.google.com/"
REPO_JITPACK = "https://jitpack.io/"

_ALIASES = {
    ALIAS_MAVEN_CENTRAL: REPO_MAVEN_CENTRAL,
    ALIAS_JCENTER: REPO_JCENTER,
    ALIAS_GOOGLE: REPO_GOOGLE,
    ALIAS_JITPACK: REPO_JITPACK,
}


@dataclass(frozen=True)
class MavenCoordinate:
    """A parsed dependency coordinate."""

    group_id: str
    artifact_id: str
    version: str
    classifier: Optional[str] = None
    type: str = "jar"

    def __str__(self) -> str:
        gav = f"{self.group_id}:{self.artifact_id}:{self.version}"
        if self.classifier:
            gav += f":{self.classifier}"
        if self.type != "jar":
            gav += f"@{self.type}"
        return gav


@dataclass(frozen=True)
class MavenRepo:
    """A named remote repository."""

    id: str
    url: str


def gav_with_version(gav: str) -> str:
    """Append the default version to a ``group:artifact`` identity."""
    if gav.count(":") == 1:
        return f"{gav}:{DEFAULT_VERSION}"
    return gav


def looks_like_a_gav(candidate: str) -> bool:
    """Check whether a string has the shape of a full coordinate."""
    return GAV_PATTERN.match(candidate) is not None


def dep_id_to_artifact(dep_id: str) -> MavenCoordinate:
    """Parse a coordinate string.

    Raises:
        DirectiveError: If the string is not a valid coordinate
    """
    match = GAV_PATTERN.match(dep_id)
    if match is None:
        raise DirectiveError(
            f"Invalid dependency locator: '{dep_id}'. "
            + "Expected format is groupId:artifactId:version[:classifier][@type]"
        )
    return MavenCoordinate(
        group_id=match.group("group"),
        artifact_id=match.group("artifact"),
        version=match.group("version"),
        classifier=match.group("classifier") or None,
        type=match.group("type") or "jar",
    )


def to_maven_repo(reference: str) -> MavenRepo:
    """Turn a ``[name=]url-or-alias`` reference into a repository.

    Raises:
        DirectiveError: If the reference holds more than one '='
    """
    split = reference.split("=")
    if len(split) == 1:
        repo_id, repo_ref = None, split[0]
    elif len(split) == 2:
        repo_id, repo_ref = split
    else:
        raise DirectiveError(f"Invalid Maven repository reference: {reference}")

    alias_url = _ALIASES.get(repo_ref.lower())
    if alias_url is not None:
        return MavenRepo(repo_id or repo_ref, alias_url)
    return MavenRepo(repo_id or repo_ref, repo_ref)
