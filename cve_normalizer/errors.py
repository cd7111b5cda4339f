"""
Exceptions raised by the normalizers.
"""


class NormalizerError(ValueError):
    """Base class for value-level normalization failures."""


class MalformedURL(NormalizerError):
    """The URL could not be parsed."""


class Denylisted(NormalizerError):
    """The URL matches the denylist regex or a denylisted prefix."""


class UnsupportedURL(NormalizerError):
    """No host-specific rule recognises the URL."""


class MalformedIdentifier(NormalizerError):
    """The CPE string is missing its prefix or could not be unbound."""


class UnsupportedVersion(NormalizerError):
    """No numeric or prerelease component could be extracted."""


class VersionLookupError(NormalizerError):
    """A version or its successor is missing from the valid version list."""
