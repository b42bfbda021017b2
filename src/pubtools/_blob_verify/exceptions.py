class MalformedDigest(ValueError):
    """Occurs when a digest string is not in the 'algorithm:hex' form."""


class InvalidDigestLength(ValueError):
    """Occurs when a digest is too short to derive its shard directory."""


class UnparsableManifest(Exception):
    """Occurs when a manifest document is not valid manifest JSON."""


class UnresolvedManifest(Exception):
    """Occurs when a manifest list entry can't be resolved to a manifest document."""
