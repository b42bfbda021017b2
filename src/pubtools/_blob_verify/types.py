from typing_extensions import TypedDict
from typing import List


Platform = TypedDict(
    "Platform",
    {
        "architecture": str,
        "os": str,
        "os.version": str,
        "os.features": List[str],
        "variant": str,
        "features": List[str],
    },
    total=False,
)


class Descriptor(TypedDict):
    """Typed dict used to store config and layer descriptor data."""

    mediaType: str
    size: int
    digest: str


class Manifest(TypedDict, total=False):
    """Typed dict used to store manifest data."""

    schemaVersion: int
    mediaType: str
    size: int
    digest: str
    platform: Platform
    config: Descriptor
    layers: List[Descriptor]


class ManifestList(TypedDict, total=False):
    """Typed dict used to store manifest list data."""

    schemaVersion: int
    mediaType: str
    manifests: List[Manifest]
