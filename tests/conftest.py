from types import SimpleNamespace

import pytest

from pubtools.pluggy import pm

from .utils.misc import (
    MANIFEST_LIST_TYPE,
    MANIFEST_TYPE,
    manifest_data,
    manifest_digest,
    write_blob,
    write_manifest,
)

# flake8: noqa: E501


@pytest.fixture
def hookspy():
    # Yields a list which receives a (name, kwargs) tuple
    # every time a pubtools hook is invoked.
    hooks = []

    def record_hook(hook_name, _hook_impls, kwargs):
        hooks.append((hook_name, kwargs))

    def do_nothing(*args, **kwargs):
        pass

    undo = pm.add_hookcall_monitoring(before=record_hook, after=do_nothing)
    yield hooks
    undo()


@pytest.fixture
def manifest_list_data():
    return {
        "schemaVersion": 2,
        "mediaType": "application/vnd.docker.distribution.manifest.list.v2+json",
        "manifests": [
            {
                "mediaType": "application/vnd.docker.distribution.manifest.v2+json",
                "size": 949,
                "digest": "sha256:2e8f38a0a8d2a450598430fa70c7f0b53aeec991e76c3e29c63add599b4ef7ee",
                "platform": {"architecture": "amd64", "os": "linux"},
            },
            {
                "mediaType": "application/vnd.docker.distribution.manifest.v2+json",
                "size": 949,
                "digest": "sha256:b3f9218fb5839763e62e52ee6567fe331aa1f3c644f9b6f232ff23959257acf9",
                "platform": {"architecture": "arm64", "os": "linux", "variant": "v8"},
            },
        ],
    }


@pytest.fixture
def v2s2_manifest_data():
    return {
        "schemaVersion": 2,
        "mediaType": "application/vnd.docker.distribution.manifest.v2+json",
        "config": {
            "mediaType": "application/vnd.docker.container.image.v1+json",
            "size": 5830,
            "digest": "sha256:5f88c70a8b703ed93f24c24a809f6c7838105642dd6fb0a19d1f873450304627",
        },
        "layers": [
            {
                "mediaType": "application/vnd.docker.image.rootfs.diff.tar.gzip",
                "size": 76421592,
                "digest": "sha256:eae19a56e9c600eb0a59816d9d0ad7065824a34a13be60469084304fc7170334",
            },
            {
                "mediaType": "application/vnd.docker.image.rootfs.diff.tar.gzip",
                "size": 1811,
                "digest": "sha256:be73321c79565b4e2fdf9f55ba6333e5d50a1bcf583db3b41be45a9be7d82431",
            },
            {
                "mediaType": "application/vnd.docker.image.rootfs.diff.tar.gzip",
                "size": 4280307,
                "digest": "sha256:c06d2750af3cc462e5f8e34eccb0fdd350b28d8cd3b72b86bbf4d28e4a40e6ea",
            },
        ],
    }


@pytest.fixture
def blob_store(tmp_path):
    store = tmp_path / "blobs-store"
    store.mkdir()
    return str(store)


@pytest.fixture
def mirror(tmp_path):
    """
    Mirror with a release tree and an operator tree sharing one layer.

    The operator is a multi-arch image: its manifest list sits in the component directory
    and the manifest of each architecture in a directory named by its digest.
    """
    base = tmp_path / "mirror"
    store = base / "blobs-store"
    blobs = {
        "release-config": b'{"architecture": "amd64", "os": "linux"}',
        "shared-layer": b"layer shared by release and operator",
        "release-layer": b"release layer",
        "amd64-config": b'{"architecture": "amd64"}',
        "amd64-layer": b"amd64 operator layer",
        "arm64-config": b'{"architecture": "arm64"}',
        "arm64-layer": b"arm64 operator layer",
    }
    digests = {name: write_blob(store, content) for name, content in blobs.items()}

    release_root = base / "4.14" / "release"
    write_manifest(
        release_root / "ocp-release",
        manifest_data(
            blobs["release-config"], [blobs["shared-layer"], blobs["release-layer"]]
        ),
    )

    operators_root = base / "4.14" / "operators"
    component_dir = operators_root / "redhat" / "example-operator"
    entries = []
    for arch in ("amd64", "arm64"):
        data = manifest_data(
            blobs["%s-config" % arch], [blobs["shared-layer"], blobs["%s-layer" % arch]]
        )
        digest = manifest_digest(data)
        write_manifest(component_dir / digest, data)
        entries.append(
            {
                "mediaType": MANIFEST_TYPE,
                "size": 500,
                "digest": digest,
                "platform": {"architecture": arch, "os": "linux"},
            }
        )
    write_manifest(
        component_dir,
        {"schemaVersion": 2, "mediaType": MANIFEST_LIST_TYPE, "manifests": entries},
        name="manifest-list.json",
    )

    return SimpleNamespace(
        base_dir=str(base),
        store_root=str(store),
        release_root=str(release_root),
        operators_root=str(operators_root),
        blobs=blobs,
        digests=digests,
    )
