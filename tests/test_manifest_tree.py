import os

import pytest

from pubtools._blob_verify.exceptions import UnparsableManifest
from pubtools._blob_verify.manifest_tree import (
    ManifestTree,
    component_name,
    discover_manifests,
    is_digest,
)
from pubtools._blob_verify.models import Manifest, ManifestList

from .utils.misc import write_manifest


@pytest.mark.parametrize(
    "name,expected",
    [("sha256:" + "ab" * 32, True), ("example-operator", False), ("sha256:", False)],
)
def test_is_digest(name, expected):
    assert is_digest(name) is expected


def test_component_name():
    root = os.path.join("/mirror", "operators")
    digest_dir = "sha256:" + "ab" * 32

    assert component_name(root, os.path.join(root, "redhat", "operator")) == "redhat/operator"
    assert (
        component_name(root, os.path.join(root, "redhat", "operator", digest_dir))
        == "redhat/operator"
    )
    assert component_name(root, root) == "operators"
    assert component_name(root + os.sep, root) == "operators"


def test_discover_release_tree(mirror):
    tree = discover_manifests(mirror.release_root)

    assert tree.failures == []
    assert len(tree.entries) == 1
    source = tree.entries[0]
    assert source.component == "ocp-release"
    assert source.path == os.path.join(mirror.release_root, "ocp-release", "manifest.json")
    assert isinstance(source.node, Manifest)
    assert len(source.node.layers) == 2


def test_discover_operator_tree(mirror):
    tree = discover_manifests(mirror.operators_root)

    assert [os.path.basename(source.path) for source in tree.entries] == [
        "manifest-list.json",
        "manifest.json",
        "manifest.json",
    ]
    assert {source.component for source in tree.entries} == {"redhat/example-operator"}
    assert isinstance(tree.entries[0].node, ManifestList)


def test_resolve_and_skip_children(mirror):
    tree = discover_manifests(mirror.operators_root)
    sources = tree.sources()

    source = next(sources)
    children = [tree.resolve(entry) for entry in source.node.manifests]
    tree.mark_resolved(source)

    assert all(isinstance(child, Manifest) for child in children)
    assert list(sources) == []


def test_children_of_unmarked_list_are_yielded(mirror):
    tree = discover_manifests(mirror.operators_root)
    sources = tree.sources()

    manifest_list = next(sources).node
    tree.resolve(manifest_list.manifests[0])

    assert [os.path.basename(source.path) for source in sources] == [
        "manifest.json",
        "manifest.json",
    ]


def test_sources_without_resolving(mirror):
    tree = discover_manifests(mirror.operators_root)

    assert len(list(tree.sources())) == 3


def test_resolve_by_content_digest(tmp_path):
    child = {"schemaVersion": 2, "layers": [{"size": 1, "digest": "sha256:" + "aa" * 32}]}
    _, digest = write_manifest(tmp_path / "image", child, name="amd64.json")
    tree = discover_manifests(str(tmp_path))

    resolved = tree.resolve(Manifest(digest=digest))

    assert resolved == tree.entries[0].node
    assert tree.resolve(Manifest(digest="sha256:" + "00" * 32)) is None
    assert tree.resolve(Manifest()) is None


def test_discover_records_unparsable_manifests(tmp_path):
    (tmp_path / "broken").mkdir()
    (tmp_path / "broken" / "manifest.json").write_text("{not json")
    (tmp_path / "broken" / "README.txt").write_text("not a manifest")
    write_manifest(tmp_path / "good", {"schemaVersion": 2})

    tree = discover_manifests(str(tmp_path))

    assert [source.component for source in tree.entries] == ["good"]
    assert len(tree.failures) == 1
    assert tree.failures[0].component == "broken"
    assert isinstance(tree.failures[0].error, UnparsableManifest)


def test_discover_missing_root(tmp_path):
    tree = ManifestTree(str(tmp_path / "nonexistent")).discover()

    assert tree.entries == []
    assert len(tree.failures) == 1
    assert isinstance(tree.failures[0].error, FileNotFoundError)
