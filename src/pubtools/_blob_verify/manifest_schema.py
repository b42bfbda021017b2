import json
from typing import Any, Dict, Union

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate

from .exceptions import UnparsableManifest
from .models import Layer, Manifest, ManifestList, ManifestNode, Platform
from . import types


class BaseSchema(Schema):
    """Schema ignoring fields which aren't needed for blob verification."""

    class Meta:
        unknown = EXCLUDE


class LayerSchema(BaseSchema):
    """Validation schema for config and layer descriptors."""

    media_type = fields.String(data_key="mediaType", required=False, load_default="")
    size = fields.Integer(required=True, strict=True, validate=validate.Range(min=0))
    digest = fields.String(required=True)

    @post_load
    def make_layer(self, data: Dict[str, Any], **kwargs: Any) -> Layer:
        return Layer(**data)


class PlatformSchema(BaseSchema):
    """Validation schema for the platform of a manifest list entry."""

    architecture = fields.String(required=True)
    os = fields.String(required=True)
    variant = fields.String(required=False, load_default=None)

    @post_load
    def make_platform(self, data: Dict[str, Any], **kwargs: Any) -> Platform:
        return Platform(**data)


class ManifestSchema(BaseSchema):
    """Validation schema for image manifests and manifest list entries."""

    schema_version = fields.Integer(data_key="schemaVersion", load_default=None)
    digest = fields.String(load_default=None)
    media_type = fields.String(data_key="mediaType", load_default=None)
    platform = fields.Nested(PlatformSchema, load_default=None)
    size = fields.Integer(strict=True, validate=validate.Range(min=0), load_default=None)
    config = fields.Nested(LayerSchema, load_default=None)
    layers = fields.List(fields.Nested(LayerSchema), load_default=None)

    @post_load
    def make_manifest(self, data: Dict[str, Any], **kwargs: Any) -> Manifest:
        return Manifest(**data)


class ManifestListSchema(BaseSchema):
    """Validation schema for manifest lists and OCI indexes."""

    schema_version = fields.Integer(data_key="schemaVersion", load_default=None)
    media_type = fields.String(data_key="mediaType", load_default=None)
    manifests = fields.List(fields.Nested(ManifestSchema), required=True)

    @post_load
    def make_manifest_list(self, data: Dict[str, Any], **kwargs: Any) -> ManifestList:
        return ManifestList(**data)


def parse_manifest(data: Union[types.Manifest, types.ManifestList]) -> ManifestNode:
    """
    Convert decoded manifest JSON into a manifest or manifest list.

    A document containing the 'manifests' field is a manifest list, anything else is a manifest.

    Args:
        data (dict):
            Decoded manifest JSON.
    Returns (Manifest|ManifestList):
        Parsed document.
    Raises:
        UnparsableManifest: the document doesn't have the manifest structure.
    """
    if not isinstance(data, dict):
        raise UnparsableManifest("Manifest must be a JSON object, got %s" % type(data).__name__)

    schema: Schema = ManifestListSchema() if "manifests" in data else ManifestSchema()
    try:
        return schema.load(data)
    except ValidationError as e:
        raise UnparsableManifest("Invalid manifest: %s" % e.messages) from e


def load_manifest(content: Union[str, bytes]) -> ManifestNode:
    """
    Parse a raw manifest document.

    Args:
        content (str|bytes):
            Manifest JSON.
    Returns (Manifest|ManifestList):
        Parsed document.
    Raises:
        UnparsableManifest: content isn't JSON or doesn't have the manifest structure.
    """
    try:
        data = json.loads(content)
    except ValueError as e:
        raise UnparsableManifest("Manifest is not valid JSON: %s" % e) from e
    return parse_manifest(data)
