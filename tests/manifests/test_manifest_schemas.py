# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for spm.json assembly in all three schemas.
"""

import hashlib
import json
from pathlib import Path

import pytest

from spm_release.manifests.manifest import (
    ManifestSchema,
    assemble_manifest,
    load_manifest,
    manifest_entries,
    serialize_manifest,
    verify_manifest_assets,
)
from spm_release.models import ArtifactType, Cpu, OperatingSystem, UploadedAsset

ENTRY_KEYS = {"os", "cpu", "asset_name", "asset_sha256", "asset_md5"}


def _asset(
    name: str,
    order: int,
    os_kind: OperatingSystem = OperatingSystem.LINUX,
    artifact_type: ArtifactType | None = None,
    listed: bool = True,
) -> UploadedAsset:
    return UploadedAsset(
        os=os_kind,
        cpu=Cpu.X86_64,
        asset_name=name,
        asset_sha256="ab" * 32,
        asset_md5="md5==",
        artifact_type=artifact_type,
        listed=listed,
        url=f"https://example.invalid/{name}",
        order=order,
    )


class TestFlatSchema:
    def test_entries_carry_exactly_the_manifest_fields(self):
        doc = assemble_manifest(ManifestSchema.FLAT, [_asset("a.tar.gz", 0)], description="foo")

        assert doc["version"] == 0
        assert doc["description"] == "foo"
        assert len(doc["platforms"]) == 1
        assert set(doc["platforms"][0]) == ENTRY_KEYS
        assert doc["platforms"][0]["os"] == "linux"
        assert doc["platforms"][0]["cpu"] == "x86_64"

    def test_entries_sorted_by_input_order_not_completion_order(self):
        finished = [
            _asset("c.zip", 2, OperatingSystem.WINDOWS),
            _asset("a.tar.gz", 0),
            _asset("b.tar.gz", 1, OperatingSystem.MACOS),
        ]
        doc = assemble_manifest(ManifestSchema.FLAT, finished)
        assert [e["asset_name"] for e in doc["platforms"]] == ["a.tar.gz", "b.tar.gz", "c.zip"]

    def test_unlisted_assets_are_omitted(self):
        doc = assemble_manifest(
            ManifestSchema.FLAT, [_asset("a.tar.gz", 0), _asset("b.tar.gz", 1, listed=False)]
        )
        assert [e["asset_name"] for e in doc["platforms"]] == ["a.tar.gz"]

    def test_no_assets_gives_empty_list(self):
        assert assemble_manifest(ManifestSchema.FLAT, [])["platforms"] == []


class TestSplitSchema:
    def test_loadable_and_static_sections(self):
        doc = assemble_manifest(
            ManifestSchema.SPLIT,
            [
                _asset("foo-static.tar.gz", 1, artifact_type=ArtifactType.STATIC),
                _asset("foo-loadable.tar.gz", 0, artifact_type=ArtifactType.LOADABLE),
            ],
        )

        assert [e["asset_name"] for e in doc["loadable"]] == ["foo-loadable.tar.gz"]
        assert [e["asset_name"] for e in doc["static"]] == ["foo-static.tar.gz"]
        assert "platforms" not in doc

    def test_missing_section_is_empty_array_not_missing_key(self):
        doc = assemble_manifest(
            ManifestSchema.SPLIT, [_asset("l.tar.gz", 0, artifact_type=ArtifactType.LOADABLE)]
        )
        assert doc["static"] == []

    def test_unlisted_loadable_bundle_is_excluded(self):
        doc = assemble_manifest(
            ManifestSchema.SPLIT,
            [_asset("misc.tar.gz", 0, artifact_type=ArtifactType.LOADABLE, listed=False)],
        )
        assert doc["loadable"] == []
        assert doc["static"] == []


class TestExtensionsSchema:
    def test_nested_under_extension_name(self):
        doc = assemble_manifest(
            ManifestSchema.EXTENSIONS,
            [_asset("a.tar.gz", 0)],
            description="vector search",
            extension_name="vec0",
        )

        assert set(doc) == {"version", "extensions"}
        extension = doc["extensions"]["vec0"]
        assert extension["description"] == "vector search"
        assert [e["asset_name"] for e in extension["platforms"]] == ["a.tar.gz"]

    def test_requires_extension_name(self):
        with pytest.raises(ValueError, match="extension name"):
            assemble_manifest(ManifestSchema.EXTENSIONS, [])


class TestSerializeAndLoad:
    @pytest.mark.parametrize("schema", list(ManifestSchema))
    def test_serialized_document_loads_back(self, schema: ManifestSchema):
        doc = assemble_manifest(
            schema,
            [_asset("a.tar.gz", 0, artifact_type=ArtifactType.LOADABLE)],
            extension_name="foo",
        )
        payload = serialize_manifest(doc)

        assert payload.endswith(b"\n")
        detected, loaded = load_manifest(payload)
        assert detected is schema
        assert loaded == doc

    def test_load_rejects_wrong_version(self):
        with pytest.raises(ValueError, match="version"):
            load_manifest(json.dumps({"version": 1, "platforms": []}))

    def test_load_rejects_incomplete_entries(self):
        with pytest.raises(ValueError, match="asset_md5"):
            load_manifest(
                json.dumps(
                    {
                        "version": 0,
                        "platforms": [
                            {"os": "linux", "cpu": "x86_64", "asset_name": "a", "asset_sha256": "x"}
                        ],
                    }
                )
            )

    def test_load_rejects_split_without_both_sections(self):
        with pytest.raises(ValueError, match="static"):
            load_manifest(json.dumps({"version": 0, "loadable": []}))

    def test_load_rejects_invalid_json(self):
        with pytest.raises(ValueError, match="not valid JSON"):
            load_manifest(b"{nope")


class TestManifestAssets:
    def test_entries_flattened_for_every_schema(self):
        assets = [
            _asset("l.tar.gz", 0, artifact_type=ArtifactType.LOADABLE),
            _asset("s.tar.gz", 1, artifact_type=ArtifactType.STATIC),
        ]
        for schema in ManifestSchema:
            doc = assemble_manifest(schema, assets, extension_name="foo")
            names = [entry["asset_name"] for entry in manifest_entries(doc)]
            assert names == ["l.tar.gz", "s.tar.gz"]

    def test_assets_matching_manifest(self, tmp_path: Path):
        data = b"archive bytes"
        (tmp_path / "a.tar.gz").write_bytes(data)
        doc = {
            "version": 0,
            "platforms": [
                {
                    "os": "linux",
                    "cpu": "x86_64",
                    "asset_name": "a.tar.gz",
                    "asset_sha256": hashlib.sha256(data).hexdigest(),
                    "asset_md5": "unused",
                }
            ],
        }
        assert verify_manifest_assets(tmp_path, doc) == []

    def test_missing_and_changed_assets_reported(self, tmp_path: Path):
        (tmp_path / "changed.zip").write_bytes(b"not what was uploaded")
        doc = assemble_manifest(
            ManifestSchema.FLAT,
            [_asset("changed.zip", 0, OperatingSystem.WINDOWS), _asset("gone.tar.gz", 1)],
        )

        problems = verify_manifest_assets(tmp_path, doc)

        assert len(problems) == 2
        assert "changed.zip" in problems[0]
        assert "gone.tar.gz" in problems[1]
