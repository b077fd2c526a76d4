"""Descriptor generation: toolset.json, swift-sdk.json, SDKSettings.json, info.json."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sdkgen.build.filesystem import FileSystem
from sdkgen.core.models import (
    ArtifactsArchiveMetadata,
    ArtifactVariant,
    BundleArtifact,
    LinuxDistribution,
    PathsConfiguration,
    SDKSettings,
    SwiftSDKMetadata,
    Toolset,
    Triple,
    TripleProperties,
)
from sdkgen.recipes.base import Recipe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JSONEncoding:
    """Serialization settings for every descriptor written in a run.

    Sorted keys and no ASCII escaping keep repeated output byte-identical.
    """

    indent: int = 2
    sort_keys: bool = True
    ensure_ascii: bool = False

    def encode(self, value: Any) -> bytes:
        text = json.dumps(
            value,
            indent=self.indent,
            sort_keys=self.sort_keys,
            ensure_ascii=self.ensure_ascii,
        )
        return (text + "\n").encode("utf-8")


class MetadataGenerator:
    """Writes the JSON descriptors for one SDK.

    Every output is a pure function of the paths, triple, recipe and bundle
    version passed in. Paths inside the descriptors are relative to the
    SDK root; a path outside of it raises PathLayoutError.
    """

    def __init__(
        self,
        paths: PathsConfiguration,
        triple: Triple,
        recipe: Recipe,
        bundle_version: str,
        fs: FileSystem,
        artifact_id: str,
        encoding: JSONEncoding | None = None,
    ) -> None:
        self.paths = paths
        self.triple = triple
        self.recipe = recipe
        self.bundle_version = bundle_version
        self.fs = fs
        self.artifact_id = artifact_id
        self.encoding = encoding or JSONEncoding()

    async def _write(self, path: Path, value: Any) -> Path:
        await self.fs.write_file(path, self.encoding.encode(value))
        return path

    def build_toolset(self) -> Toolset:
        toolset = Toolset(root_path=self.paths.relative_to_sdk_root(self.paths.toolchain_bin_dir_path))
        self.recipe.apply_toolset_options(toolset, self.triple)
        return toolset

    def build_destination(self, toolset_path: Path) -> SwiftSDKMetadata:
        properties = TripleProperties(
            sdk_root_path=self.paths.relative_to_sdk_root(self.paths.sdk_dir_path),
            toolset_paths=[self.paths.relative_to_sdk_root(toolset_path)],
        )
        self.recipe.apply_destination_options(properties, self.paths, self.triple)
        return SwiftSDKMetadata(target_triples={self.triple.triple: properties})

    def build_artifact_bundle_manifest(self, host_triples: list[Triple] | None) -> ArtifactsArchiveMetadata:
        variant = ArtifactVariant(
            path=f"{self.artifact_id}/{self.triple.triple}",
            supported_triples=[t.triple for t in host_triples] if host_triples is not None else None,
        )
        artifact = BundleArtifact(version=self.bundle_version, variants=[variant])
        return ArtifactsArchiveMetadata(artifacts={self.artifact_id: artifact})

    def build_sdk_settings(self, distribution: LinuxDistribution) -> SDKSettings:
        return SDKSettings(
            display_name=f"Swift SDK for {distribution.display_name} ({self.triple.arch})",
            version=self.bundle_version,
            canonical_name=self.triple.triple.replace("unknown", "swift"),
        )

    async def generate_toolset_json(self) -> Path:
        logger.info("Generating toolset JSON file...")
        path = self.paths.swift_sdk_root_path / "toolset.json"
        return await self._write(path, self.build_toolset().to_dict())

    async def generate_destination_json(self, toolset_path: Path) -> Path:
        logger.info("Generating destination JSON file...")
        path = self.paths.swift_sdk_root_path / "swift-sdk.json"
        return await self._write(path, self.build_destination(toolset_path).to_dict())

    async def generate_artifact_bundle_manifest(self, host_triples: list[Triple] | None = None) -> Path:
        logger.info("Generating .artifactbundle info JSON file...")
        path = self.paths.artifact_bundle_path / "info.json"
        return await self._write(path, self.build_artifact_bundle_manifest(host_triples).to_dict())

    async def generate_sdk_settings(self, distribution: LinuxDistribution) -> Path:
        logger.info("Generating SDKSettings.json file to silence cross-compilation warnings...")
        path = self.paths.sdk_dir_path / "SDKSettings.json"
        return await self._write(path, self.build_sdk_settings(distribution).to_dict())
