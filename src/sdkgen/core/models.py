"""Core data models for sdkgen."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from sdkgen.core.errors import ConfigurationError, PathLayoutError, UnsupportedArchitectureError

# ELF interpreter location per architecture.
INTERPRETER_PATHS: dict[str, str] = {
    "x86_64": "/lib64/ld-linux-x86-64.so.2",
    "aarch64": "/lib/ld-linux-aarch64.so.1",
    "armv7": "/lib/ld-linux-armhf.so.3",
}

DOCKER_PLATFORMS: dict[str, str] = {
    "x86_64": "linux/amd64",
    "aarch64": "linux/arm64",
    "armv7": "linux/arm/v7",
}

UBUNTU_RELEASES: dict[str, str] = {
    "20.04": "focal",
    "22.04": "jammy",
    "24.04": "noble",
}


@dataclass(frozen=True)
class Triple:
    """Architecture/vendor/OS(/environment) identifier of a compilation target."""

    arch: str
    vendor: str
    os: str
    environment: str | None = None

    @classmethod
    def parse(cls, value: str) -> Triple:
        parts = value.strip().split("-")
        if len(parts) < 3 or len(parts) > 4 or not all(parts):
            raise ConfigurationError(
                f"Invalid target triple {value!r}, expected <arch>-<vendor>-<os>[-<environment>]"
            )
        return cls(
            arch=parts[0],
            vendor=parts[1],
            os=parts[2],
            environment=parts[3] if len(parts) == 4 else None,
        )

    @property
    def triple(self) -> str:
        parts = [self.arch, self.vendor, self.os]
        if self.environment:
            parts.append(self.environment)
        return "-".join(parts)

    @property
    def is_linux(self) -> bool:
        return self.os == "linux"

    @property
    def interpreter_path(self) -> str:
        """Absolute path of the dynamic linker on the target system."""
        try:
            return INTERPRETER_PATHS[self.arch]
        except KeyError:
            raise UnsupportedArchitectureError(self.arch) from None

    @property
    def docker_platform(self) -> str:
        try:
            return DOCKER_PLATFORMS[self.arch]
        except KeyError:
            raise UnsupportedArchitectureError(self.arch) from None

    def __str__(self) -> str:
        return self.triple


class DistributionFamily(Enum):
    """Closed set of Linux distribution families the pipeline branches on."""

    UBUNTU = "ubuntu"
    RHEL = "rhel"
    GENERIC = "generic"


@dataclass(frozen=True)
class LinuxDistribution:
    """A target Linux distribution: family plus release."""

    family: DistributionFamily
    version: str = ""

    @classmethod
    def parse(cls, name: str, version: str = "") -> LinuxDistribution:
        try:
            family = DistributionFamily(name.lower())
        except ValueError:
            known = ", ".join(f.value for f in DistributionFamily)
            raise ConfigurationError(f"Unknown Linux distribution {name!r}. Known: {known}") from None

        if family is DistributionFamily.UBUNTU:
            version = version or "22.04"
            if version not in UBUNTU_RELEASES:
                raise ConfigurationError(
                    f"Unsupported Ubuntu release {version!r}. Supported: {sorted(UBUNTU_RELEASES)}"
                )
        elif family is DistributionFamily.RHEL:
            version = version or "ubi9"
        return cls(family=family, version=version)

    @property
    def is_ubuntu(self) -> bool:
        return self.family is DistributionFamily.UBUNTU

    @property
    def is_rhel(self) -> bool:
        return self.family is DistributionFamily.RHEL

    @property
    def release_name(self) -> str:
        """Release identifier used in container image tags."""
        if self.family is DistributionFamily.UBUNTU:
            return UBUNTU_RELEASES[self.version]
        if self.family is DistributionFamily.RHEL:
            return f"rhel-{self.version}"
        if self.family is DistributionFamily.GENERIC:
            raise ConfigurationError("A generic distribution has no known container image")
        raise AssertionError(f"unhandled distribution family {self.family}")

    @property
    def display_name(self) -> str:
        if self.family is DistributionFamily.UBUNTU:
            return f"Ubuntu {self.version}"
        if self.family is DistributionFamily.RHEL:
            return f"RHEL {self.version}"
        if self.family is DistributionFamily.GENERIC:
            return f"Linux {self.version}".rstrip()
        raise AssertionError(f"unhandled distribution family {self.family}")

    def download_platform(self) -> tuple[str, str]:
        """Return (directory, file) platform names used by download.swift.org."""
        if self.family is DistributionFamily.UBUNTU:
            return f"ubuntu{self.version.replace('.', '')}", f"ubuntu{self.version}"
        if self.family is DistributionFamily.RHEL:
            return self.version, self.version
        if self.family is DistributionFamily.GENERIC:
            raise ConfigurationError("Toolchain downloads are not published for generic distributions")
        raise AssertionError(f"unhandled distribution family {self.family}")

    def __str__(self) -> str:
        return self.display_name


@dataclass(frozen=True)
class PathsConfiguration:
    """Root-relative output locations for one generation run."""

    source_root: Path
    artifacts_cache_path: Path
    artifact_bundle_path: Path
    swift_sdk_root_path: Path
    sdk_dir_path: Path
    toolchain_dir_path: Path
    toolchain_bin_dir_path: Path

    @classmethod
    def create(
        cls,
        source_root: str | Path,
        artifact_id: str,
        triple: Triple,
        sdk_name: str,
    ) -> PathsConfiguration:
        root = Path(source_root).absolute()
        bundle = root / "Bundles" / f"{artifact_id}.artifactbundle"
        sdk_root = bundle / artifact_id / triple.triple
        toolchain = sdk_root / "swift.xctoolchain"
        return cls(
            source_root=root,
            artifacts_cache_path=root / "Artifacts",
            artifact_bundle_path=bundle,
            swift_sdk_root_path=sdk_root,
            sdk_dir_path=sdk_root / f"{sdk_name}.sdk",
            toolchain_dir_path=toolchain,
            toolchain_bin_dir_path=toolchain / "usr" / "bin",
        )

    def relative_to_sdk_root(self, path: Path) -> str:
        """Path of ``path`` relative to the SDK root.

        Raises PathLayoutError if ``path`` does not live under the root.
        """
        return relative_path(path, self.swift_sdk_root_path)


def relative_path(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        raise PathLayoutError(path, root) from None


# -- Descriptor value objects --


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class ToolProperties:
    path: str | None = None
    extra_cli_options: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"path": self.path, "extraCLIOptions": self.extra_cli_options})


@dataclass
class Toolset:
    """Contents of toolset.json."""

    root_path: str | None = None
    swift_compiler: ToolProperties | None = None
    c_compiler: ToolProperties | None = None
    cxx_compiler: ToolProperties | None = None
    linker: ToolProperties | None = None
    librarian: ToolProperties | None = None
    debugger: ToolProperties | None = None
    test_runner: ToolProperties | None = None
    schema_version: str = "1.0"

    def to_dict(self) -> dict[str, Any]:
        tools = {
            "swiftCompiler": self.swift_compiler,
            "cCompiler": self.c_compiler,
            "cxxCompiler": self.cxx_compiler,
            "linker": self.linker,
            "librarian": self.librarian,
            "debugger": self.debugger,
            "testRunner": self.test_runner,
        }
        return _compact({
            "schemaVersion": self.schema_version,
            "rootPath": self.root_path,
            **{name: tool.to_dict() for name, tool in tools.items() if tool is not None},
        })


@dataclass
class TripleProperties:
    """Per-triple entry of swift-sdk.json."""

    sdk_root_path: str
    toolset_paths: list[str] = field(default_factory=list)
    swift_resources_path: str | None = None
    swift_static_resources_path: str | None = None
    include_search_paths: list[str] | None = None
    library_search_paths: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({
            "sdkRootPath": self.sdk_root_path,
            "toolsetPaths": list(self.toolset_paths),
            "swiftResourcesPath": self.swift_resources_path,
            "swiftStaticResourcesPath": self.swift_static_resources_path,
            "includeSearchPaths": self.include_search_paths,
            "librarySearchPaths": self.library_search_paths,
        })


@dataclass
class SwiftSDKMetadata:
    """Contents of swift-sdk.json."""

    target_triples: dict[str, TripleProperties]
    schema_version: str = "4.0"

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "targetTriples": {t: props.to_dict() for t, props in self.target_triples.items()},
        }


@dataclass
class ArtifactVariant:
    path: str
    supported_triples: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "supportedTriples": self.supported_triples}


@dataclass
class BundleArtifact:
    version: str
    variants: list[ArtifactVariant]
    type: str = "swiftSDK"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "version": self.version,
            "variants": [v.to_dict() for v in self.variants],
        }


@dataclass
class ArtifactsArchiveMetadata:
    """Contents of an artifact bundle's info.json."""

    artifacts: dict[str, BundleArtifact]
    schema_version: str = "1.0"

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "artifacts": {name: a.to_dict() for name, a in self.artifacts.items()},
        }


@dataclass
class SDKSettings:
    """Contents of SDKSettings.json, read by the driver to silence SDK warnings."""

    display_name: str
    version: str
    canonical_name: str
    version_map: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "DisplayName": self.display_name,
            "Version": self.version,
            "VersionMap": dict(self.version_map),
            "CanonicalName": self.canonical_name,
        }
