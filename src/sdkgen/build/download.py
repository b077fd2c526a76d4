"""Artifact downloads as cacheable queries."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from rich.filesize import decimal

from sdkgen.build.cache_key import CacheKey, cache_key_for
from sdkgen.build.engine import QueryEngine
from sdkgen.build.executor import BlockingExecutor
from sdkgen.build.http import HTTPClient
from sdkgen.build.progress import DownloadProgress, progress_pipeline
from sdkgen.build.query import Query
from sdkgen.core.errors import ConfigurationError
from sdkgen.core.models import LinuxDistribution, Triple

logger = logging.getLogger(__name__)

ProgressReporter = Callable[[str, int, "int | None"], None]


@dataclass(frozen=True)
class DownloadableArtifact:
    """A remote file and where it lives in the local cache."""

    remote_url: str
    local_path: Path

    @property
    def file_name(self) -> str:
        return Path(urlparse(self.remote_url).path).name or self.local_path.name


class DownloadArtifactQuery(Query[Path]):
    """Fetch an artifact to its local path; keyed by the remote URL."""

    persistent = True

    def __init__(
        self,
        artifact: DownloadableArtifact,
        http_client: HTTPClient,
        executor: BlockingExecutor,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self.artifact = artifact
        self.http_client = http_client
        self.executor = executor
        self.reporter = reporter

    def cache_key(self) -> CacheKey:
        return cache_key_for("sdkgen:download:v1", remote_url=self.artifact.remote_url)

    async def run(self, engine: QueryEngine) -> Path:
        logger.info(
            "Downloading remote artifact not available in local cache: %s",
            self.artifact.remote_url,
        )
        stream = progress_pipeline(
            self.http_client.stream_download(
                self.artifact.remote_url, self.artifact.local_path, self.executor
            )
        )
        async for progress in stream:
            self.report(progress)
        return self.artifact.local_path

    def report(self, progress: DownloadProgress) -> None:
        name = self.artifact.file_name
        if progress.total_bytes is not None:
            logger.debug(
                "%s %s/%s", name, decimal(progress.received_bytes), decimal(progress.total_bytes)
            )
        else:
            logger.debug("%s %s", name, decimal(progress.received_bytes))
        if self.reporter is not None:
            self.reporter(name, progress.received_bytes, progress.total_bytes)

    def serialize(self, result: Path) -> str:
        return str(result)

    def deserialize(self, data: str) -> Path | None:
        path = Path(data)
        # A cache entry for a file that was deleted since is stale.
        if path != self.artifact.local_path or not path.is_file():
            return None
        return path


@dataclass(frozen=True)
class DownloadableArtifacts:
    """Remote toolchain archives needed to build an SDK without a container."""

    swift_version: str
    distribution: LinuxDistribution
    triple: Triple
    cache_dir: Path
    base_url: str = "https://download.swift.org"

    @property
    def target_swift(self) -> DownloadableArtifact:
        """Swift toolchain tarball built for the target distribution and arch."""
        if self.triple.arch == "x86_64":
            arch_suffix = ""
        elif self.triple.arch == "aarch64":
            arch_suffix = "-aarch64"
        else:
            raise ConfigurationError(
                f"No toolchain download is published for {self.triple.arch}; use a container instead"
            )

        platform_dir, platform_file = self.distribution.download_platform()
        version = self.swift_version
        release = f"swift-{version}-RELEASE"
        url = (
            f"{self.base_url.rstrip('/')}/swift-{version}-release/"
            f"{platform_dir}{arch_suffix}/{release}/{release}-{platform_file}{arch_suffix}.tar.gz"
        )
        local_path = self.cache_dir / f"target_swift_{version}_{self.triple.triple}.tar.gz"
        return DownloadableArtifact(remote_url=url, local_path=local_path)
