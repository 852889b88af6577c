from __future__ import annotations


class PackagingError(RuntimeError):
    """Base class for every fatal packaging failure."""


class ConfigError(PackagingError):
    pass


class SnapshotExportError(PackagingError):
    pass


class StagingError(PackagingError):
    pass


class VersionResolutionError(PackagingError):
    pass


class ManifestError(PackagingError):
    pass


class ArtifactError(PackagingError):
    pass
