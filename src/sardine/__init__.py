"""
sardine builds release archives of browser extension projects: lint, fetch
remote libraries, minify, compile, copy and zip.
"""
from .core import (
    BuildError, BuildSettings, Context, FetchError, LintError, MatchError, MetadataLoadError,
    PackageError, PackageMetadata, ReadError, RemoteLib, ToolUnavailableError, TransformError,
    default_settings,
)
from .dependencies import NodeExecDependency, PipDependency
from .pipeline import Pipeline, Stage, StageResult
from .transform import AssetKind
