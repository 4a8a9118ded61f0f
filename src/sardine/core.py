"""
Core classes and types for the sardine release pipeline.
"""
from __future__ import annotations

import json
import os
import typing as t
from dataclasses import dataclass
from pathlib import Path

if t.TYPE_CHECKING:
    from collections.abc import Mapping

    from .dependencies import Dependency


SettingsDir = t.Literal['root_dir', 'src_dir', 'assets_dir', 'tmp_dir', 'dist_dir']

AUTHOR_ENV = 'SARDINE_AUTHOR'
LICENSE_ENV = 'SARDINE_LICENSE'
METADATA_FILE = 'package.json'


class RemoteLib(t.NamedTuple):
    """
    A library file fetched from @url and stored as @file in the source tree.
    """
    file: str
    url: str


DEFAULT_REMOTE_LIBS = [
    RemoteLib('colorpicker.js', 'https://raw.githubusercontent.com/Kiuryy/colorpicker.js/master/src/js/colorpicker.js'),
    RemoteLib('jsu.js', 'https://raw.githubusercontent.com/Kiuryy/jsu.js/master/src/js/jsu.js'),
]


class BuildSettings(t.TypedDict):
    """
    TypedDict for the directories and inputs of a release build.
    """
    root_dir: Path
    src_dir: Path
    assets_dir: Path
    tmp_dir: Path
    dist_dir: Path
    lint_targets: list[str]
    remote_libs: list[RemoteLib]


def default_settings(root: Path,
                     src: str = 'src',
                     assets: str = 'assets',
                     tmp: str = '__tmp',
                     dist: str = '__dist') -> BuildSettings:
    """
    Build settings for the conventional project layout under @root. Lint
    targets are the root-level scripts, then the extension sources.
    """
    root = root.resolve()
    src_dir = root / src
    return BuildSettings(
        root_dir=root,
        src_dir=src_dir,
        assets_dir=root / assets,
        tmp_dir=root / tmp,
        dist_dir=root / dist,
        lint_targets=[str(root / '*.js'), str(src_dir / 'js' / '**' / '*.js')],
        remote_libs=list(DEFAULT_REMOTE_LIBS),
    )


@dataclass(frozen=True)
class PackageMetadata:
    """
    Project metadata loaded once from the manifest at the start of a build.
    """
    name: str
    version: str
    author: str
    license: str
    version_name: str = ''

    @property
    def preamble(self):
        return f'(c) {self.author} under {self.license}'

    @property
    def archive_name(self):
        return f'{self.name}_{self.version_name or self.version}.zip'

    @classmethod
    def load(cls, path: Path, environ: Mapping[str, str] | None = None):
        """
        Parse a package.json-style manifest. The author and license can be
        overridden through the SARDINE_AUTHOR and SARDINE_LICENSE environment
        variables.
        """
        environ = os.environ if environ is None else environ
        try:
            data = json.loads(path.read_text('utf-8'))
        except (OSError, ValueError) as e:
            raise MetadataLoadError(f'Could not load {path}: {e}') from e
        if not isinstance(data, dict):
            raise MetadataLoadError(f'Could not load {path}: expected a JSON object')

        author = data.get('author')
        # npm allows "author": {"name": ..., "email": ...}
        if isinstance(author, dict):
            author = author.get('name')

        fields = {
            'name': data.get('name'),
            'version': data.get('version'),
            'author': environ.get(AUTHOR_ENV) or author,
            'license': environ.get(LICENSE_ENV) or data.get('license'),
        }
        missing = sorted(k for k, v in fields.items() if not v)
        if missing:
            raise MetadataLoadError(f'{path} is missing required fields: {", ".join(missing)}')

        return cls(
            **{k: str(v) for k, v in fields.items()},
            version_name=str(data.get('versionName') or fields['version']),
        )


class Context:
    """
    Settings and metadata for a single build, handed to every stage.
    """
    def __init__(self, settings: BuildSettings, metadata: PackageMetadata):
        self.settings = settings
        self.metadata = metadata

    @t.overload
    def __getitem__(self, key: SettingsDir) -> Path: ...
    @t.overload
    def __getitem__(self, key: t.Literal['lint_targets']) -> list[str]: ...
    @t.overload
    def __getitem__(self, key: t.Literal['remote_libs']) -> list[RemoteLib]: ...
    def __getitem__(self, key):
        return self.settings[key]

    @property
    def source_roots(self):
        """
        Directories that relative output names are computed against.
        """
        return (self['src_dir'], self['tmp_dir'])

    @classmethod
    def from_settings(cls, settings: BuildSettings):
        """
        Load the manifest from the root directory and create a Context.
        """
        metadata = PackageMetadata.load(settings['root_dir'] / METADATA_FILE)
        return cls(settings, metadata)


class BuildError(Exception):
    """
    Base class for every error that aborts a build.
    """


class MatchError(BuildError):
    """
    Raised when resolving file patterns fails.
    """


class ReadError(BuildError):
    """
    Raised when a file cannot be read.
    """


class FetchError(BuildError):
    """
    Raised when a remote file cannot be fetched or is empty.
    """


class TransformError(BuildError):
    """
    Raised when minifying or compiling a single file fails.
    """
    def __init__(self, path: Path, cause: t.Any):
        self.path = path
        self.cause = cause
        super().__init__(f'{path}: {cause}')


class PackageError(BuildError):
    """
    Raised when the release archive cannot be written.
    """


class LintError(BuildError):
    """
    Raised when the linter reports anything for a target.
    """
    def __init__(self, target: str, output: str):
        self.target = target
        self.output = output
        super().__init__(f'eslint reported issues for {target}:\n{output}')


class MetadataLoadError(BuildError):
    """
    Raised when the project manifest is missing or incomplete.
    """


class ToolUnavailableError(BuildError):
    """
    Raised when a stage needs a library or executable that is not installed.
    """
    def __init__(self, dependencies: t.Iterable[Dependency]):
        self.dependencies = list(dependencies)
        names = ', '.join(str(d) for d in self.dependencies)
        super().__init__(f'Missing required tools: {names}')
