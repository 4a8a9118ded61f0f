"""
Per-asset minification and compilation, dispatched by file extension.
"""
from __future__ import annotations

import abc
import enum
import json
import re
import subprocess
import typing as t
from pathlib import Path

from .core import BuildError, ToolUnavailableError, TransformError
from .dependencies import Dependency, NodeExecDependency, PipDependency
from .files import ENCODING, create_file, iter_files, read_file

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from .core import Context
    from .files import Pattern


class AssetKind(enum.Enum):
    """
    The asset types with a dedicated transform. Everything else is OTHER and
    passes through untouched.
    """
    HTML = 'html'
    JSON = 'json'
    JS = 'js'
    SCSS = 'scss'
    OTHER = ''

    @classmethod
    def from_ext(cls, ext: str):
        try:
            return cls(ext.lower())
        except ValueError:
            return cls.OTHER


class Transformer(abc.ABC):
    """
    Abstract base class for transforms turning one source file into the
    content of one output file.
    """
    def get_dependencies(self) -> set[Dependency]:
        """
        Return the requirements for this Transformer.
        """
        return set()

    def rename(self, name: str) -> str:
        """
        Overridable hook mapping an input file name to its output name.
        """
        return name

    @abc.abstractmethod
    def __call__(self, path: Path) -> str | bytes:
        ...


class PassThroughTransformer(Transformer):
    def __call__(self, path: Path):
        return path.read_bytes()


# minify-html drops the trailing slash of void elements; it is put back on
# every void start tag outside of script and style blocks.
_RAW_BLOCKS = re.compile(r'(<(script|style)\b.*?</\2\s*>)', re.IGNORECASE | re.DOTALL)
_VOID_TAG = re.compile(
    r'<(area|base|br|col|embed|hr|img|input|link|meta|param|source|track|wbr)\b'
    r'((?:"[^"]*"|\'[^\']*\'|[^\'">])*)>',
    re.IGNORECASE,
)


def _close_void_tag(match: re.Match[str]):
    name, attrs = match.group(1), match.group(2).rstrip()
    if attrs.endswith('/'):
        return match.group(0)
    # An unquoted attribute value would swallow an adjacent slash.
    sep = '' if not attrs or attrs[-1] in '"\'' else ' '
    return f'<{name}{attrs}{sep}/>'


def keep_closing_slash(html: str) -> str:
    """
    Write every void element of minified @html in self-closing form.
    """
    parts = _RAW_BLOCKS.split(html)
    out = []
    # split() yields text, block, tag name, text, block, tag name, ...
    for i in range(0, len(parts), 3):
        out.append(_VOID_TAG.sub(_close_void_tag, parts[i]))
        if i + 1 < len(parts):
            out.append(parts[i + 1])
    return ''.join(out)


class HTMLTransformer(Transformer):
    """
    HTML minification with minify-html: whitespace collapsed, comments
    removed, inline CSS minified and closing tags kept. Void elements keep
    their self-closing slash.
    """
    def get_dependencies(self):
        return {PipDependency('minify-html', check_name='minify_html')}

    def __call__(self, path: Path):
        from minify_html import minify
        content = read_file(path)
        try:
            minified = minify(
                content,
                minify_css=True,
                keep_closing_tags=True,
                keep_comments=False,
            )
        except Exception as e:
            raise TransformError(path, e) from e
        return keep_closing_slash(minified)


def minify_json(text: str) -> str:
    """
    Strip comments and insignificant whitespace from JSON text.
    """
    from json_minify import json_minify
    return json_minify(text)


class JSONTransformer(Transformer):
    def get_dependencies(self):
        return {PipDependency('JSON_minify', check_name='json_minify')}

    def __call__(self, path: Path):
        minified = minify_json(read_file(path))
        try:
            json.loads(minified)
        except ValueError as e:
            raise TransformError(path, e) from e
        return minified


class JSTransformer(Transformer):
    """
    JS minification with terser. Identifiers are mangled except for the
    @reserved names, and a copyright @preamble comment is prepended.
    """
    reserved = ('jsu', 'chrome')

    def __init__(self,
                 preamble: str,
                 root: Path | None = None,
                 reserved: Sequence[str] | None = None):
        self.preamble = preamble
        self.terser = NodeExecDependency('terser', root)
        if reserved is not None:
            self.reserved = tuple(reserved)

    def get_dependencies(self):
        return {self.terser}

    def get_command(self, executable: str, path: Path) -> list[str]:
        reserved = ','.join(f"'{name}'" for name in self.reserved)
        return [
            executable, str(path),
            '--compress',
            '--mangle', f'reserved=[{reserved}]',
            '--format', 'preamble=' + json.dumps(f'/*! {self.preamble} */'),
        ]

    def __call__(self, path: Path):
        if not (executable := self.terser.executable):
            raise ToolUnavailableError([self.terser])
        try:
            proc = subprocess.run(
                self.get_command(executable, path),
                capture_output=True,
                check=True,
                text=True,
                encoding=ENCODING,
            )
        except subprocess.CalledProcessError as e:
            raise TransformError(path, (e.stderr or '').strip() or e) from e
        except OSError as e:
            raise TransformError(path, e) from e
        return proc.stdout


class SCSSTransformer(Transformer):
    """
    SCSS compilation to compressed CSS with libsass. Imports are resolved
    against the file's own directory and @include_paths.
    """
    def __init__(self, include_paths: Iterable[Path] = ()):
        self.include_paths = list(include_paths)

    def get_dependencies(self):
        return {PipDependency('libsass', check_name='sass')}

    def rename(self, name: str):
        return re.sub(r'\.scss$', '.css', name, flags=re.IGNORECASE)

    def __call__(self, path: Path):
        import sass
        try:
            return sass.compile(
                string=read_file(path),
                output_style='compressed',
                include_paths=[str(p) for p in [path.parent, *self.include_paths]],
            )
        except sass.CompileError as e:
            raise TransformError(path, e) from e


PASS_THROUGH = PassThroughTransformer()


def default_transformers(context: Context) -> dict[AssetKind, Transformer]:
    """
    The transforms used for a release build of @context.
    """
    return {
        AssetKind.HTML: HTMLTransformer(),
        AssetKind.JSON: JSONTransformer(),
        AssetKind.JS: JSTransformer(context.metadata.preamble, context['root_dir']),
        AssetKind.SCSS: SCSSTransformer([context['src_dir'] / 'scss', context['assets_dir'] / 'scss']),
        AssetKind.OTHER: PASS_THROUGH,
    }


def minify(files: Iterable[Pattern],
           dest: Path,
           transformers: Mapping[AssetKind, Transformer],
           flatten: bool = True,
           roots: Sequence[Path] = ()) -> list[Path]:
    """
    Transform every file matching @files into @dest. Files are handled one at
    a time in match order, so output and overwrites are deterministic.
    """
    written: list[Path] = []
    for info in iter_files(files, roots, flatten):
        transformer = transformers.get(AssetKind.from_ext(info.ext), PASS_THROUGH)
        try:
            content = transformer(info.path)
        except BuildError:
            raise
        except OSError as e:
            raise TransformError(info.path, e) from e
        target = dest / transformer.rename(info.name)
        create_file(target, content)
        written.append(target)
    return written
