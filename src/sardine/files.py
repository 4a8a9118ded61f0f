"""
File matching and file operations used by the build stages.
"""
from __future__ import annotations

import glob
import os
import re
import shutil
import typing as t
from pathlib import Path

from .core import MatchError, ReadError, TransformError

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence


Pattern = t.Union[str, Path]
ENCODING = 'utf-8'


class FileDescriptor(t.NamedTuple):
    """
    A matched file along with the name it should get in a destination
    directory.
    """
    path: Path
    name: str
    ext: str


def find(patterns: Iterable[Pattern]) -> list[Path]:
    """
    Resolve glob @patterns (with ** support) to absolute paths. Matches are
    sorted within each pattern and deduplicated across patterns, keeping the
    first occurrence.
    """
    found: dict[Path, None] = {}
    for pattern in patterns:
        try:
            matches = sorted(glob.glob(str(pattern), recursive=True))
        except OSError as e:
            raise MatchError(f'Could not match {pattern}: {e}') from e
        for match in matches:
            # Symlinks stay unresolved so callers act on the link itself.
            found.setdefault(Path(os.path.abspath(match)), None)
    return list(found)


def relative_name(path: Path, roots: Sequence[Path], flatten: bool = True):
    """
    Compute the destination name for @path: relative to the first of @roots
    containing it, or just the file name if it is outside all of them or
    @flatten is set.
    """
    if flatten:
        return path.name
    for root in roots:
        if path.is_relative_to(root):
            return path.relative_to(root).as_posix()
    return path.name


def iter_files(patterns: Iterable[Pattern],
               roots: Sequence[Path] = (),
               flatten: bool = True) -> t.Iterator[FileDescriptor]:
    """
    Yield a FileDescriptor for every regular file matching @patterns, in
    match order.
    """
    roots = [Path(os.path.abspath(r)) for r in roots]
    for path in find(patterns):
        if not path.is_file():
            continue
        yield FileDescriptor(path, relative_name(path, roots, flatten), path.suffix[1:].lower())


def read_file(path: Path) -> str:
    try:
        return path.read_text(ENCODING)
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(f'Could not read {path}: {e}') from e


def create_file(path: Path, content: str | bytes):
    """
    Write @content to @path, removing any existing file first so the new file
    never shows up partially overwritten.
    """
    path.unlink(missing_ok=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, ENCODING, newline='\n')


def remove(patterns: Iterable[Pattern]):
    """
    Delete every file and directory tree matching @patterns. Nothing matching
    is not an error.
    """
    for path in find(patterns):
        if path.is_symlink() or not path.is_dir():
            path.unlink(missing_ok=True)
        else:
            shutil.rmtree(path)


def copy(files: Iterable[Pattern],
         exclude: Iterable[Pattern],
         dest: Path,
         flatten: bool = True,
         roots: Sequence[Path] = ()):
    """
    Copy the files matching @files into @dest, skipping any file that is also
    matched by @exclude. Returns the written paths.
    """
    excluded = set(find(exclude))
    written: list[Path] = []
    for info in iter_files(files, roots, flatten):
        if info.path in excluded:
            continue
        target = dest / info.name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy(info.path, target)
        except OSError as e:
            raise TransformError(info.path, e) from e
        written.append(target)
    return written


def concat(files: Iterable[Pattern], output: Path):
    """
    Join the contents of every file matching @files into @output.
    """
    contents = [read_file(p) for p in find(files) if p.is_file()]
    create_file(output, '\n'.join(contents))


def replace(files: Mapping[Path, Path], replacements: Sequence[tuple[str | re.Pattern[str], str]]):
    """
    For each source and destination pair in @files, apply the regex
    @replacements in order to the source content and write the result to the
    destination.
    """
    for src, dest in files.items():
        content = read_file(src)
        for pattern, repl in replacements:
            content = re.sub(pattern, repl, content)
        create_file(dest, content)
