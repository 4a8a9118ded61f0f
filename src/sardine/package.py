"""
Packing the build output into a release archive.
"""
import zipfile
from pathlib import Path

from .core import PackageError


def zip_directory(source_dir: Path, dest: Path) -> Path:
    """
    Archive every file below @source_dir into the zip file @dest, with entry
    names relative to @source_dir.
    """
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(dest, 'w', zipfile.ZIP_DEFLATED) as archive:
            for path in sorted(source_dir.rglob('*')):
                if path.is_file():
                    archive.write(path, path.relative_to(source_dir).as_posix())
    except OSError as e:
        raise PackageError(f'Could not create {dest} from {source_dir}: {e}') from e
    return dest
