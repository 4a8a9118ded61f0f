from __future__ import annotations

import abc
import importlib
import shutil
from pathlib import Path


NODE_BIN_DIR = Path('node_modules') / '.bin'


def find_executable(name: str, root: Path | None = None) -> str | None:
    """
    Locate an executable, preferring a project-local node_modules/.bin under
    @root over the system PATH.
    """
    if root is not None:
        local = shutil.which(name, path=str(root / NODE_BIN_DIR))
        if local:
            return local
    return shutil.which(name)


class Dependency(abc.ABC):
    """
    A base class for trackable, evaluable dependencies.
    """

    @property
    @abc.abstractmethod
    def satisfied(self) -> bool:
        """
        A bool indicating whether this dependency is met.
        """

    @property
    @abc.abstractmethod
    def install_hint(self) -> str:
        """
        A string giving help on how to install this dependency.
        """

    def __repr__(self):
        return f'{self.__class__.__name__}({self}, satisfied={self.satisfied})'


class PipDependency(Dependency):
    """
    A Dependency on a pip-installable package.
    """
    def __init__(self,
                 name: str,
                 source: str | None = None,
                 check_name: str | None = None):
        self.name = name
        self.source = source or name
        self.check_name = check_name or name

    def __str__(self):
        return self.name

    @property
    def satisfied(self):
        try:
            importlib.import_module(self.check_name)
        except ImportError:
            return False
        return True

    @property
    def install_hint(self):
        return f'pip install {self.source}'


class NodeExecDependency(Dependency):
    """
    A Dependency on a command line tool distributed through npm. Tools
    installed into the project's node_modules are found as well as global
    ones.
    """
    def __init__(self,
                 name: str,
                 root: Path | None = None,
                 package: str | None = None):
        self.name = name
        self.root = root
        self.package = package or name

    def __str__(self):
        return self.name

    @property
    def executable(self):
        """
        Full path to the executable, or None if it cannot be found.
        """
        return find_executable(self.name, self.root)

    @property
    def satisfied(self):
        return bool(self.executable)

    @property
    def install_hint(self):
        return f'npm install --save-dev {self.package}'
