"""peerbrowse - browse the shared directories of a Soulseek peer."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("peerbrowse")
except PackageNotFoundError:
    __version__ = "0.0.0"
