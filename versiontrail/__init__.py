"""Browse a repository's history and restore earlier versions without rewriting it."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("versiontrail")
except PackageNotFoundError:
    # Fallback for development mode
    __version__ = "0.0.0-dev"
