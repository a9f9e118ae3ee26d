"""agentstore — local persistence for an agent process. Migrations first, then keys."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("agentstore")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development
