"""StormDash package exports."""

from importlib import metadata

try:  # pragma: no cover
	__version__ = metadata.version("stormdash")
except metadata.PackageNotFoundError:  # pragma: no cover
	__version__ = "0.0.0"

__all__ = ["__version__"]
