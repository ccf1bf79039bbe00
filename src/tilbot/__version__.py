"""Version of the installed tilbot distribution."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tilbot")
except PackageNotFoundError:
    # Running from a source checkout that was never installed
    __version__ = "0.0.0-dev"


def get_version_info() -> dict[str, str | int]:
    """Split ``__version__`` for the ``/version`` endpoint.

    The patch component keeps any pre-release suffix (``"0-dev"``).
    """
    major, _, rest = __version__.partition(".")
    minor, _, patch = rest.partition(".")
    return {
        "major": int(major) if major.isdigit() else 0,
        "minor": int(minor) if minor.isdigit() else 0,
        "patch": patch or "0",
        "full": __version__,
    }
