"""Runtime feature detection for optional extras.

Checks availability of optional dependencies to determine which
capabilities can be used.
"""
from __future__ import annotations

import importlib.util


def _check_import(module_name: str) -> bool:
    """Check if a module is importable."""
    return importlib.util.find_spec(module_name) is not None


HAS_KEYRING: bool = _check_import("keyring")
HAS_HTTP2: bool = _check_import("h2")


def require_extra(extra_name: str, package_name: str) -> None:
    """Raise ImportError with installation hint if extra is not available.

    Args:
        extra_name: Name of the pip extra (e.g., 'keyring')
        package_name: Name of the required package (e.g., 'keyring')

    Raises:
        ImportError: With installation instructions when package is not available.
    """
    if _check_import(package_name):
        return
    raise ImportError(
        f"The '{extra_name}' extra is required for this feature. "
        f"Install it with: pip install tradestation-api-python[{extra_name}]"
    )
