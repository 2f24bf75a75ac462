"""uv integration."""

from pyparcel.uv.client import build_package, publish_distributions, run_uv_async

__all__ = ["build_package", "publish_distributions", "run_uv_async"]
