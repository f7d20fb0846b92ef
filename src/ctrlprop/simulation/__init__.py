"""
Run layer: params files, single runs and saved results.
"""

from .runner import RunConfig, build_device, load_params, run_from_file, run_one, save_results

__all__ = [
    "RunConfig",
    "build_device",
    "load_params",
    "run_from_file",
    "run_one",
    "save_results",
]
