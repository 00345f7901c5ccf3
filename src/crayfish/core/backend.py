"""Taichi runtime initialization.

Taichi must be initialized before any module that declares fields is
imported. Every ``ti.random`` call inside a kernel draws from a per-thread
generator whose states are derived from ``seed``, so pixels rendered on
different worker threads never share generator state.
"""

from __future__ import annotations

import logging

import taichi as ti

logger = logging.getLogger(__name__)


def init_backend(*, prefer_gpu: bool = True, seed: int = 0, cpu_threads: int | None = None) -> str:
    """Initialize Taichi, falling back to the CPU backend.

    Args:
        prefer_gpu: Try the GPU backend first.
        seed: Seed for the per-thread random generators.
        cpu_threads: Optional cap on the CPU worker pool size. A single
            thread makes CPU renders reproducible for a given seed.

    Returns:
        "gpu" or "cpu", naming the backend in use.
    """
    cpu_options = {}
    if cpu_threads is not None:
        cpu_options["cpu_max_num_threads"] = cpu_threads

    if prefer_gpu:
        try:
            ti.init(arch=ti.gpu, random_seed=seed)
            logger.info("Using GPU backend (seed=%d)", seed)
            return "gpu"
        except Exception as exc:  # noqa: BLE001 - taichi raises bare Exception/RuntimeError
            logger.warning("GPU backend unavailable (%s), falling back to CPU", exc)

    ti.init(arch=ti.cpu, random_seed=seed, **cpu_options)
    logger.info("Using CPU backend (seed=%d)", seed)
    return "cpu"
