from __future__ import annotations

"""High-level orchestration services.

Services are instantiated directly; collaborators (merge engine, version
resolver, configuration) are passed in rather than looked up globally.
"""

from .manifest_service import ManifestService, ManifestStep, RefreshStep  # noqa: F401

__all__: list[str] = [
    "ManifestService",
    "ManifestStep",
    "RefreshStep",
]
