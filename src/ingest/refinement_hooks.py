"""Refinement plugin loader.

This module loads the user-provided Python file that supplies the
external collaborators of a run: artifact loading, per-item refinement,
translation, artifact storage, canonical ids, and export.
"""

from __future__ import annotations

import hashlib
import importlib.util
import pickle
import threading
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, cast

from core.constants import DEFAULT_ARTIFACT_SUFFIX, PLUGIN_MODULE_PREFIX
from core.errors import RefineryPersistError, RefineryPluginError
from core.types import RefinementContext
from transforms.item_deduplication import canonical_item_id

LoadArtifactCallable = Callable[[str], object]
RefineCallable = Callable[[object, str, RefinementContext], tuple[object, object]]
TranslateCallable = Callable[[object], object]
StoreArtifactCallable = Callable[[str, object], None]
CanonicalizeCallable = Callable[[str], str]
InitializeCallable = Callable[[dict[str, object]], object]
ExportCallable = Callable[[str, str], None]

_HOOKS_LOCK = threading.Lock()


@dataclass(frozen=True)
class RefinementHooks:
    """Validated callables exposed by a refinement plugin.

    Attributes:
        plugin_path: Resolved plugin file path.
        load_artifact: Reads one input artifact from disk.
        refine: Produces ``(artifact, summary)`` for one item.
        store_artifact: Persists one artifact to a path.
        canonicalize: Derives the canonical id from a file name.
        artifact_suffix: Extension of persisted artifact files.
        translate: Optional translation step for secondary-format items.
        initialize: Optional one-time solver/environment setup.
        export: Optional export of the refined directory.
    """

    plugin_path: str
    load_artifact: LoadArtifactCallable
    refine: RefineCallable
    store_artifact: StoreArtifactCallable
    canonicalize: CanonicalizeCallable
    artifact_suffix: str
    translate: TranslateCallable | None = None
    initialize: InitializeCallable | None = None
    export: ExportCallable | None = None


def load_refinement_hooks(plugin_path: str) -> RefinementHooks:
    """Load and validate refinement hooks from a plugin file.

    Args:
        plugin_path: Path to the Python plugin file.

    Returns:
        Validated hooks.

    Raises:
        RefineryPluginError: If the file is missing, fails to import,
            or lacks a required hook.
    """
    resolved_path = Path(plugin_path).expanduser().resolve()
    if not resolved_path.exists():
        raise RefineryPluginError(
            f"Refinement plugin not found at {resolved_path}. "
            "Provide a valid --plugin path."
        )
    module = _load_python_module(resolved_path)
    return RefinementHooks(
        plugin_path=str(resolved_path),
        load_artifact=cast(
            LoadArtifactCallable, _required_callable(module, "load_artifact", resolved_path)
        ),
        refine=cast(RefineCallable, _required_callable(module, "refine", resolved_path)),
        store_artifact=cast(
            StoreArtifactCallable,
            _optional_callable(module, "store_artifact", resolved_path) or pickle_artifact,
        ),
        canonicalize=cast(
            CanonicalizeCallable,
            _optional_callable(module, "canonicalize", resolved_path) or canonical_item_id,
        ),
        artifact_suffix=_artifact_suffix(module, resolved_path),
        translate=cast(
            "TranslateCallable | None", _optional_callable(module, "translate", resolved_path)
        ),
        initialize=cast(
            "InitializeCallable | None", _optional_callable(module, "initialize", resolved_path)
        ),
        export=cast("ExportCallable | None", _optional_callable(module, "export", resolved_path)),
    )


def resolve_refinement_hooks(plugin_path: str) -> RefinementHooks:
    """Return hooks for a plugin, loading the file once per process.

    The driver and every worker call this, so each process executes the
    plugin module once and pool threads share that single load.
    """
    resolved_path = str(Path(plugin_path).expanduser().resolve())
    with _HOOKS_LOCK:
        return _cached_refinement_hooks(resolved_path)


@lru_cache(maxsize=None)
def _cached_refinement_hooks(resolved_path: str) -> RefinementHooks:
    return load_refinement_hooks(resolved_path)


def pickle_artifact(path: str, artifact: object) -> None:
    """Default artifact writer used when a plugin defines none."""
    try:
        with open(path, "wb") as handle:
            pickle.dump(artifact, handle)
    except (OSError, pickle.PicklingError) as error:
        raise RefineryPersistError(
            f"Failed to pickle artifact to {path}: {error}. "
            "Define store_artifact(path, artifact) in the plugin for unpicklable artifacts."
        ) from error


def _load_python_module(module_path: Path) -> Any:
    """Load Python module from file path."""
    path_digest = hashlib.sha256(str(module_path).encode("utf-8")).hexdigest()[:12]
    spec = importlib.util.spec_from_file_location(
        f"{PLUGIN_MODULE_PREFIX}_{path_digest}", str(module_path)
    )
    if spec is None or spec.loader is None:
        raise RefineryPluginError(
            f"Failed to load refinement plugin at {module_path}. "
            "Verify the file path and syntax."
        )
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as error:
        raise RefineryPluginError(
            f"Failed to import refinement plugin at {module_path}: {error}. "
            "Fix the plugin module and retry."
        ) from error
    return module


def _required_callable(module: Any, name: str, module_path: Path) -> Callable[..., Any]:
    hook = _optional_callable(module, name, module_path)
    if hook is None:
        raise RefineryPluginError(
            f"Invalid refinement plugin at {module_path}: missing callable {name}()."
        )
    return hook


def _optional_callable(module: Any, name: str, module_path: Path) -> Callable[..., Any] | None:
    hook = getattr(module, name, None)
    if hook is None:
        return None
    if not callable(hook):
        raise RefineryPluginError(
            f"Invalid refinement plugin at {module_path}: attribute '{name}' is not callable."
        )
    return cast(Callable[..., Any], hook)


def _artifact_suffix(module: Any, module_path: Path) -> str:
    suffix = getattr(module, "ARTIFACT_SUFFIX", DEFAULT_ARTIFACT_SUFFIX)
    if not isinstance(suffix, str) or not suffix.startswith(".") or len(suffix) < 2:
        raise RefineryPluginError(
            f"Invalid refinement plugin at {module_path}: ARTIFACT_SUFFIX must be a "
            f"string like '.mat', got {suffix!r}."
        )
    return suffix
