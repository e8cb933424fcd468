"""Pipeline parameter files.

A parameter file is a flat YAML mapping holding the arguments of one
refinement run: the input directory, the plugin, the output folders,
the worker count, the resource version, and the overwrite flag. Relative
paths are resolved against the directory of the parameter file, so a
file kept beside its data runs the same from any working directory.

Example::

    input_dir: drafts
    plugin: refine_plugin.py
    refined_dir: refinedReconstructions
    summary_dir: refinementSummary
    num_workers: 4
    resource_version: Reconstructions
    unmapped_fields: [untranslatedMets, untranslatedRxns]
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, cast

from core.constants import (
    DEFAULT_RESOURCE_VERSION,
    DEFAULT_UNMAPPED_FIELDS,
    SUPPORTED_EXECUTOR_KINDS,
)
from core.errors import RefineryDependencyError, RefineryParamsError
from core.types import ExecutorKind, RefinementOptions

_PATH_KEYS = (
    "input_dir",
    "plugin",
    "refined_dir",
    "translated_dir",
    "summary_dir",
    "info_file",
    "input_data_dir",
    "export_dir",
)
_ALLOWED_KEYS = frozenset(
    (*_PATH_KEYS, "num_workers", "executor", "resource_version", "overwrite", "unmapped_fields")
)


def load_pipeline_params(params_path: str) -> RefinementOptions:
    """Load and validate a pipeline parameter file.

    Args:
        params_path: Path to the YAML parameter file.

    Returns:
        Refine options with paths resolved against the file.

    Raises:
        RefineryDependencyError: If PyYAML is unavailable.
        RefineryParamsError: If the file is missing, malformed, or holds
            unknown or mistyped keys.
    """
    params_file = Path(params_path).expanduser().resolve()
    mapping = _read_mapping(params_file)
    unknown_keys = sorted(set(mapping) - _ALLOWED_KEYS)
    if unknown_keys:
        raise RefineryParamsError(
            f"Parameter file {params_file} has unknown keys: {', '.join(unknown_keys)}. "
            f"Supported keys: {', '.join(sorted(_ALLOWED_KEYS))}."
        )
    base_dir = params_file.parent
    paths = {key: _path_value(mapping, key, base_dir) for key in _PATH_KEYS}
    input_dir = paths["input_dir"]
    plugin_path = paths["plugin"]
    if input_dir is None or plugin_path is None:
        raise RefineryParamsError(
            f"Parameter file {params_file} must set both 'input_dir' and 'plugin'."
        )
    return RefinementOptions(
        input_dir=input_dir,
        plugin_path=plugin_path,
        refined_dir=paths["refined_dir"],
        translated_dir=paths["translated_dir"],
        summary_dir=paths["summary_dir"],
        info_file_path=paths["info_file"],
        input_data_dir=paths["input_data_dir"],
        num_workers=_num_workers(mapping),
        resource_version=_string_value(mapping, "resource_version") or DEFAULT_RESOURCE_VERSION,
        export_dir=paths["export_dir"],
        overwrite=_overwrite(mapping),
        executor=_executor(mapping),
        unmapped_fields=_unmapped_fields(mapping),
    )


def _read_mapping(params_file: Path) -> Mapping[str, object]:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise RefineryDependencyError(
            "Parameter files require PyYAML. Install the pyyaml package."
        ) from error
    if not params_file.is_file():
        raise RefineryParamsError(
            f"Parameter file does not exist at {params_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(params_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise RefineryParamsError(
            f"Failed to read parameter file {params_file}: {error}."
        ) from error
    except yaml.YAMLError as error:
        raise RefineryParamsError(
            f"Failed to parse parameter file {params_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if not isinstance(payload, dict) or not all(isinstance(key, str) for key in payload):
        raise RefineryParamsError(
            f"Parameter file {params_file} must hold a mapping of parameter names to values."
        )
    return payload


def _string_value(mapping: Mapping[str, object], key: str) -> str | None:
    value = mapping.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RefineryParamsError(f"Parameter '{key}' must be a string.")
    return value.strip() or None


def _path_value(mapping: Mapping[str, object], key: str, base_dir: Path) -> str | None:
    value = _string_value(mapping, key)
    if value is None:
        return None
    return str((base_dir / Path(value).expanduser()).resolve())


def _num_workers(mapping: Mapping[str, object]) -> int | None:
    value = mapping.get("num_workers")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise RefineryParamsError(
            "Parameter 'num_workers' must be a non-negative integer, 0 for serial execution."
        )
    return value


def _overwrite(mapping: Mapping[str, object]) -> bool:
    value = mapping.get("overwrite", False)
    if not isinstance(value, bool):
        raise RefineryParamsError("Parameter 'overwrite' must be true or false.")
    return value


def _executor(mapping: Mapping[str, object]) -> ExecutorKind | None:
    value = _string_value(mapping, "executor")
    if value is None:
        return None
    if value not in SUPPORTED_EXECUTOR_KINDS:
        raise RefineryParamsError(
            f"Invalid executor '{value}'. Use one of: {', '.join(SUPPORTED_EXECUTOR_KINDS)}."
        )
    return cast(ExecutorKind, value)


def _unmapped_fields(mapping: Mapping[str, object]) -> tuple[str, ...]:
    value = mapping.get("unmapped_fields")
    if value is None:
        return DEFAULT_UNMAPPED_FIELDS
    if not isinstance(value, list) or not all(isinstance(row, str) for row in value):
        raise RefineryParamsError("Parameter 'unmapped_fields' must be a list of field names.")
    return tuple(row.strip() for row in value if row.strip())
