"""Configuration loader for README generation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional, Sequence

from chart_docs.core import config as core_config
from chart_docs.core import workspace as workspace_mod
from chart_docs.document import SortOrder, SortOrderError

__all__ = [
    "CONFIG_ENV",
    "CONFIG_FILENAME",
    "ConfigOverrides",
    "ENV_PREFIX",
    "GenerateConfig",
    "GenerateConfigError",
    "LoadResult",
    "load_config",
]

CONFIG_FILENAME = "chart_docs.toml"
CONFIG_ENV = "CHART_DOCS_CONFIG"
ENV_PREFIX = "CHART_DOCS_"

_DEFAULT_IGNORE_FILE = ".chartdocsignore"
_DEFAULT_OUTPUT_FILE = "README.md"
_DEFAULT_TEMPLATE_FILE = "README.md.j2"
_DEFAULT_SORT_ORDER = SortOrder.ALPHANUM.value
_DEFAULT_LOG_LEVEL = "INFO"

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


class GenerateConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class GenerateConfig:
    """Fully resolved settings for a generation run."""

    search_root: Path
    ignore_file: Optional[str]
    output_file: str
    template_file: str
    sort_order: SortOrder
    document_dependency_values: bool
    exclude_dependencies: tuple[str, ...]
    jobs: int
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    search_root: Optional[Path] = None
    ignore_file: Optional[str] = None
    output_file: Optional[str] = None
    template_file: Optional[str] = None
    sort_order: Optional[SortOrder] = None
    document_dependency_values: Optional[bool] = None
    exclude_dependencies: Optional[Sequence[str]] = None
    jobs: Optional[int] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Result of loading configuration, including workspace context."""

    config: GenerateConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise GenerateConfigError(str(exc)) from exc

    loaded_path = _find_config_file(
        config_path=config_path,
        env_map=env_map,
        workspace_default=layout.path_for("config") / CONFIG_FILENAME,
    )

    table = _default_table()
    if loaded_path is not None:
        try:
            parsed = core_config.load_toml(loaded_path)
            core_config.merge_defaults(table, parsed)
        except core_config.TomlConfigError as exc:
            raise GenerateConfigError(str(exc)) from exc

    search_root = _pick_first(
        overrides.search_root,
        _env_path(env_map, "CHART_SEARCH_ROOT"),
        _coerce_path(table["search"]["root"], "search.root"),
    )
    ignore_file = _pick_first(
        overrides.ignore_file,
        _env_string(env_map, "IGNORE_FILE"),
        _coerce_optional_str(
            table["search"]["ignore_file"], "search.ignore_file"
        ),
    )
    output_file = _pick_first(
        overrides.output_file,
        _env_string(env_map, "OUTPUT_FILE"),
        _coerce_str(table["output"]["file"], "output.file"),
    )
    template_file = _pick_first(
        overrides.template_file,
        _env_string(env_map, "TEMPLATE_FILE"),
        _coerce_str(table["output"]["template"], "output.template"),
    )
    sort_order = _resolve_sort_order(
        overrides.sort_order,
        _env_string(env_map, "SORT_VALUES_ORDER"),
        table["values"]["sort_order"],
    )
    document_dependencies = _pick_first(
        overrides.document_dependency_values,
        _env_bool(env_map, "DOCUMENT_DEPENDENCY_VALUES"),
        _coerce_bool(
            table["values"]["document_dependency_values"],
            "values.document_dependency_values",
        ),
    )
    exclude = _pick_first(
        overrides.exclude_dependencies,
        _env_list(env_map, "EXCLUDE_DEPENDENCIES"),
        _coerce_str_list(
            table["values"]["exclude_dependencies"],
            "values.exclude_dependencies",
        ),
    )
    jobs = _pick_first(
        overrides.jobs,
        _env_int(env_map, "JOBS"),
        table["execution"]["jobs"],
    )
    log_level = _pick_first(
        overrides.log_level,
        _env_string(env_map, "LOG_LEVEL"),
        table["logging"]["level"],
    )

    config = GenerateConfig(
        search_root=Path(search_root).expanduser().resolve(),
        ignore_file=ignore_file,
        output_file=_validate_filename(output_file, "output.file"),
        template_file=_validate_filename(template_file, "output.template"),
        sort_order=sort_order,
        document_dependency_values=bool(document_dependencies),
        exclude_dependencies=tuple(exclude),
        jobs=_validate_jobs(jobs),
        log_level=_validate_log_level(log_level),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    return {
        "search": {"root": ".", "ignore_file": _DEFAULT_IGNORE_FILE},
        "output": {
            "file": _DEFAULT_OUTPUT_FILE,
            "template": _DEFAULT_TEMPLATE_FILE,
        },
        "values": {
            "sort_order": _DEFAULT_SORT_ORDER,
            "document_dependency_values": False,
            "exclude_dependencies": [],
        },
        "execution": {"jobs": 1},
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _find_config_file(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    workspace_default: Path,
) -> Optional[Path]:
    if config_path is not None:
        candidate = config_path.expanduser()
        if not candidate.is_file():
            raise GenerateConfigError(f"Config file not found: {candidate}")
        return candidate
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        candidate = Path(env_candidate).expanduser()
        if not candidate.is_file():
            raise GenerateConfigError(f"Config file not found: {candidate}")
        return candidate
    for candidate in (workspace_default, Path.cwd() / CONFIG_FILENAME):
        if candidate.is_file():
            return candidate
    return None


def _resolve_sort_order(
    override: Optional[SortOrder],
    env_value: Optional[str],
    file_value: object,
) -> SortOrder:
    candidate = _pick_first(override, env_value, file_value)
    if not isinstance(candidate, (str, SortOrder)):
        raise GenerateConfigError("values.sort_order must be a string.")
    try:
        return SortOrder.from_value(candidate)
    except SortOrderError as exc:
        raise GenerateConfigError(str(exc)) from exc


def _validate_filename(value: object, key: str) -> str:
    text = _coerce_str(value, key)
    if Path(text).name != text:
        raise GenerateConfigError(f"{key} must be a bare file name.")
    return text


def _validate_jobs(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise GenerateConfigError("execution.jobs must be an integer.")
    if value < 1:
        raise GenerateConfigError("execution.jobs must be >= 1.")
    return value


def _validate_log_level(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise GenerateConfigError(
            "logging.level must be a non-empty string."
        )
    return value.strip().upper()


def _coerce_str(value: object, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise GenerateConfigError(f"{key} must be a non-empty string.")
    return value.strip()


def _coerce_optional_str(value: object, key: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise GenerateConfigError(f"{key} must be a string.")
    return value.strip() or None


def _coerce_path(value: object, key: str) -> Path:
    return Path(_coerce_str(value, key))


def _coerce_bool(value: object, key: str) -> bool:
    if not isinstance(value, bool):
        raise GenerateConfigError(f"{key} must be a boolean.")
    return value


def _coerce_str_list(value: object, key: str) -> list[str]:
    if not isinstance(value, list) or not all(
        isinstance(item, str) for item in value
    ):
        raise GenerateConfigError(f"{key} must be a list of strings.")
    return [item.strip() for item in value if item.strip()]


def _env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _env_path(env_map: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    return Path(raw).expanduser()


def _env_bool(env_map: Mapping[str, str], key: str) -> Optional[bool]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    lowered = raw.lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    raise GenerateConfigError(
        f"{ENV_PREFIX}{key} must be a boolean (true/false), got '{raw}'."
    )


def _env_int(env_map: Mapping[str, str], key: str) -> Optional[int]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise GenerateConfigError(
            f"{ENV_PREFIX}{key} must be an integer, got '{raw}'."
        ) from exc


def _env_list(env_map: Mapping[str, str], key: str) -> Optional[list[str]]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    parts = [part for part in raw.replace(",", " ").split() if part]
    return parts or None


def _pick_first(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
