"""Chart manifest and values loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple

import yaml

from chart_docs.core import CHART_MANIFEST, read_text_file

__all__ = [
    "Chart",
    "ChartDependency",
    "ChartError",
    "Maintainer",
    "VALUES_FILENAME",
    "load_chart",
]

VALUES_FILENAME = "values.yaml"
_FILE_SCHEME = "file://"


class ChartError(RuntimeError):
    """Raised when a chart's manifest or values cannot be loaded."""


@dataclass(frozen=True)
class Maintainer:
    name: str
    email: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class ChartDependency:
    """A ``dependencies`` item from ``Chart.yaml``."""

    name: str
    version: Optional[str] = None
    repository: Optional[str] = None
    alias: Optional[str] = None
    condition: Optional[str] = None

    @property
    def mount(self) -> str:
        """Values key the dependency's settings live under."""

        return self.alias or self.name

    def locate(self, chart_dir: Path) -> Optional[Path]:
        """Return the local directory of this dependency, if there is one."""

        candidates = []
        if self.repository and self.repository.startswith(_FILE_SCHEME):
            relative = self.repository[len(_FILE_SCHEME):]
            candidates.append((chart_dir / relative).resolve())
        candidates.append((chart_dir / "charts" / self.name).resolve())
        for candidate in candidates:
            if (candidate / CHART_MANIFEST).is_file():
                return candidate
        return None


@dataclass(frozen=True)
class Chart:
    """A chart directory with its manifest and values loaded."""

    path: Path
    name: str
    version: Optional[str] = None
    app_version: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    home: Optional[str] = None
    sources: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    maintainers: Tuple[Maintainer, ...] = ()
    dependencies: Tuple[ChartDependency, ...] = ()
    values: Any = field(default=None, compare=False, repr=False)
    values_text: str = field(default="", compare=False, repr=False)
    values_path: Optional[Path] = None

    @property
    def identity(self) -> str:
        """Stable key for memoising builds."""

        return str(self.path)


def load_chart(path: Path) -> Chart:
    """Load ``Chart.yaml`` and ``values.yaml`` from the chart at ``path``."""

    chart_dir = Path(path).expanduser().resolve()
    manifest_path = chart_dir / CHART_MANIFEST
    if not manifest_path.is_file():
        raise ChartError(f"No {CHART_MANIFEST} found in {chart_dir}")

    manifest = _load_yaml(manifest_path)
    if not isinstance(manifest, Mapping):
        raise ChartError(f"{manifest_path} must contain a mapping.")
    name = _optional_str(manifest.get("name"))
    if not name:
        raise ChartError(f"{manifest_path} is missing the chart name.")

    values_path: Optional[Path] = None
    values_text = ""
    values: Any = None
    candidate = chart_dir / VALUES_FILENAME
    if candidate.is_file():
        values_path = candidate
        values_text = _read_text(candidate)
        values = _parse_yaml(values_text, candidate)

    return Chart(
        path=chart_dir,
        name=name,
        version=_optional_str(manifest.get("version")),
        app_version=_optional_str(manifest.get("appVersion")),
        description=_optional_str(manifest.get("description")),
        type=_optional_str(manifest.get("type")),
        home=_optional_str(manifest.get("home")),
        sources=_str_tuple(manifest.get("sources")),
        keywords=_str_tuple(manifest.get("keywords")),
        maintainers=_maintainers(manifest.get("maintainers")),
        dependencies=_dependencies(manifest.get("dependencies"), manifest_path),
        values=values,
        values_text=values_text,
        values_path=values_path,
    )


def _load_yaml(path: Path) -> Any:
    return _parse_yaml(_read_text(path), path)


def _read_text(path: Path) -> str:
    try:
        return read_text_file(path)
    except OSError as exc:
        raise ChartError(f"Failed to read {path}: {exc}") from exc


def _parse_yaml(text: str, path: Path) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ChartError(f"Failed to parse {path}: {exc}") from exc


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _str_tuple(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, Sequence) or isinstance(value, str):
        return ()
    return tuple(str(item) for item in value if item is not None)


def _maintainers(value: Any) -> Tuple[Maintainer, ...]:
    if not isinstance(value, Sequence) or isinstance(value, str):
        return ()
    result = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        name = _optional_str(item.get("name"))
        if not name:
            continue
        result.append(
            Maintainer(
                name=name,
                email=_optional_str(item.get("email")),
                url=_optional_str(item.get("url")),
            )
        )
    return tuple(result)


def _dependencies(
    value: Any, manifest_path: Path
) -> Tuple[ChartDependency, ...]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise ChartError(f"{manifest_path}: dependencies must be a list.")
    result = []
    for item in value:
        if not isinstance(item, Mapping) or not _optional_str(item.get("name")):
            raise ChartError(
                f"{manifest_path}: every dependency needs a name."
            )
        result.append(
            ChartDependency(
                name=str(item["name"]).strip(),
                version=_optional_str(item.get("version")),
                repository=_optional_str(item.get("repository")),
                alias=_optional_str(item.get("alias")),
                condition=_optional_str(item.get("condition")),
            )
        )
    return tuple(result)
