"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path


class ConfigError(Exception):
    """Error in livestate configuration."""


@dataclass(slots=True, frozen=True)
class LivestateConfig:
    """Configuration loaded from the ``[tool.livestate]`` table.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    app: Path | None = None
    environment: str | None = None
    output: Path | None = None
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_path(section: dict[str, object], key: str, project_root: Path) -> Path | None:
    if key not in section:
        return None
    value = section[key]
    if not isinstance(value, str):
        msg = f"Invalid [tool.livestate].{key}: expected string path"
        raise ConfigError(msg)
    path = Path(value)
    if not path.is_absolute():
        path = project_root / path
    return path


def load_config(pyproject_path: Path) -> LivestateConfig:
    """Load and validate [tool.livestate] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed LivestateConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("livestate", {})

    if not section:
        # No [tool.livestate] section - return empty config
        return LivestateConfig(project_root=project_root)

    environment = section.get("environment")
    if environment is not None and not isinstance(environment, str):
        msg = "Invalid [tool.livestate].environment: expected string"
        raise ConfigError(msg)

    return LivestateConfig(
        app=_parse_path(section, "app", project_root),
        environment=environment,
        output=_parse_path(section, "output", project_root),
        project_root=project_root,
    )


def get_config() -> LivestateConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        LivestateConfig (may be empty if no pyproject.toml or no [tool.livestate] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return LivestateConfig()
    return load_config(pyproject_path)
