"""
Configuration management for shellmark.

Provides a hierarchical configuration with sensible defaults. The resulting
ShellmarkConfig is passed explicitly to the store, the browser and the emitter;
there is no process-wide instance.
"""
import os
import tomli
import tomli_w
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict

from shellmark.constants import DEFAULT_ALIAS, DEFAULT_DIALECT
from shellmark.utils import default_store_path

ENV_PREFIX = "SHELLMARK_"


def user_config_path() -> Path:
    """Location of the per-user config file."""
    return Path.home() / ".config" / "shellmark" / "config.toml"


@dataclass
class ShellmarkConfig:
    """
    shellmark configuration with sensible defaults.

    Configuration hierarchy (highest to lowest priority):
    1. Command-line arguments
    2. Environment variables (SHELLMARK_*)
    3. Config file given with --config
    4. User config file (~/.config/shellmark/config.toml)
    5. System defaults
    """

    # Store settings
    store: str = field(default_factory=lambda: str(default_store_path()))

    # Shell integration
    out: str = field(default=DEFAULT_DIALECT)
    alias: str = field(default=DEFAULT_ALIAS)
    editor: Optional[str] = field(default=None)

    # Display
    color_output: bool = field(default=True)
    log_level: str = field(default="WARNING")

    # Where this config was loaded from, for `diag`
    config_file: Optional[str] = field(default=None, repr=False, compare=False)

    @classmethod
    def load(cls, config_file: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> "ShellmarkConfig":
        """
        Load configuration from files and environment.

        Args:
            config_file: Specific config file to load on top of the user config
            environ: Environment to read (defaults to os.environ)

        Returns:
            Merged configuration object
        """
        environ = os.environ if environ is None else environ
        config = cls()
        config.editor = environ.get("EDITOR") or None

        user_path = user_config_path()
        if user_path.exists():
            config._merge(cls._load_toml(user_path))
            config.config_file = str(user_path)

        if config_file and Path(config_file).exists():
            config._merge(cls._load_toml(Path(config_file)))
            config.config_file = str(config_file)

        config._apply_env_vars(environ)
        config._expand_paths()

        return config

    @staticmethod
    def _load_toml(path: Path) -> Dict[str, Any]:
        """Load TOML configuration file."""
        with open(path, "rb") as f:
            return tomli.load(f)

    def _merge(self, data: Dict[str, Any]):
        """Merge configuration data into this instance."""
        for key, value in data.items():
            if key != "config_file" and hasattr(self, key):
                setattr(self, key, value)

    def _apply_env_vars(self, environ: Dict[str, str]):
        """Apply environment variables with SHELLMARK_ prefix."""
        for key, value in environ.items():
            if key.startswith(ENV_PREFIX):
                config_key = key[len(ENV_PREFIX):].lower()
                if config_key != "config_file" and hasattr(self, config_key):
                    current_value = getattr(self, config_key)
                    if isinstance(current_value, bool):
                        setattr(self, config_key, value.lower() in ("true", "1", "yes"))
                    else:
                        setattr(self, config_key, value)

    def _expand_paths(self):
        """Expand ~ and environment variables in the store path."""
        if isinstance(self.store, str):
            self.store = os.path.expanduser(os.path.expandvars(self.store))

    def save(self, path: Optional[Path] = None):
        """
        Save current configuration to a TOML file.

        Args:
            path: Path to save to (defaults to the user config)
        """
        if path is None:
            path = user_config_path()

        path.parent.mkdir(parents=True, exist_ok=True)

        data = {k: v for k, v in asdict(self).items() if v is not None and k != "config_file"}
        with open(path, "wb") as f:
            tomli_w.dump(data, f)

    def get_store_path(self) -> Path:
        """Get the resolved store path."""
        path = Path(self.store)
        if not path.is_absolute():
            path = Path.cwd() / path
        return path


def init_config(config_file: Optional[Path] = None, environ: Optional[Dict[str, str]] = None, **overrides) -> ShellmarkConfig:
    """
    Build a configuration with command-line overrides applied.

    Args:
        config_file: Optional config file path
        environ: Environment to read (defaults to os.environ)
        **overrides: Values from the command line; None values are ignored

    Returns:
        Configured instance
    """
    config = ShellmarkConfig.load(config_file, environ=environ)

    for key, value in overrides.items():
        if hasattr(config, key) and value is not None:
            setattr(config, key, value)

    config._expand_paths()
    return config
