"""Config commands -- view and modify the global configuration.

Provides the ``foli config`` sub-command group for reading, updating and
resetting :class:`~foli.models.GlobalConfig`, persisted as ``config.json``
in the foli config directory.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from foli.config import get_config_dir, load_global_config, save_global_config
from foli.exceptions import InvalidUsageError
from foli.models import GlobalConfig
from foli.output import info, print_json, success


config_app = typer.Typer(no_args_is_help=True)

_NULL_VALUES = ("none", "null")


@config_app.command("show")
def config_show() -> None:
    """Show the stored configuration.

    Environment variables and CLI flags are not applied here; this is the
    file on disk (or the defaults if there is none).

    Example::

        foli config show
    """
    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    print_json(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key in dot notation, e.g. 'cache.preset'."),
    value: str = typer.Argument(help="Value to set; 'none' clears an optional field."),
) -> None:
    """Set a configuration value.

    The string is coerced by validating the updated config against
    :class:`~foli.models.GlobalConfig`, so ``3600`` becomes a number,
    ``false`` a boolean and ``short-lived`` a preset.

    Raises:
        InvalidUsageError: If the key does not exist or the value does not
            validate.

    Example::

        foli config set cache.preset short-lived
        foli config set cache.validity_seconds 7200
        foli config set default_behavior cached-only
        foli config set feed.gtfs_base_url http://localhost:8000/gtfs
    """
    data = load_global_config().model_dump(mode="json")

    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            raise InvalidUsageError(f"Invalid config key: {key}")
        target = target[part]

    final_key = parts[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        raise InvalidUsageError(f"Unknown config key: {key}")

    target[final_key] = None if value.lower() in _NULL_VALUES else value

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        message = "; ".join(err["msg"] for err in exc.errors())
        raise InvalidUsageError(f"Invalid value for {key}: {message}") from None

    save_global_config(new_config)
    success(f"Set {key} = {target[final_key]}")


@config_app.command("reset")
def config_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Reset configuration to defaults.

    Example::

        foli config reset --yes
    """
    if not yes and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
