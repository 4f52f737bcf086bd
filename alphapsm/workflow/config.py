"""This module is responsible for creating and storing the configuration.

The default configuration is read from `constants/default.yaml` and can be updated with one or more other configuration objects.
The order of configs holds significance, with configurations later in the sequence overwriting previous values.
Lists are always overwritten completely, e.g. the thresholds of a search tool.

On demand, the current config can be visualized in a tree-like structure.
"""

import logging
import os
from collections import UserDict, defaultdict
from copy import deepcopy

import yaml

from alphapsm.constants.keys import ConfigKeys
from alphapsm.exceptions import KeyAddedConfigError, TypeMismatchConfigError

logger = logging.getLogger()

DEFAULT = "default"
USER_DEFINED = "user defined"
USER_DEFINED_CLI_PARAM = "user defined (cli)"

DEFAULT_CONFIG_PATH = os.path.join(
    os.path.dirname(os.path.dirname(__file__)), "constants", "default.yaml"
)


class Config(UserDict):
    """Dict-like config class that can read from and write to yaml files and allows updating with other config objects."""

    def __init__(self, data: dict = None, name: str = DEFAULT) -> None:
        # super class deliberately not called as this calls "update" (which we overwrite)
        self.data = {**data} if data is not None else {}
        self.name = name

    def from_yaml(self, path: str) -> None:
        with open(path) as f:
            self.data = yaml.safe_load(f)

    def to_yaml(self, path: str) -> None:
        with open(path, "w") as f:
            yaml.dump(self.data, f, sort_keys=False)

    def __setitem__(self, key, item):
        if key != ConfigKeys.OUTPUT_DIRECTORY:
            raise NotImplementedError("Use update() to update the config.")
        return super().__setitem__(key, item)

    def __delitem__(self, key):
        raise NotImplementedError("Use update() to update the config.")

    def copy(self):
        raise NotImplementedError("Use deepcopy() to copy the config.")

    def update(self, configs: list["Config"], do_print: bool = False):
        """
        Updates the config with one or more other config objects.

        The order of configs holds significance, with configurations later in the sequence
        taking precedence in terms of their impact on changes.

        Parameters
        ----------
        configs : list of configs
            List of config objects to update the current config with. The order of the configs is important (last one wins).

        do_print : bool, optional
            Whether to print the modified config. Default is False.
        """
        # we assume that self.data holds the default config
        default_config = deepcopy(self.data)

        def _recursive_defaultdict():
            """Allow initialization of an infinitely nested dictionary to be able to map arbitrary structures."""
            return defaultdict(_recursive_defaultdict)

        tracking_dict = defaultdict(_recursive_defaultdict)

        current_config = deepcopy(self.data)
        for config in configs:
            logger.info(f"Updating config with '{config.name}'")

            _update(
                current_config,
                config.data,
                tracking_dict,
                config.name,
            )

        self.data = current_config

        if do_print:
            _pretty_print(
                current_config, default_config=default_config, tracking_dict=tracking_dict
            )


def load_config(
    user_config: dict | None = None, cli_config: dict | None = None
) -> Config:
    """Load the default config and update it with the user defined values.

    Parameters
    ----------
    user_config : dict, optional
        Config provided by the user, e.g. loaded from a yaml file.

    cli_config : dict, optional
        Config-like dictionary of parameters directly provided via the command line.

    Returns
    -------
    Config
        The updated config.
    """
    logger.info(f"loading default config from {DEFAULT_CONFIG_PATH}")
    config = Config()
    config.from_yaml(DEFAULT_CONFIG_PATH)

    config_updates = []
    if user_config:
        config_updates.append(Config(user_config, name=USER_DEFINED))
    if cli_config:
        config_updates.append(Config(cli_config, name=USER_DEFINED_CLI_PARAM))

    if config_updates:
        config.update(config_updates, do_print=True)

    return config


def _update(
    target_config: dict,
    update_config: dict,
    tracking_dict: dict,
    config_name: str,
    parent_keys: str = "",
) -> None:
    """
    Recursively update target_dict in-place with values from update_dict, following specific rules for different types.

    For each value that gets updated, the corresponding value in tracking_dict is updated with config_name.

    Parameters
    ----------
    target_config:
        The config dictionary to be modified
    update_config:
        The config dictionary containing update values
    tracking_dict:
        A dictionary of nested dictionaries.
        If a value target_config gets overwritten, the same value in tracking_dict will be overwritten with `config_name`.
    config_name:
        The name of the current config object
    parent_keys:
        Names of the parent keys, separated by dots. Used only for exception messages.

    Notes
    -----
    - Nested dictionaries are recursively updated
    - Only updates existing keys (adding new keys not allowed)
    - lists are always overwritten

    Raises
    ------
    - KeyAddedConfigError: a key is not found in the target_config
    - TypeMismatchConfigError: the type of the update value does not match the type of the target value
    """
    for key, update_value in update_config.items():
        full_key = f"{parent_keys}.{key}" if parent_keys else key

        if key not in target_config:
            raise KeyAddedConfigError(full_key, update_value, config_name)

        target_value = target_config[key]
        tracking_value = tracking_dict[key]

        # string "true"/"false" from the --config-dict CLI parameter
        if isinstance(update_value, str):
            if update_value.lower() == "true":
                update_value = True
            elif update_value.lower() == "false":
                update_value = False

        if (
            target_value is not None
            and type(target_value) != type(update_value)
            and not (
                isinstance(target_value, int | float)
                and isinstance(update_value, int | float)
            )
        ):
            raise TypeMismatchConfigError(
                full_key,
                update_value,
                config_name,
                f"{type(update_value)} != {type(target_value)}",
            )

        if isinstance(target_value, dict):
            _update(
                target_value,
                update_value,
                tracking_value,
                config_name,
                parent_keys=full_key,
            )

        else:
            # lists are overwritten completely
            target_config[key] = update_value
            tracking_dict[key] = config_name


def _pretty_print(
    config: dict,
    *,
    default_config: dict | None,
    tracking_dict: dict | str,
    prefix: str = "",
):
    """Recursively pretty print a configuration dictionary in a tree-like structure.

    Values that differ from the default are printed in green, followed by the name of the config that set them.
    """
    for i, (key, value) in enumerate(config.items()):
        is_last_item = i == len(config) - 1
        current_prefix = "└──" if is_last_item else "├──"
        next_prefix = prefix + ("    " if is_last_item else "│   ")

        default_value = (
            default_config.get(key) if isinstance(default_config, dict) else None
        )
        tracking_value = (
            tracking_dict if isinstance(tracking_dict, str) else tracking_dict[key]
        )

        if isinstance(value, dict):
            logger.info(f"{prefix}{current_prefix}{key}")
            _pretty_print(
                value,
                default_config=default_value,
                tracking_dict=tracking_value,
                prefix=next_prefix,
            )
        else:
            color_on, color_off = _get_color_tokens(value, default_value)
            logger.info(
                f"{prefix}{color_on}{current_prefix}{key}: {_expand(value, default_value, tracking_value)}{color_off}"
            )


def _get_color_tokens(actual_value, default_value) -> tuple[str, str]:
    """Get color on/off tokens if values differ, else empty strings."""

    if default_value != actual_value:
        return "\x1b[32;20m", "\x1b[0m"
    return "", ""


def _expand(actual_value, default_value, tracking_value) -> str:
    """Create an expanded string representation of a configuration value in case it differs from the default."""
    msg = str(actual_value)

    if default_value != actual_value:
        return f"{msg} [{tracking_value}, default: {default_value}]"

    return msg
