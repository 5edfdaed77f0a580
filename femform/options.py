"""Options."""

import functools
import json
import os
import pprint
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np

from . import logger

FEMFORM_DEFAULT_OPTIONS = {
    "verbosity": (
        int,
        30,
        "logger verbosity, follows standard library levels, i.e. INFO=20, DEBUG=10, etc.",
        None,
    ),
    "scalar_type": (
        str,
        "float64",
        "scalar type of local element buffers and distributed tensors.",
        ("float32", "float64"),
    ),
    "check_coefficients": (
        bool,
        True,
        "check that every coefficient of a form is bound before assembly.",
        None,
    ),
}


@functools.cache
def _load_options() -> Tuple[dict, dict]:
    """Load options from JSON files."""
    config_home = Path(os.getenv("XDG_CONFIG_HOME", default=Path.home().joinpath(".config")))
    user_config_file = config_home / Path("femform", "femform_options.json")
    try:
        with open(user_config_file) as f:
            user_options = json.load(f)
    except FileNotFoundError:
        user_options = {}

    pwd_config_file = Path.cwd().joinpath("femform_options.json")
    try:
        with open(pwd_config_file) as f:
            pwd_options = json.load(f)
    except FileNotFoundError:
        pwd_options = {}

    return (user_options, pwd_options)


def _check(options: Dict[str, Any]) -> None:
    for name, value in options.items():
        if name not in FEMFORM_DEFAULT_OPTIONS:
            raise ValueError(f"Unknown femform option '{name}'.")
        _, _, _, allowed = FEMFORM_DEFAULT_OPTIONS[name]
        if allowed is not None and value not in allowed:
            raise ValueError(f"Option '{name}' must be one of {allowed}, got {value!r}.")


def get_options(priority_options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return (a copy of) the merged option values for femform.

    Parameters:
        priority_options (dict | None, optional): take priority over all
            other option values (see notes).

    Returns:
        dict: merged option values.

    Note:
        This function sets the log level from the merged option values prior to
        returning.

        The `femform_options.json` files are cached on the first call. Subsequent
        calls to this function use this cache.

        Priority ordering of options from highest to lowest is:

        -  **priority_options** (API options)
        -  **$PWD/femform_options.json** (local options)
        -  **$XDG_CONFIG_HOME/femform/femform_options.json** (user options)
        -  **FEMFORM_DEFAULT_OPTIONS** in `femform.options`

        `XDG_CONFIG_HOME` is `~/.config/` if the environment variable is not set.

        Example `femform_options.json` file:

          { "scalar_type": "float32" }
    """
    options = _merge_options(priority_options)

    logger.setLevel(int(options["verbosity"]))
    logger.debug("Final option values")
    logger.debug(pprint.pformat(options))

    return options


def _merge_options(priority_options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    options: Dict[str, Any] = {}

    for opt, (_, value, _, _) in FEMFORM_DEFAULT_OPTIONS.items():
        options[opt] = value

    # NOTE: _load_options uses functools.cache
    user_options, pwd_options = _load_options()

    options.update(user_options)
    options.update(pwd_options)
    if priority_options is not None:
        options.update(priority_options)
    _check(options)

    return options


def get_option(name: str) -> Any:
    """Return a single merged option value without touching the log level."""
    return _merge_options()[name]


def scalar_dtype(dtype=None) -> np.dtype:
    """Return `dtype` as a numpy dtype, or the configured `scalar_type`."""
    if dtype is None:
        dtype = get_option("scalar_type")
    return np.dtype(dtype)
