# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# config.py
#
# @desc: Game and logging configuration read from config.yaml into
#        dataclasses, and the console logging setup of the package.
# ===================================================================
from dataclasses import dataclass, field
from typing import Optional
import logging

import yaml

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
MAX_HAND_SIZE = 26


@dataclass
class GameConfig:
    curve: str = "secp256k1"  # fastecdsa curve, needs p % 4 == 3
    hand_size: int = 7
    shuffle: bool = True
    action_log_size: int = 10  # recent contract calls kept for display


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = DEFAULT_FORMAT


@dataclass
class Config:
    game: GameConfig = field(default_factory=GameConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    _source_path: Optional[str] = None


def _section(data, name):
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError("config section '%s' must be a mapping" % name)
    return value


def _value(section, name, key, default, kind):
    """Read one entry and check its YAML type, no coercion

    Args:
        section (dict): parsed section
        name (str): section name, for the error message
        key (str): entry name
        default: value if the entry is missing
        kind (type): expected type

    Returns:
        value of type kind
    """
    value = section.get(key, default)
    # bool is an int subclass, a flag must not pass as a number
    if not isinstance(value, kind) or (kind is int
                                       and isinstance(value, bool)):
        raise ValueError("config entry %s.%s must be %s, got %r"
                         % (name, key, kind.__name__, value))
    return value


def load_config(config_path="config.yaml"):
    """Load configuration from a YAML file, falling back to defaults

    Args:
        config_path (str): path of the YAML file

    Returns:
        Config: parsed configuration, defaults if the file is missing

    Raises:
        ValueError: on a malformed document or an invalid entry
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning("config file '%s' not found, using defaults",
                       config_path)
        return Config()

    if config_dict is None:
        logger.warning("config file '%s' is empty, using defaults",
                       config_path)
        config_dict = {}
    if not isinstance(config_dict, dict):
        raise ValueError("config file '%s' must contain a mapping"
                         % config_path)

    game_dict = _section(config_dict, "game")
    logging_dict = _section(config_dict, "logging")

    game = GameConfig(
        curve=_value(game_dict, "game", "curve", GameConfig.curve, str),
        hand_size=_value(game_dict, "game", "hand_size",
                         GameConfig.hand_size, int),
        shuffle=_value(game_dict, "game", "shuffle", GameConfig.shuffle,
                       bool),
        action_log_size=_value(game_dict, "game", "action_log_size",
                               GameConfig.action_log_size, int),
    )
    if not 1 <= game.hand_size <= MAX_HAND_SIZE:
        raise ValueError("hand_size must be between 1 and %d"
                         % MAX_HAND_SIZE)
    if game.action_log_size < 1:
        raise ValueError("action_log_size must be positive")

    log_config = LoggingConfig(
        level=_value(logging_dict, "logging", "level", LoggingConfig.level,
                     str).upper(),
        format=_value(logging_dict, "logging", "format",
                      LoggingConfig.format, str),
    )
    return Config(game=game, logging=log_config, _source_path=config_path)


def setup_logging(log_config):
    """Attach a console handler to the package logger, replacing one
    installed by an earlier call

    Args:
        log_config (LoggingConfig): level and format

    Returns:
        logging.Logger: the ECCGF logger

    Raises:
        ValueError: on an unknown level name
    """
    package_logger = logging.getLogger("ECCGF")
    level = logging.getLevelName(log_config.level)
    if not isinstance(level, int):
        raise ValueError("unknown log level: %s" % log_config.level)
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_eccgf_console", False):
            package_logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(log_config.format))
    handler._eccgf_console = True
    package_logger.addHandler(handler)
    return package_logger
