"""Build and serialize date field configurations.

``build_config`` turns a loosely-typed node map from a field definition
into a validated FieldConfig; ``serialize_config`` writes back only the
settings that differ from their defaults.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from datemapper.config import MapperSettings, node_boolean_value
from datemapper.mapper.exceptions import ConfigError
from datemapper.mapper.types import DEFAULT_PRECISION_STEP, FieldConfig, TimeUnit

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_underscore_case(name: str) -> str:
    """``nullValue`` -> ``null_value``; underscore names are unchanged."""
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def build_config(
    name: str,
    node: Mapping[str, Any],
    settings: Optional[MapperSettings] = None,
) -> FieldConfig:
    """Build a FieldConfig from a field definition.

    Args:
        name: Full field name
        node: Field definition, e.g. ``{"type": "date", "format": "yyyy/MM/dd"}``
        settings: Index-level defaults

    Returns:
        Validated field configuration

    Raises:
        ConfigError: On an invalid precision step, unknown time unit,
            malformed format pattern or fuzzy factor
    """
    settings = settings or MapperSettings()
    kwargs: Dict[str, Any] = {
        "name": name,
        "parse_upper_inclusive": settings.parse_upper_inclusive,
        "ignore_malformed": settings.ignore_malformed,
    }

    for key, value in node.items():
        prop = to_underscore_case(key)
        if prop == "null_value":
            kwargs["null_value"] = None if value is None else str(value)
        elif prop == "format":
            kwargs["format"] = str(value)
        elif prop == "numeric_resolution":
            try:
                kwargs["time_unit"] = TimeUnit.from_name(str(value))
            except ValueError as e:
                raise ConfigError(
                    f"failed to build date field [{name}]: {e}", field_name=name, cause=e
                ) from e
        elif prop == "precision_step":
            kwargs["precision_step"] = value
        elif prop == "fuzzy_factor":
            kwargs["fuzzy_factor"] = None if value is None else str(value)
        elif prop == "boost":
            kwargs["boost"] = value
        elif prop == "include_in_all":
            kwargs["include_in_all"] = node_boolean_value(value)
        elif prop == "ignore_malformed":
            kwargs["ignore_malformed"] = node_boolean_value(value)
        else:
            logger.debug(f"Date field [{name}] leaves property [{key}] to the host mapper")

    try:
        config = FieldConfig(**kwargs)
    except ValidationError as e:
        raise ConfigError(
            f"failed to build date field [{name}]: {e}", field_name=name, cause=e
        ) from e

    logger.info(
        f"Built date field [{name}] with format [{config.format}], "
        f"precision_step={config.precision_step}"
    )
    return config


def serialize_config(config: FieldConfig) -> Dict[str, Any]:
    """Node map for a FieldConfig containing only non-default settings.

    The format is always written so the definition round-trips.
    """
    node: Dict[str, Any] = {"type": config.content_type}
    if config.boost != 1.0:
        node["boost"] = config.boost
    if config.precision_step != DEFAULT_PRECISION_STEP:
        node["precision_step"] = config.precision_step
    if config.fuzzy_factor is not None:
        node["fuzzy_factor"] = config.fuzzy_factor
    node["format"] = config.format
    if config.null_value is not None:
        node["null_value"] = config.null_value
    if config.include_in_all is not None:
        node["include_in_all"] = config.include_in_all
    if config.time_unit != TimeUnit.MILLISECONDS:
        node["numeric_resolution"] = config.time_unit.value
    if config.ignore_malformed:
        node["ignore_malformed"] = True
    return node
