"""Field configuration merge.

Only ``null_value`` is mutable after construction. The caller serializes
merges against a configuration (single writer); readers must not observe a
configuration while a merge is in progress.
"""

from __future__ import annotations

import logging
from typing import Any

from datemapper.mapper.exceptions import IncompatibleMergeError
from datemapper.mapper.types import FieldConfig

logger = logging.getLogger(__name__)


def _kind(config: Any) -> str:
    return getattr(config, "CONTENT_TYPE", type(config).__name__)


def merge(target: FieldConfig, incoming: Any, simulate: bool = False) -> None:
    """Merge the mutable part of ``incoming`` into ``target``.

    Args:
        target: Existing field configuration, updated in place
        incoming: Redefinition of the same field
        simulate: Only check compatibility; leave ``target`` untouched

    Raises:
        IncompatibleMergeError: If ``incoming`` is a different kind of field
    """
    if type(incoming) is not type(target):
        raise IncompatibleMergeError(
            target_kind=_kind(target),
            incoming_kind=_kind(incoming),
            field_name=target.name,
        )
    if simulate:
        logger.debug(f"Simulated merge of date field [{target.name}]")
        return
    if target.null_value != incoming.null_value:
        logger.info(
            f"Merging null_value of date field [{target.name}]: "
            f"{target.null_value!r} -> {incoming.null_value!r}"
        )
    target.null_value = incoming.null_value
