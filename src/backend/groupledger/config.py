"""
Configuration management for GroupLedger.
"""

import json
import logging
import os

from typeguard import CollectionCheckStrategy, TypeCheckError, check_type

__all__ = ["validate_group_config", "get_config_from_str", "get_recent_limit"]

logger = logging.getLogger(__name__)


def validate_group_config(config: dict) -> None:
    """Validate the structure and types of a group roster dictionary."""
    try:
        check_type(config["Id"], str)
        check_type(config["Name"], str)
        members = config["Members"]
        check_type(
            members,
            list[str],
            collection_check_strategy=CollectionCheckStrategy.ALL_ITEMS,
        )
        if not members:
            raise ValueError("Group roster must not be empty")
        if len(set(members)) != len(members):
            raise ValueError("Group roster has duplicate members")

    except (KeyError, TypeCheckError, ValueError) as ex:
        logger.error("Invalid group configuration: %s", ex)
        raise


def get_config_from_str(config_str: str) -> dict:
    """Parse configuration from a JSON string."""
    try:
        return json.loads(config_str)
    except json.JSONDecodeError as ex:
        logger.error("Error loading config: %s", ex)
        raise


def get_recent_limit(default: int = 10) -> int:
    """Number of recent expenses reported by analytics."""
    value = os.environ.get("RECENT_EXPENSES_LIMIT")
    if not value:
        return default
    try:
        limit = int(value)
    except ValueError:
        logger.warning("Ignoring invalid RECENT_EXPENSES_LIMIT: %s", value)
        return default
    return limit if limit > 0 else default
