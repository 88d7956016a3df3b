"""Loading of the local ``.flipflag.yml`` declaration file.

The file maps feature names to their activation windows::

    contributor: dev@example.com

    checkout.new-flow:
      description: New checkout
      times:
        - started: 2025-01-01T10:00:00Z
          finished: 2025-02-01T10:00:00Z
        - started: 2025-03-01T10:00:00Z
          finished: null

The document-level ``contributor`` is attached to every time entry of the
file. Validation covers the whole document before anything is returned.
"""

from datetime import date, datetime, timezone
from logging import getLogger
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import TypeAdapter, ValidationError

from ._utils.constants import CONFIG_CONTRIBUTOR_KEY, FLIPFLAG_CONFIG_FILE
from .models import (
    ConfigParseError,
    ConfigReadError,
    ConfigShapeError,
    DeclarationTime,
    FeatureDeclaration,
    InvalidDateError,
)

logger = getLogger("flipflag")

_datetime_adapter = TypeAdapter(datetime)


def default_config_path() -> Path:
    return Path.cwd() / FLIPFLAG_CONFIG_FILE


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Interpret ``value`` as a timestamp, or return ``None`` if it is not one.

    Accepts datetimes and dates (what YAML produces for unquoted timestamps)
    and ISO 8601 strings. Values without a UTC offset are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = _datetime_adapter.validate_python(value.strip())
        except ValidationError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _read_text(path: Path, ignore_missing: bool) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        if ignore_missing:
            logger.debug(f"No config file at {path}, continuing without one")
            return None
        raise ConfigReadError(path, e) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigReadError(path, e) from e


def _parse_times(
    feature_name: str, raw_times: Any, contributor: Optional[str]
) -> list[DeclarationTime]:
    if raw_times is None:
        return []
    if not isinstance(raw_times, list):
        raise ConfigShapeError(
            f'FlipFlag: "times" of {feature_name} must be a list of time entries'
        )

    times = []
    for entry in raw_times:
        if not isinstance(entry, dict):
            raise ConfigShapeError(
                f"FlipFlag: time entries of {feature_name} must be mappings"
            )

        started = entry.get("started")
        start = parse_timestamp(started)
        if start is None:
            raise InvalidDateError(feature_name, "started", started)

        finished = entry.get("finished")
        end = None
        if finished is not None:
            end = parse_timestamp(finished)
            if end is None:
                raise InvalidDateError(feature_name, "finished", finished)

        times.append(DeclarationTime(email=contributor, start=start, end=end))

    return times


def parse_declarations(document: Any) -> dict[str, FeatureDeclaration]:
    """Validate a parsed YAML document and build its declarations.

    Raises:
        ConfigShapeError: The document, a feature or a time entry has the
            wrong structure.
        InvalidDateError: A ``started`` or ``finished`` value does not parse.
    """
    if not isinstance(document, dict):
        raise ConfigShapeError()

    contributor = document.get(CONFIG_CONTRIBUTOR_KEY)
    if contributor is not None:
        contributor = str(contributor)

    declarations: dict[str, FeatureDeclaration] = {}
    for feature_name, feature_config in document.items():
        if feature_name == CONFIG_CONTRIBUTOR_KEY:
            continue

        feature_name = str(feature_name)
        if feature_config is None:
            declarations[feature_name] = FeatureDeclaration(times=[])
            continue
        if not isinstance(feature_config, dict):
            raise ConfigShapeError(
                f"FlipFlag: config of {feature_name} must be a mapping"
            )

        times = _parse_times(feature_name, feature_config.get("times"), contributor)
        declarations[feature_name] = FeatureDeclaration(times=times)

    return declarations


def load_declarations(
    path: Union[str, Path, None] = None, ignore_missing: bool = True
) -> dict[str, FeatureDeclaration]:
    """Read the declaration file and return its features by name.

    Args:
        path: Location of the YAML file. Defaults to ``.flipflag.yml`` in
            the current working directory.
        ignore_missing: Return an empty mapping instead of failing when the
            file does not exist.

    Raises:
        ConfigReadError: The file could not be read.
        ConfigParseError: The file is not valid YAML.
        ConfigShapeError: The YAML does not describe features.
        InvalidDateError: A time entry carries an unparseable date.
    """
    config_path = Path(path) if path is not None else default_config_path()

    raw = _read_text(config_path, ignore_missing)
    if raw is None:
        return {}

    try:
        document = yaml.safe_load(raw)
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigParseError(config_path, e) from e

    declarations = parse_declarations(document)
    logger.debug(f"Loaded {len(declarations)} feature(s) from {config_path}")
    return declarations
