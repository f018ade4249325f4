import json
import logging
import os
from collections.abc import Iterable

import pydantic

from .errors import ConfigError
from .models import CampaignResult, TargetSpec

logger = logging.getLogger(__name__)


def default_result_path(config_file: str) -> str:
    return os.path.join(".", f"result.{os.path.basename(config_file)}")


def load_targets(path: str) -> list[TargetSpec]:
    """Read the JSON target file. Any problem with it is a ConfigError."""
    if not os.path.exists(path):
        raise ConfigError(f"target file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read target file {path}: {e}") from e
    except ValueError as e:
        raise ConfigError(f"target file {path} is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise ConfigError(f"target file {path} must contain a JSON array of targets")

    targets = []
    for i, item in enumerate(raw):
        try:
            targets.append(TargetSpec.model_validate(item))
        except pydantic.ValidationError as e:
            raise ConfigError(f"target #{i + 1} in {path} is invalid: {e}") from e

    if not targets:
        raise ConfigError(f"no request targets found in {path}")

    logger.info(f"Loaded {len(targets)} targets from {path}")
    return targets


def save_results(results: Iterable[CampaignResult], path: str) -> bool:
    """Write results as a JSON array. Returns False if the file could not be written."""
    payload = [r.to_dict() for r in results]
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=4, ensure_ascii=False, default=str)
    except OSError as e:
        logger.error(f"Failed to save results to {path}: {e}")
        return False
    logger.info(f"Results saved to {path}")
    return True
