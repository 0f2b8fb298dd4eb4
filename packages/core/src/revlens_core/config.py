import copy
import os
from pathlib import Path
from typing import Optional

import yaml

from revlens_store.models import DEFAULT_MODEL_NAME

DEFAULT_CONFIG: dict = {
    "analytics": True,  # False = discard everything via NoOpStore
    "analytics_dir": ".code-review-analytics",
    "model_name": DEFAULT_MODEL_NAME,
    "pricing": {
        "input_per_million": 0.075,  # USD per 1M input tokens
        "output_per_million": 0.30,  # USD per 1M output tokens
    },
    "manual_review_minutes": 30,  # baseline for timeSavedHours
    "days_back": 30,
    "history_limit": 50,
}


def load_config(config_path: str = ".revlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .revlens.yml in the current directory
      3. CLI argument overrides
      4. Environment variables (REVLENS_ANALYTICS_DIR, REVLENS_MODEL)
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        pricing = file_config.pop("pricing", None)
        config.update(file_config)
        if isinstance(pricing, dict):
            config["pricing"].update(pricing)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if os.environ.get("REVLENS_ANALYTICS_DIR"):
        config["analytics_dir"] = os.environ["REVLENS_ANALYTICS_DIR"]
    if os.environ.get("REVLENS_MODEL"):
        config["model_name"] = os.environ["REVLENS_MODEL"]

    return config
