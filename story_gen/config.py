"""
Module: story_gen.config
Purpose: Configuration management for StoryGenerator
Dependencies: pyyaml, pathlib
Author: Generated for StoryGenerator
"""

from pathlib import Path
from typing import Dict, Any, List, Optional
import copy
import yaml

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Directory paths
MODELS_CACHE_DIR = PROJECT_ROOT / "models"
CONFIG_DIR = PROJECT_ROOT / "config"


class Config:
    """
    Configuration manager for StoryGenerator.

    Handles model selection, story length choices, sampling parameters,
    progress-bar simulation, clipboard feedback and API server settings.

    Attributes:
        models (Dict[str, Any]): Selectable models keyed by short name
        length_choices (Dict[str, int]): Target length label -> max new tokens
        sampling (Dict[str, Any]): Fixed sampling configuration for the engine
        engine (Dict[str, Any]): Engine loading options (quantized, device, cache)
        progress (Dict[str, Any]): Progress trickle settings
        clipboard (Dict[str, Any]): Copy feedback settings
        api (Dict[str, Any]): API server configuration
        examples (List[Dict[str, str]]): Example prompt cards for the page

    Example:
        >>> config = Config()
        >>> config.get_model_id("smollm")
        'HuggingFaceTB/SmolLM2-135M'
        >>> config.sampling["temperature"]
        0.7
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration with default values and optional overrides.

        Args:
            config_file: Optional path to YAML config file for overrides
        """
        self.models: Dict[str, Any] = {
            "smollm": {
                "model_id": "HuggingFaceTB/SmolLM2-135M",
                "label": "SmolLM2 135M (fastest)",
            },
            "distilgpt2": {
                "model_id": "distilbert/distilgpt2",
                "label": "DistilGPT-2 (small)",
            },
            "gpt2": {
                "model_id": "openai-community/gpt2",
                "label": "GPT-2 (balanced)",
            },
        }
        self.default_model: str = "smollm"

        # Label -> max_new_tokens
        self.length_choices: Dict[str, int] = {
            "Short (~75 words)": 100,
            "Medium (~150 words)": 200,
            "Long (~225 words)": 300,
            "Extra long (~375 words)": 500,
        }
        self.default_max_tokens: int = 200

        self.sampling: Dict[str, Any] = {
            "temperature": 0.7,
            "do_sample": True,
            "top_k": 50,
            "top_p": 0.9,
            "repetition_penalty": 1.1,
            "return_full_text": False,
        }

        self.engine: Dict[str, Any] = {
            "task": "text-generation",
            "quantized": True,  # Half precision on GPU
            "device": None,  # None = auto-detect
            "cache_dir": str(MODELS_CACHE_DIR),
        }

        self.progress: Dict[str, Any] = {
            "trickle_interval": 1.0,
            "trickle_floor": 10,
            "trickle_ceiling": 70,
            "trickle_step": 10,
        }

        self.clipboard: Dict[str, Any] = {
            "feedback_seconds": 2.0,
            "label": "Copy",
            "copied_label": "Copied!",
        }

        self.api: Dict[str, Any] = {
            "host": "127.0.0.1",
            "port": 8000,
            "reload": False,
            "log_level": "info",
        }

        self.examples: List[Dict[str, str]] = [
            {
                "title": "The Last Lighthouse Keeper",
                "description": "An old keeper discovers the lighthouse is guiding something other than ships.",
            },
            {
                "title": "Clockwork Garden",
                "description": "A botanist builds mechanical flowers that begin to bloom on their own.",
            },
            {
                "title": "The Map With No Edges",
                "description": "Two siblings inherit a map that grows a new street every night.",
            },
        ]

        # Load overrides from file if provided
        if config_file and config_file.exists():
            self._load_overrides(config_file)

    def _load_overrides(self, config_file: Path) -> None:
        """
        Load configuration overrides from YAML file.

        Args:
            config_file: Path to YAML configuration file
        """
        with open(config_file, 'r') as f:
            overrides = yaml.safe_load(f)

        if overrides:
            # Deep merge overrides into existing config
            for key, value in overrides.items():
                if hasattr(self, key) and isinstance(getattr(self, key), dict) and isinstance(value, dict):
                    getattr(self, key).update(value)
                else:
                    setattr(self, key, value)

    def get_model_id(self, model_name: str) -> str:
        """
        Get Hugging Face model ID for a given model name.

        Args:
            model_name: Model short name (smollm, distilgpt2, gpt2)

        Returns:
            Hugging Face model identifier string

        Raises:
            KeyError: If model name is not recognized
        """
        if model_name not in self.models:
            raise KeyError(f"Unknown model: {model_name}. Available: {list(self.models.keys())}")
        return self.models[model_name]["model_id"]

    def model_ids(self) -> List[str]:
        """Selectable Hugging Face model identifiers, in display order."""
        return [entry["model_id"] for entry in self.models.values()]

    def is_known_model(self, model_id: str) -> bool:
        return model_id in self.model_ids()

    def max_token_choices(self) -> List[int]:
        return list(self.length_choices.values())

    def options(self) -> Dict[str, Any]:
        """
        Form options for the page and the /options route.

        Returns:
            Dictionary with models, length choices, defaults and examples
        """
        return {
            "models": [
                {"id": entry["model_id"], "label": entry.get("label", entry["model_id"])}
                for entry in self.models.values()
            ],
            "default_model": self.get_model_id(self.default_model),
            "length_choices": [
                {"label": label, "max_tokens": tokens}
                for label, tokens in self.length_choices.items()
            ],
            "default_max_tokens": self.default_max_tokens,
            "examples": copy.deepcopy(self.examples),
        }


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config() -> Config:
    """
    Get global configuration instance (singleton pattern).

    Returns:
        Shared Config instance

    Example:
        >>> from story_gen.config import get_config
        >>> config = get_config()
        >>> print(config.api["port"])
    """
    global _config_instance
    if _config_instance is None:
        # Check for local config override
        local_config = CONFIG_DIR / "local.yaml"
        _config_instance = Config(local_config if local_config.exists() else None)
    return _config_instance


def set_config(config_file: Optional[Path] = None) -> Config:
    """Replace the global configuration, optionally loading a YAML file."""
    global _config_instance
    _config_instance = Config(config_file)
    return _config_instance
