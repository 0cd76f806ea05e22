"""Load embedding parameters from YAML or JSON configuration files.

Files hold the serialisable subset of the parameters map, either at the top
level or under an ``embedding`` section::

    embedding:
      method: kernel_pca
      target_dimension: 3
      eigen_method: dense

The format is detected from the file extension. Callbacks (progress and
cancellation) cannot be expressed in a file; pass them as overrides.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema
import yaml

from ...errors import WrongParameterTypeError, WrongParameterValueError
from ...methods import EigenMethod, Method, NeighborsMethod, parse_method
from ...parameters import ParameterKey, ParametersMap, validate_and_default

SECTION_KEY = "embedding"

_METHOD_NAMES = sorted(method.value for method in Method)

# JSON schema for the serialisable parameters
PARAMETERS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "method": {"type": "string", "enum": _METHOD_NAMES},
        "target_dimension": {"type": "integer", "minimum": 1},
        "current_dimension": {"type": "integer", "minimum": 1},
        "output_feature_vectors_are_columns": {"type": "boolean"},
        "eigenshift": {"type": "number", "minimum": 0},
        "klle_trace_shift": {"type": "number", "minimum": 0},
        "check_connectivity": {"type": "boolean"},
        "eigen_method": {"type": "string", "enum": [m.value for m in EigenMethod]},
        "neighbors_method": {"type": "string", "enum": [m.value for m in NeighborsMethod]},
        "number_of_neighbors": {"type": "integer", "minimum": 1},
        "gaussian_kernel_width": {"type": "number", "exclusiveMinimum": 0},
        "diffusion_map_timesteps": {"type": "integer", "minimum": 1},
        "max_iteration": {"type": "integer", "minimum": 1},
        "spe_tolerance": {"type": "number", "exclusiveMinimum": 0},
        "spe_num_updates": {"type": "integer", "minimum": 1},
        "spe_global_strategy": {"type": "boolean"},
        "landmark_ratio": {"type": "number", "minimum": 0, "maximum": 1},
        "fa_epsilon": {"type": "number", "exclusiveMinimum": 0},
        "sne_perplexity": {"type": "number", "exclusiveMinimum": 0},
        "sne_theta": {"type": "number", "minimum": 0},
        "random_seed": {"type": ["integer", "null"]},
    },
    "additionalProperties": False,
}


def _normalise_method(section: Dict[str, Any]) -> Dict[str, Any]:
    """Rewrite the method name to its canonical value (aliases, any case)."""
    method = section.get("method")
    if not isinstance(method, str):
        return section
    try:
        canonical = parse_method(method).value
    except KeyError:
        # Unknown names are reported by the schema.
        return section
    return {**section, "method": canonical}


def _raise_for(error: jsonschema.ValidationError) -> None:
    location = ".".join(str(part) for part in error.path) or "<root>"
    message = f"Invalid configuration value at '{location}': {error.message}"
    if error.validator == "type":
        raise WrongParameterTypeError(message) from error
    raise WrongParameterValueError(message) from error


class ConfigLoader:
    """Utility class for loading and validating embedding parameter files.

    Supports both YAML (.yaml, .yml) and JSON (.json) configuration files.
    """

    def __init__(self, config_path: Union[Path, str]):
        self.config_path = Path(config_path)
        self._config: Optional[Dict[str, Any]] = None

    def _load_file(self, path: Path) -> Dict[str, Any]:
        """Load configuration from file, auto-detecting format."""
        suffix = path.suffix.lower()

        with open(path, "r", encoding="utf-8") as f:
            if suffix in (".yaml", ".yml"):
                return yaml.safe_load(f) or {}
            elif suffix == ".json":
                return json.load(f)
            else:
                # Try YAML first, fall back to JSON
                content = f.read()
                try:
                    return yaml.safe_load(content) or {}
                except yaml.YAMLError:
                    return json.loads(content)

    def load(self, validate: bool = True) -> Dict[str, Any]:
        """Load the raw parameter dictionary.

        Raises:
            FileNotFoundError: If the config file doesn't exist
            WrongParameterTypeError: If a value has the wrong JSON type
            WrongParameterValueError: If a value is outside its domain or unknown
        """
        if self._config is None:
            raw_config = self._load_file(self.config_path)
            if not isinstance(raw_config, dict):
                raise WrongParameterTypeError(
                    f"Configuration file {self.config_path} must contain a mapping."
                )
            section = raw_config.get(SECTION_KEY, raw_config)
            if not isinstance(section, dict):
                raise WrongParameterTypeError(
                    f"Section '{SECTION_KEY}' in {self.config_path} must be a mapping."
                )
            section = _normalise_method(section)
            if validate:
                errors = sorted(
                    jsonschema.Draft7Validator(PARAMETERS_SCHEMA).iter_errors(section),
                    key=lambda err: list(err.path),
                )
                if errors:
                    _raise_for(errors[0])
            self._config = dict(section)

        return dict(self._config)

    def parameters(self, **overrides: Any) -> ParametersMap:
        """Validated and defaulted parameters map, with ``overrides`` applied."""
        values: Dict[ParameterKey, Any] = dict(self.load())
        values.update(overrides)
        return validate_and_default(values)


def load_parameters(config_path: Union[Path, str], **overrides: Any) -> ParametersMap:
    """Load a parameter file and return a validated parameters map."""
    return ConfigLoader(config_path).parameters(**overrides)


__all__ = ["PARAMETERS_SCHEMA", "ConfigLoader", "load_parameters"]
