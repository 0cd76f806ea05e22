"""Parameter identifiers, typed parameter maps and defaulting.

A :class:`ParametersMap` stores caller-supplied values as given and converts
them on read. Each :class:`Parameter` carries a :class:`ParameterSpec`
describing the value kind it holds, so a read either returns a typed value or
raises :class:`~embedkit.errors.WrongParameterTypeError`. Defaults injected by
:func:`validate_and_default` are always well typed; the wrong-type failure
class therefore only arises from caller input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from numbers import Integral, Real
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Type, Union

import numpy as np

from .errors import MissingParameterError, WrongParameterTypeError, WrongParameterValueError
from .methods import EigenMethod, Method, NeighborsMethod, parse_enum, parse_method


class Parameter(Enum):
    """Closed set of parameter identifiers."""

    REDUCTION_METHOD = "method"
    TARGET_DIMENSION = "target_dimension"
    CURRENT_DIMENSION = "current_dimension"
    OUTPUT_FEATURE_VECTORS_ARE_COLUMNS = "output_feature_vectors_are_columns"
    EIGENSHIFT = "eigenshift"
    KLLE_TRACE_SHIFT = "klle_trace_shift"
    CHECK_CONNECTIVITY = "check_connectivity"
    EIGEN_EMBEDDING_METHOD = "eigen_method"
    NEIGHBORS_METHOD = "neighbors_method"
    NUMBER_OF_NEIGHBORS = "number_of_neighbors"
    GAUSSIAN_KERNEL_WIDTH = "gaussian_kernel_width"
    DIFFUSION_MAP_TIMESTEPS = "diffusion_map_timesteps"
    MAX_ITERATION = "max_iteration"
    SPE_TOLERANCE = "spe_tolerance"
    SPE_NUM_UPDATES = "spe_num_updates"
    SPE_GLOBAL_STRATEGY = "spe_global_strategy"
    LANDMARK_RATIO = "landmark_ratio"
    FA_EPSILON = "fa_epsilon"
    SNE_PERPLEXITY = "sne_perplexity"
    SNE_THETA = "sne_theta"
    RANDOM_SEED = "random_seed"
    PROGRESS_FUNCTION = "progress_function"
    CANCEL_FUNCTION = "cancel_function"


@dataclass(frozen=True)
class ParameterSpec:
    """Declared value kind of a parameter."""

    kind: str
    enum_cls: Optional[Type[Enum]] = None
    nullable: bool = False


_SPECS: Dict[Parameter, ParameterSpec] = {
    Parameter.REDUCTION_METHOD: ParameterSpec("enum", Method),
    Parameter.TARGET_DIMENSION: ParameterSpec("int"),
    Parameter.CURRENT_DIMENSION: ParameterSpec("int"),
    Parameter.OUTPUT_FEATURE_VECTORS_ARE_COLUMNS: ParameterSpec("bool"),
    Parameter.EIGENSHIFT: ParameterSpec("float"),
    Parameter.KLLE_TRACE_SHIFT: ParameterSpec("float"),
    Parameter.CHECK_CONNECTIVITY: ParameterSpec("bool"),
    Parameter.EIGEN_EMBEDDING_METHOD: ParameterSpec("enum", EigenMethod),
    Parameter.NEIGHBORS_METHOD: ParameterSpec("enum", NeighborsMethod),
    Parameter.NUMBER_OF_NEIGHBORS: ParameterSpec("int"),
    Parameter.GAUSSIAN_KERNEL_WIDTH: ParameterSpec("float"),
    Parameter.DIFFUSION_MAP_TIMESTEPS: ParameterSpec("int"),
    Parameter.MAX_ITERATION: ParameterSpec("int"),
    Parameter.SPE_TOLERANCE: ParameterSpec("float"),
    Parameter.SPE_NUM_UPDATES: ParameterSpec("int"),
    Parameter.SPE_GLOBAL_STRATEGY: ParameterSpec("bool"),
    Parameter.LANDMARK_RATIO: ParameterSpec("float"),
    Parameter.FA_EPSILON: ParameterSpec("float"),
    Parameter.SNE_PERPLEXITY: ParameterSpec("float"),
    Parameter.SNE_THETA: ParameterSpec("float"),
    Parameter.RANDOM_SEED: ParameterSpec("int", nullable=True),
    Parameter.PROGRESS_FUNCTION: ParameterSpec("callable", nullable=True),
    Parameter.CANCEL_FUNCTION: ParameterSpec("callable", nullable=True),
}

_MISSING = object()

ParameterKey = Union[Parameter, str]


def parameter_spec(parameter: Parameter) -> ParameterSpec:
    return _SPECS[parameter]


def resolve_parameter(key: ParameterKey) -> Parameter:
    """Map a :class:`Parameter` or its string name to the identifier."""

    try:
        return parse_enum(Parameter, key)
    except KeyError as exc:
        raise WrongParameterValueError(f"Unknown parameter '{key}'.") from exc
    except TypeError as exc:
        raise WrongParameterTypeError(
            f"Parameter keys must be Parameter members or strings, got {type(key).__name__}."
        ) from exc


def _convert(parameter: Parameter, value: Any) -> Any:
    spec = _SPECS[parameter]
    if value is None and spec.nullable:
        return None

    name = parameter.value
    if spec.kind == "int":
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, Integral):
            raise WrongParameterTypeError(
                f"Parameter '{name}' expects an integer, got {type(value).__name__}."
            )
        return int(value)
    if spec.kind == "float":
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, Real):
            raise WrongParameterTypeError(
                f"Parameter '{name}' expects a number, got {type(value).__name__}."
            )
        return float(value)
    if spec.kind == "bool":
        if not isinstance(value, (bool, np.bool_)):
            raise WrongParameterTypeError(
                f"Parameter '{name}' expects a boolean, got {type(value).__name__}."
            )
        return bool(value)
    if spec.kind == "callable":
        if not callable(value):
            raise WrongParameterTypeError(
                f"Parameter '{name}' expects a callable, got {type(value).__name__}."
            )
        return value
    if spec.kind == "enum":
        assert spec.enum_cls is not None
        try:
            if spec.enum_cls is Method:
                return parse_method(value)
            return parse_enum(spec.enum_cls, value)
        except TypeError as exc:
            raise WrongParameterTypeError(
                f"Parameter '{name}' expects a {spec.enum_cls.__name__}, got {type(value).__name__}."
            ) from exc
        except KeyError as exc:
            valid = ", ".join(member.value for member in spec.enum_cls)
            raise WrongParameterValueError(
                f"Unknown value '{value}' for parameter '{name}'. Valid values: {valid}."
            ) from exc
    raise AssertionError(f"Unhandled parameter kind {spec.kind!r}")


class ParametersMap:
    """Mapping from :class:`Parameter` identifiers to caller-supplied values.

    Values are stored untouched and converted on read, so a value of the wrong
    type fails when it is read rather than when the map is built.
    """

    def __init__(self, values: Optional[Mapping[ParameterKey, Any]] = None, **kwargs: Any) -> None:
        self._values: Dict[Parameter, Any] = {}
        for key, value in (values or {}).items():
            self[key] = value
        for key, value in kwargs.items():
            self[key] = value

    # Mapping protocol ------------------------------------------------------

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (Parameter, str)):
            return False
        try:
            return resolve_parameter(key) in self._values
        except WrongParameterValueError:
            return False

    def __getitem__(self, key: ParameterKey) -> Any:
        return self.get(key)

    def __setitem__(self, key: ParameterKey, value: Any) -> None:
        self._values[resolve_parameter(key)] = value

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParametersMap):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        items = ", ".join(f"{key.value}={value!r}" for key, value in self._values.items())
        return f"ParametersMap({items})"

    def items(self) -> Iterator[Tuple[Parameter, Any]]:
        return iter(self._values.items())

    def copy(self) -> "ParametersMap":
        clone = ParametersMap()
        clone._values = dict(self._values)
        return clone

    def raw(self, key: ParameterKey) -> Any:
        return self._values[resolve_parameter(key)]

    def setdefault(self, key: ParameterKey, value: Any) -> None:
        parameter = resolve_parameter(key)
        if parameter not in self._values:
            self._values[parameter] = value

    # Typed reads -----------------------------------------------------------

    def get(
        self,
        key: ParameterKey,
        default: Any = _MISSING,
        *,
        positive: bool = False,
        non_negative: bool = False,
        in_range: Optional[Tuple[float, float]] = None,
    ) -> Any:
        """Return the typed value of ``key``.

        Raises :class:`MissingParameterError` when the key is absent and no
        ``default`` is given. The optional checks raise
        :class:`WrongParameterValueError` for values outside the domain.
        """

        parameter = resolve_parameter(key)
        if parameter not in self._values:
            if default is _MISSING:
                raise MissingParameterError(
                    f"Parameter '{parameter.value}' is required but was not specified."
                )
            return default

        value = _convert(parameter, self._values[parameter])
        if value is None:
            return value
        if positive and not value > 0:
            raise WrongParameterValueError(
                f"Parameter '{parameter.value}' must be positive, got {value}."
            )
        if non_negative and not value >= 0:
            raise WrongParameterValueError(
                f"Parameter '{parameter.value}' must be non-negative, got {value}."
            )
        if in_range is not None:
            low, high = in_range
            if not low <= value <= high:
                raise WrongParameterValueError(
                    f"Parameter '{parameter.value}' must be within [{low}, {high}], got {value}."
                )
        return value

    def to_serialisable_dict(self) -> Dict[str, Any]:
        """Return the JSON-friendly subset of the map (callbacks omitted)."""

        data: Dict[str, Any] = {}
        for parameter, value in self._values.items():
            if _SPECS[parameter].kind == "callable":
                continue
            data[parameter.value] = value.value if isinstance(value, Enum) else value
        return data


def _fixed_defaults() -> Dict[Parameter, Any]:
    # Imported lazily; the eigen module reads the environment on each call.
    from .eigen import default_eigen_method

    return {
        Parameter.OUTPUT_FEATURE_VECTORS_ARE_COLUMNS: False,
        Parameter.EIGENSHIFT: 1e-9,
        Parameter.KLLE_TRACE_SHIFT: 1e-3,
        Parameter.CHECK_CONNECTIVITY: True,
        Parameter.EIGEN_EMBEDDING_METHOD: default_eigen_method(),
        Parameter.NEIGHBORS_METHOD: NeighborsMethod.BRUTE_FORCE,
        Parameter.TARGET_DIMENSION: 2,
        Parameter.RANDOM_SEED: 0,
    }


def _is_method_key(key: object) -> bool:
    try:
        return resolve_parameter(key) is Parameter.REDUCTION_METHOD
    except (WrongParameterTypeError, WrongParameterValueError):
        return False


def _names_method(config: Union[ParametersMap, Mapping[ParameterKey, Any], None]) -> bool:
    # Checked on the raw keys so a missing selector wins over unknown keys.
    return any(_is_method_key(key) for key in (config or {}))


def validate_and_default(
    config: Union[ParametersMap, Mapping[ParameterKey, Any], None],
) -> ParametersMap:
    """Validate the method selector and fill in defaults.

    The input is left untouched; a new map is returned. Applying the function
    to its own output returns an equal map.
    """

    if not _names_method(config):
        raise MissingParameterError("Dimension reduction method wasn't specified.")
    parameters = config.copy() if isinstance(config, ParametersMap) else ParametersMap(config)
    # Store the resolved member so later reads never fail on the selector.
    parameters[Parameter.REDUCTION_METHOD] = parameters.get(Parameter.REDUCTION_METHOD)

    for parameter, value in _fixed_defaults().items():
        parameters.setdefault(parameter, value)
    return parameters


__all__ = [
    "Parameter",
    "ParameterKey",
    "ParameterSpec",
    "ParametersMap",
    "parameter_spec",
    "resolve_parameter",
    "validate_and_default",
]
