"""Request validation and normalization.

Turns the loosely-typed positional argument list of an invocation into a
normalized group collection and a fully-defaulted `ClusteringConfig`. Each
raw argument is tagged as a `HostArgument` and checked against the declared
`ARGUMENT_SCHEMA`; optional arguments are filled in positionally by a
`ConfigurationBuilder`, which refuses to skip over a missing predecessor.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Self

import numpy as np

from .errors import ArgumentError, ArityError, ConfigurationError
from .interface import Algorithm, ClusteringConfig

log = logging.getLogger(__name__)

MIN_INPUTS = 2
MAX_INPUTS = 5

### Tagged Arguments ###


class ArgumentKind(Enum):
    GROUPS = "matrix collection"
    INTEGER = "integer"
    LOGICAL = "logical"
    REAL = "double"
    OTHER = "unsupported"


@dataclass(frozen=True)
class HostArgument:
    """A raw argument tagged with its kind and matrix shape."""

    kind: ArgumentKind
    value: Any
    shape: tuple[int, ...]
    """Matrix shape; scalars are (1, 1) and vectors of length n are (1, n)."""

    @property
    def is_scalar(self) -> bool:
        return self.shape == (1, 1)

    def item(self) -> Any:
        """Return the single element of a 1x1 argument."""
        return np.asarray(self.value).reshape(-1)[0].item()


def _matrix_shape(shape: tuple[int, ...]) -> tuple[int, ...]:
    if len(shape) == 0:
        return (1, 1)
    if len(shape) == 1:
        return (1, shape[0])
    return shape


def _is_cell_array(value: Any) -> bool:
    if isinstance(value, np.ndarray):
        return value.dtype == object
    if isinstance(value, (list, tuple)):
        return not all(isinstance(v, (bool, int, float, np.generic)) for v in value)
    return False


def tag_argument(value: Any) -> HostArgument:
    """Classify a raw host value."""
    if _is_cell_array(value):
        shape = np.shape(value) if isinstance(value, np.ndarray) else (len(value),)
        return HostArgument(ArgumentKind.GROUPS, value, _matrix_shape(shape))

    try:
        array = np.asarray(value)
    except (TypeError, ValueError):
        return HostArgument(ArgumentKind.OTHER, value, (0, 0))

    shape = _matrix_shape(array.shape)
    if array.dtype == np.bool_:
        kind = ArgumentKind.LOGICAL
    elif np.issubdtype(array.dtype, np.integer):
        kind = ArgumentKind.INTEGER
    elif np.issubdtype(array.dtype, np.floating):
        kind = ArgumentKind.REAL
    else:
        kind = ArgumentKind.OTHER
    return HostArgument(kind, value, shape)


### Schema ###


@dataclass(frozen=True)
class ArgumentSpec:
    """Expected kind of the argument at a given position."""

    position: int
    name: str
    kind: ArgumentKind
    field: str | None
    """`ClusteringConfig` field filled by this argument, if any."""
    message: str
    """Error message raised when the argument does not conform."""


ARGUMENT_SCHEMA: tuple[ArgumentSpec, ...] = (
    ArgumentSpec(
        1,
        "X",
        ArgumentKind.GROUPS,
        None,
        "Observations should be a 1xJ or Jx1 collection of matrices.",
    ),
    ArgumentSpec(
        2,
        "alg",
        ArgumentKind.INTEGER,
        "algorithm",
        "Wrong algorithm type specified!",
    ),
    ArgumentSpec(
        3,
        "sparse",
        ArgumentKind.LOGICAL,
        "sparse",
        "Sparse flag should be one logical element.",
    ),
    ArgumentSpec(
        4,
        "verbose",
        ArgumentKind.LOGICAL,
        "verbose",
        "Verbose flag should be one logical element.",
    ),
    ArgumentSpec(
        5,
        "clustwidth",
        ArgumentKind.REAL,
        "cluster_width",
        "Cluster width should be one positive double element.",
    ),
)

OPTION_SCHEMA = ARGUMENT_SCHEMA[2:]


def _spec_at(position: int) -> ArgumentSpec:
    return ARGUMENT_SCHEMA[position - 1]


### Algorithm Selector ###


def resolve_algorithm(value: Any) -> Algorithm:
    """Resolve an algorithm selector to a known variant.

    Integers and integral doubles are accepted, as single elements.

    Raises:
        ConfigurationError: If the selector does not name a known variant
    """
    spec = _spec_at(2)
    argument = tag_argument(value)
    if not argument.is_scalar or argument.kind not in (
        ArgumentKind.INTEGER,
        ArgumentKind.REAL,
    ):
        raise ConfigurationError(spec.message)

    code = argument.item()
    if isinstance(code, float):
        if not code.is_integer():
            raise ConfigurationError(spec.message)
        code = int(code)

    try:
        return Algorithm(code)
    except ValueError:
        raise ConfigurationError(spec.message) from None


### Options ###


def _check_option(spec: ArgumentSpec, value: Any) -> bool | float:
    argument = tag_argument(value)
    if not argument.is_scalar or argument.kind is not spec.kind:
        raise ArgumentError(spec.position, spec.message)

    item = argument.item()
    if spec.kind is ArgumentKind.REAL:
        if not math.isfinite(item) or item <= 0.0:
            raise ArgumentError(spec.position, spec.message)
        return float(item)
    return bool(item)


class ConfigurationBuilder:
    """Fills a `ClusteringConfig` from optional arguments, strictly in order.

    Options must be supplied in position order starting at argument 3;
    supplying argument k before argument k-1 is an arity error.
    """

    def __init__(self, algorithm: Algorithm) -> None:
        self._algorithm = algorithm
        self._options: dict[str, bool | float] = {}
        self._next = OPTION_SCHEMA[0].position

    @property
    def next_position(self) -> int:
        """Position of the next option that may be supplied."""
        return self._next

    def supply(self, position: int, value: Any) -> Self:
        """Validate and record the option at the given position.

        Raises:
            ArityError: If the position is not an option, was already
                supplied, or skips over an unsupplied predecessor
            ArgumentError: If the value has the wrong shape or type
        """
        if not 1 <= position <= ARGUMENT_SCHEMA[-1].position:
            raise ArityError("Wrong number of inputs!")
        spec = _spec_at(position)
        if spec not in OPTION_SCHEMA or spec.field is None:
            raise ArityError(f"Argument {position} ({spec.name}) is not an option.")
        if position < self._next:
            raise ArityError(
                f"Argument {position} ({spec.name}) was already supplied."
            )
        if position > self._next:
            expected = _spec_at(self._next)
            raise ArityError(
                f"Argument {position} ({spec.name}) requires argument "
                f"{expected.position} ({expected.name}) to be supplied."
            )

        self._options[spec.field] = _check_option(spec, value)
        self._next += 1
        return self

    def build(self) -> ClusteringConfig:
        return ClusteringConfig(algorithm=self._algorithm, **self._options)  # pyright: ignore[reportArgumentType]


### Groups ###


def _group_elements(argument: HostArgument) -> list[Any]:
    spec = _spec_at(1)
    if argument.kind is not ArgumentKind.GROUPS or len(argument.shape) != 2:
        raise ArgumentError(spec.position, spec.message)

    rows, cols = argument.shape
    if min(rows, cols) > 1:
        raise ArgumentError(spec.position, spec.message)

    n_groups = max(rows, cols)
    if isinstance(argument.value, np.ndarray):
        elements = list(argument.value.reshape(-1))
    else:
        elements = list(argument.value)
    if n_groups == 0 or not elements:
        raise ArgumentError(
            spec.position, "Observations should contain at least one group."
        )
    return elements


def normalize_groups(value: Any) -> list[np.ndarray]:
    """Convert a collection of observation matrices to float64 arrays.

    Matrices are viewed rather than copied when they already are float64
    numpy arrays. Every group must share the column count of the first group.

    Raises:
        ArgumentError: If the collection or any of its matrices is malformed
    """
    elements = _group_elements(tag_argument(value))

    groups: list[np.ndarray] = []
    for j, element in enumerate(elements):
        try:
            raw = np.asarray(element)
        except (TypeError, ValueError):
            raw = None
        if raw is None or raw.dtype.kind not in "iuf":
            raise ArgumentError(1, f"Group {j + 1} should be a real matrix.")
        group = np.asarray(raw, dtype=np.float64)
        if group.ndim != 2:
            raise ArgumentError(
                1, f"Group {j + 1} should be a matrix, got {group.ndim} dimensions."
            )
        groups.append(group)

    data_dim = groups[0].shape[1]
    for j, group in enumerate(groups[1:], start=2):
        if group.shape[1] != data_dim:
            raise ArgumentError(
                1,
                f"Group {j} has {group.shape[1]} columns, "
                f"expected {data_dim} like group 1.",
            )
    return groups


### Requests ###


def validate_request(args: Sequence[Any]) -> tuple[list[np.ndarray], ClusteringConfig]:
    """Validate a raw argument list.

    Args:
        args: Positional arguments `(groups, algorithm, [sparse], [verbose],
            [cluster_width])`. A `None` option marks an unsupplied slot.

    Returns:
        The normalized groups and the fully-defaulted configuration

    Raises:
        ArityError: Wrong number of arguments, or an option skips a predecessor
        ArgumentError: An argument has the wrong shape or type
        ConfigurationError: Unknown algorithm selector
    """
    if not MIN_INPUTS <= len(args) <= MAX_INPUTS:
        raise ArityError("Wrong number of inputs!")

    builder = ConfigurationBuilder(resolve_algorithm(args[1]))
    for position, value in enumerate(args[2:], start=OPTION_SCHEMA[0].position):
        if value is not None:
            builder.supply(position, value)
    config = builder.build()

    groups = normalize_groups(args[0])
    log.debug(
        "Validated %d groups of dimension %d for %s",
        len(groups),
        groups[0].shape[1],
        config,
    )
    return groups, config
