# src/odesim_core/config/loader.py
import logging
import re
import string
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import cerberus
import yaml

from ..constants import (
    DEFAULT_MAX_DISPLAY_POINTS,
    DEFAULT_SWEEP_MAX,
    DEFAULT_SWEEP_MIN,
    DEFAULT_SWEEP_STEPS,
    DEFAULT_T_START,
    DEFAULT_TRANSIENT,
)
from ..data_structures import Parameter, SimulationSettings, SweepConfig, parameters_to_mapping
from ..errors import ConfigurationError
from .exceptions import ParsingError, SchemaValidationError

logger = logging.getLogger(__name__)

# Variable and parameter names follow the Python identifier grammar.
ID_REGEX = r"^[a-zA-Z_][a-zA-Z0-9_]*$"
ALLOWED_ID_CHARS = set(string.ascii_letters + string.digits + "_")


def _repeated(values) -> list:
    """Returns the values that occur more than once, sorted by their string form."""
    seen = set()
    repeated = set()
    for value in values:
        (repeated if value in seen else seen).add(value)
    return sorted(repeated, key=str)


class EnhancedValidator(cerberus.Validator):
    """Cerberus validator with the identifier and uniqueness rules of a study file."""

    def _validate_id_regex(self, constraint, field, value):
        """
        Validates that a variable or parameter name is a valid identifier.
        The rule's arguments are validated against this schema:
        {'type': 'boolean'}
        """
        if not constraint:
            return
        if not isinstance(value, str):
            self._error(field, "must be a string to be validated by id_regex.")
            return
        if not re.match(ID_REGEX, value):
            invalid_chars = sorted(set(value) - ALLOWED_ID_CHARS)
            self._error(
                field,
                f"Identifier '{value}' is invalid. Identifiers must start with a letter or underscore "
                f"and contain only letters, numbers and underscores. Forbidden character(s): {invalid_chars}",
            )

    def _validate_unique_values(self, constraint, field, value):
        """
        Validates that a list of state variable names holds no repeats, since each
        name maps to exactly one component of the state vector.
        The rule's arguments are validated against this schema:
        {'type': 'boolean'}
        """
        if not constraint or not isinstance(value, list):
            return
        hashable = [item for item in value if isinstance(item, str)]
        if repeated := _repeated(hashable):
            self._error(field, f"Duplicate values found: {repeated}. Each state variable must be declared once.")

    def _validate_unique_elements_by_key(self, key, field, value):
        """
        Validates that the `key` entry of every mapping in a list is unique, e.g. that
        no parameter name is declared twice with two different values.
        The rule's arguments are validated against this schema:
        {'type': 'string'}
        """
        if not isinstance(value, list):
            return
        keys = [item.get(key) for item in value if isinstance(item, dict) and isinstance(item.get(key), str)]
        if repeated := _repeated(keys):
            self._error(field, f"Duplicate values found for key '{key}': {repeated}")


@dataclass(frozen=True)
class StudyConfig:
    """
    A fully validated study: the system's variable and parameter names, the
    simulation window, an optional bifurcation sweep, and the display budget.
    """
    name: str
    variable_names: Tuple[str, ...]
    parameters: Dict[str, float]
    settings: SimulationSettings
    sweep: Optional[SweepConfig]
    max_display_points: int = DEFAULT_MAX_DISPLAY_POINTS

    def variable_index(self, name: str) -> int:
        try:
            return self.variable_names.index(name)
        except ValueError as e:
            raise ConfigurationError(details=f"Unknown state variable '{name}'. Declared: {list(self.variable_names)}.", field="variables") from e


class StudyConfigParser:
    """
    Loads a study description from a YAML file, a YAML string or an in-memory mapping,
    validates its structure, and produces an immutable `StudyConfig`.
    """
    _id_rule = {"type": "string", "required": True, "empty": False, "id_regex": True}

    _schema = {
        "name": {"type": "string", "required": False},
        "variables": {"type": "list", "required": True, "minlength": 1, "unique_values": True, "schema": {"type": "string", "id_regex": True}},
        "parameters": {
            "type": "list", "required": False, "default": [], "unique_elements_by_key": "name",
            "schema": {"type": "dict", "schema": {"name": _id_rule, "value": {"type": "number", "required": True}}},
        },
        "simulation": {
            "type": "dict", "required": True, "schema": {
                "initial_conditions": {"type": "list", "required": True, "minlength": 1, "schema": {"type": "number"}},
                "t_start": {"type": "number", "default": DEFAULT_T_START},
                "t_end": {"type": "number", "required": True},
                "step_size": {"type": "number", "required": True},
                "transient": {"type": "number", "default": DEFAULT_TRANSIENT, "min": 0},
            },
        },
        "sweep": {
            "type": "dict", "required": False, "schema": {
                "parameter": _id_rule,
                "observed_variable": _id_rule,
                "min": {"type": "number", "default": DEFAULT_SWEEP_MIN},
                "max": {"type": "number", "default": DEFAULT_SWEEP_MAX},
                "steps": {"type": "integer", "default": DEFAULT_SWEEP_STEPS, "min": 0},
                "transient": {"type": "number", "nullable": True, "default": None, "min": 0},
            },
        },
        "display": {
            "type": "dict", "required": False, "schema": {
                "max_points": {"type": "integer", "default": DEFAULT_MAX_DISPLAY_POINTS, "min": 1},
            },
        },
    }

    def __init__(self):
        self._validator = EnhancedValidator(self._schema)
        self._validator.allow_unknown = False
        logger.debug("StudyConfigParser initialized with strict structural validation rules.")

    def parse(self, source: Union[str, Path, Mapping[str, Any]]) -> StudyConfig:
        """Parses a study from a file path or an already-loaded mapping."""
        if isinstance(source, Mapping):
            return self._build(dict(source), file_path=None)
        path = Path(source).resolve()
        logger.info(f"Loading study from: {path}")
        return self._build(self._load_yaml(path), file_path=path)

    def parse_string(self, yaml_text: str) -> StudyConfig:
        """Parses a study from YAML text."""
        return self._build(self._safe_load(yaml_text, file_path=None), file_path=None)

    def _build(self, document: Dict[str, Any], file_path: Optional[Path]) -> StudyConfig:
        if not self._validator.validate(document):
            raise SchemaValidationError(self._validator.errors, file_path)
        validated = self._validator.document

        variable_names = tuple(validated["variables"])
        parameters = parameters_to_mapping(
            Parameter(name=p["name"], value=p["value"]) for p in validated.get("parameters", [])
        )

        sim = validated["simulation"]
        settings = SimulationSettings(
            initial_conditions=tuple(sim["initial_conditions"]),
            t_start=sim["t_start"],
            t_end=sim["t_end"],
            step_size=sim["step_size"],
            transient=sim["transient"],
        )
        if settings.num_variables != len(variable_names):
            raise ConfigurationError(
                details=(f"{settings.num_variables} initial condition(s) given for "
                         f"{len(variable_names)} variable(s) {list(variable_names)}."),
                field="simulation.initial_conditions"
            )
        settings.validate()

        sweep = self._build_sweep(validated.get("sweep"), variable_names, parameters)
        display = validated.get("display") or {}

        study = StudyConfig(
            name=validated.get("name") or (file_path.stem if file_path else "study"),
            variable_names=variable_names,
            parameters=parameters,
            settings=settings,
            sweep=sweep,
            max_display_points=display.get("max_points", DEFAULT_MAX_DISPLAY_POINTS),
        )
        logger.info(f"Study '{study.name}' loaded: {len(variable_names)} variable(s), {len(parameters)} parameter(s).")
        return study

    def _build_sweep(
        self,
        raw_sweep: Optional[Dict[str, Any]],
        variable_names: Tuple[str, ...],
        parameters: Dict[str, float]
    ) -> Optional[SweepConfig]:
        if raw_sweep is None:
            return None
        if raw_sweep["parameter"] not in parameters:
            raise ConfigurationError(
                details=f"Sweep parameter '{raw_sweep['parameter']}' is not declared. Declared: {sorted(parameters)}.",
                field="sweep.parameter"
            )
        if raw_sweep["observed_variable"] not in variable_names:
            raise ConfigurationError(
                details=f"Observed variable '{raw_sweep['observed_variable']}' is not declared. Declared: {list(variable_names)}.",
                field="sweep.observed_variable"
            )
        sweep = SweepConfig(
            parameter_name=raw_sweep["parameter"],
            minimum=raw_sweep["min"],
            maximum=raw_sweep["max"],
            steps=raw_sweep["steps"],
            observed_index=variable_names.index(raw_sweep["observed_variable"]),
            transient=raw_sweep["transient"],
        )
        sweep.validate(len(variable_names))
        return sweep

    def _load_yaml(self, source: Path) -> Dict[str, Any]:
        """Loads and performs basic sanity checks on a YAML file."""
        if not source.is_file():
            raise ParsingError(details=f"Study file not found at path: {source}", file_path=source)
        try:
            text = source.read_text(encoding="utf-8")
        except (PermissionError, UnicodeDecodeError) as e:
            raise ParsingError(details=f"Could not read study file: {e}", file_path=source) from e
        return self._safe_load(text, file_path=source)

    def _safe_load(self, text: str, file_path: Optional[Path]) -> Dict[str, Any]:
        try:
            content = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParsingError(details=f"Invalid YAML syntax: {e}", file_path=file_path) from e
        if content is None:
            raise ParsingError(details="The YAML document is empty or contains no valid content.", file_path=file_path)
        if not isinstance(content, dict):
            raise ParsingError(details="The root of the YAML document must be a dictionary (mapping).", file_path=file_path)
        return content
