from __future__ import annotations

"""
Readers for declarative field-definition documents (YAML).

Sources
-------
- Custom fields: every `*.yaml` / `*.yml` file under
  `<PROFILE_FIELDS_SCHEMA_ROOT>/<location>/`, where the location is
  `userProfile` or `groupProfile`. Files are read in sorted filename order and
  concatenated, so several apps can each contribute a file.
- Base request schemas: `<PROFILE_FIELDS_BASE_SCHEMA_ROOT>/<operation>.yaml`
  (e.g. `user/create`, `profile-settings`).

Document format
---------------
    nickname:
      type: string                # string | number | boolean | enum
      validators:                 # mapping, or ordered list of one-key mappings
        length: {min: 2, max: 40}
      default: ""                 # optional, must match `type`
      visibility: public          # optional: public (default) | private
      form: {label: Nickname}     # optional, passed through untouched

Error contract
--------------
- Every problem (missing directory, bad YAML, unknown type/rule, bad params,
  duplicate names, uncoercible default) raises `SchemaLoadError` naming the
  source file. Loading is a pure read; it never touches the cache.
"""

import logging
import re
from collections.abc import Hashable, Mapping
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from .exceptions import SchemaLoadError
from .types import (
    EntityKind,
    FieldDefinition,
    FieldType,
    SchemaDocument,
    Visibility,
    as_entity_kind,
)

logger = logging.getLogger(__name__)

SCHEMA_LOCATIONS: Dict[str, str] = {
    EntityKind.USER: "userProfile",
    EntityKind.GROUP: "groupProfile",
}

# Rules whose params are free-form (an optional `message` is tolerated).
FLAG_RULES = frozenset({
    "required",
    "integer",
    "numeric",
    "email",
    "uri",
    "telephone",
    "no_leading_whitespace",
    "no_trailing_whitespace",
})
BOUND_RULES = frozenset({"length", "range"})
MEMBERSHIP_RULES = frozenset({"member_of", "not_member_of"})
VALIDATOR_RULES = FLAG_RULES | BOUND_RULES | MEMBERSHIP_RULES | {"regex", "matches"}

DEFINITION_KEYS = frozenset({"type", "validators", "default", "visibility", "form"})

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,99}$")
_YAML_SUFFIXES = (".yaml", ".yml")


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that rejects duplicate keys instead of keeping the last one."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _value_node in node.value:
            key = self.construct_object(key_node, deep=deep)
            if isinstance(key, Hashable):
                if key in seen:
                    raise yaml.constructor.ConstructorError(
                        None, None, f"duplicate key '{key}'", key_node.start_mark
                    )
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


def read_yaml(path: Path) -> Dict[str, Any]:
    """
    Read one YAML document and return its top-level mapping.

    Raises:
        SchemaLoadError: unreadable file, invalid YAML, or non-mapping top level.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaLoadError(f"Cannot read schema file {path}: {exc}") from exc
    try:
        data = yaml.load(text, Loader=_UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise SchemaLoadError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise SchemaLoadError(f"Schema file {path} must contain a mapping at the top level.")
    return dict(data)


# ---------------------------------------------------------------------------
# Definition parsing
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coerce_value(field_type: str, value: Any) -> Any:
    """
    Coerce a declarative value to `field_type`.

    Raises:
        ValueError: when the value cannot represent the type.
    """
    if value is None:
        return None
    if field_type in (FieldType.STRING, FieldType.ENUM):
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ValueError(f"Expected a string, got {type(value).__name__}.")
        return str(value)
    if field_type == FieldType.NUMBER:
        if _is_number(value):
            return value
        if isinstance(value, str):
            try:
                number = float(value)
            except ValueError:
                raise ValueError(f"'{value}' is not a number.") from None
            return int(number) if number.is_integer() and "." not in value else number
        raise ValueError(f"Expected a number, got {type(value).__name__}.")
    if field_type == FieldType.BOOLEAN:
        if isinstance(value, bool):
            return value
        raise ValueError(f"Expected a boolean, got {type(value).__name__}.")
    raise ValueError(f"Unknown field type '{field_type}'.")


def _normalize_validators(raw: Any, where: str) -> Dict[str, Dict[str, Any]]:
    """
    Normalize the `validators` key to an ordered rule -> params dict.

    Accepts a mapping or an ordered list of single-key mappings; a null rule
    body becomes `{}`.
    """
    if raw is None:
        return {}
    pairs: List[Tuple[Any, Any]] = []
    if isinstance(raw, Mapping):
        pairs = list(raw.items())
    elif isinstance(raw, list):
        for item in raw:
            if isinstance(item, str):
                pairs.append((item, None))
            elif isinstance(item, Mapping) and len(item) == 1:
                pairs.extend(item.items())
            else:
                raise SchemaLoadError(f"{where}: each validator list item must be a single-key mapping.")
    else:
        raise SchemaLoadError(f"{where}: 'validators' must be a mapping or a list.")

    validators: Dict[str, Dict[str, Any]] = {}
    for rule, params in pairs:
        if rule not in VALIDATOR_RULES:
            raise SchemaLoadError(
                f"{where}: unknown validator '{rule}'. Allowed: {', '.join(sorted(VALIDATOR_RULES))}"
            )
        if rule in validators:
            raise SchemaLoadError(f"{where}: validator '{rule}' declared twice.")
        if params is None:
            params = {}
        if not isinstance(params, Mapping):
            raise SchemaLoadError(f"{where}: parameters of '{rule}' must be a mapping.")
        params = dict(params)
        _check_params(rule, params, where)
        validators[rule] = params
    return validators


def _check_params(rule: str, params: Dict[str, Any], where: str) -> None:
    if rule in BOUND_RULES:
        bounds = {k: params[k] for k in ("min", "max") if params.get(k) is not None}
        for key, bound in bounds.items():
            if not _is_number(bound):
                raise SchemaLoadError(f"{where}: '{rule}.{key}' must be a number.")
        if "min" in bounds and "max" in bounds and bounds["min"] > bounds["max"]:
            raise SchemaLoadError(f"{where}: '{rule}.min' is greater than '{rule}.max'.")
    elif rule in MEMBERSHIP_RULES:
        values = params.get("values")
        if not isinstance(values, list) or not values:
            raise SchemaLoadError(f"{where}: '{rule}.values' must be a non-empty list.")
    elif rule == "regex":
        pattern = params.get("regex")
        if not isinstance(pattern, str):
            raise SchemaLoadError(f"{where}: 'regex.regex' must be a string.")
        try:
            re.compile(pattern)
        except re.error as exc:
            raise SchemaLoadError(f"{where}: invalid regular expression: {exc}") from exc
    elif rule == "matches":
        if not isinstance(params.get("field"), str):
            raise SchemaLoadError(f"{where}: 'matches.field' must name another field.")


def parse_definition(name: Any, raw: Any, source: str = "<memory>") -> FieldDefinition:
    """Build one `FieldDefinition` from its declarative form."""
    where = f"{source} [{name}]"
    if not isinstance(name, str) or not _NAME_RE.match(name):
        raise SchemaLoadError(f"{source}: invalid field name {name!r}.")
    if not isinstance(raw, Mapping):
        raise SchemaLoadError(f"{where}: definition must be a mapping.")
    unknown = set(raw) - DEFINITION_KEYS
    if unknown:
        raise SchemaLoadError(f"{where}: unsupported keys {sorted(map(str, unknown))}.")
    for required in ("type", "validators"):
        if required not in raw:
            raise SchemaLoadError(f"{where}: missing required key '{required}'.")

    field_type = raw["type"]
    if field_type not in FieldType.values:
        raise SchemaLoadError(
            f"{where}: unknown type '{field_type}'. Allowed: {', '.join(FieldType.values)}"
        )
    validators = _normalize_validators(raw["validators"], where)
    if field_type == FieldType.ENUM and "member_of" not in validators:
        raise SchemaLoadError(f"{where}: enum fields require a 'member_of' validator.")

    visibility = raw.get("visibility") or Visibility.PUBLIC
    if visibility not in Visibility.values:
        raise SchemaLoadError(
            f"{where}: unknown visibility '{visibility}'. Allowed: {', '.join(Visibility.values)}"
        )

    try:
        default = coerce_value(field_type, raw.get("default"))
    except ValueError as exc:
        raise SchemaLoadError(f"{where}: invalid default: {exc}") from exc
    if field_type == FieldType.ENUM and default is not None:
        allowed = [str(v) for v in validators["member_of"]["values"]]
        if default not in allowed:
            raise SchemaLoadError(f"{where}: default '{default}' is not one of {allowed}.")

    form = raw.get("form") or {}
    if not isinstance(form, Mapping):
        raise SchemaLoadError(f"{where}: 'form' must be a mapping.")

    return FieldDefinition(
        name=name,
        type=str(field_type),
        validators=validators,
        default=default,
        visibility=str(visibility),
        form=dict(form),
    )


def parse_document(
    sources: Iterable[Tuple[str, Mapping]],
    kind: Optional[str] = None,
) -> SchemaDocument:
    """
    Build a `SchemaDocument` from `(source_name, mapping)` pairs, in order.

    Raises:
        SchemaLoadError: on any malformed definition or a name declared twice.
    """
    definitions: List[FieldDefinition] = []
    origin: Dict[str, str] = {}
    for source, data in sources:
        for name, raw in data.items():
            if name in origin:
                raise SchemaLoadError(
                    f"{source}: duplicate field name '{name}' (already defined in {origin[name]})."
                )
            definitions.append(parse_definition(name, raw, source))
            origin[name] = source
    return SchemaDocument(definitions, kind=kind)


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------

class SchemaSourceLoader:
    """
    Load the custom field document for an entity kind.

    Args:
        root: Directory holding one sub-directory per kind.
        locations: Optional kind -> sub-directory mapping (defaults to
            `SCHEMA_LOCATIONS`).
    """

    def __init__(self, root, locations: Optional[Mapping[str, str]] = None) -> None:
        self.root = Path(root)
        self.locations = dict(locations or SCHEMA_LOCATIONS)

    def source_dir(self, kind) -> Path:
        kind = as_entity_kind(kind)
        return self.root / self.locations[kind]

    def load(self, kind) -> SchemaDocument:
        """Read and parse every YAML file of the kind's source directory."""
        kind = as_entity_kind(kind)
        directory = self.source_dir(kind)
        if not directory.is_dir():
            raise SchemaLoadError(f"Schema source for '{kind}' not found: {directory}")
        files = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix in _YAML_SUFFIXES)
        logger.debug("Loading %s profile schema from %d file(s) in %s", kind, len(files), directory)
        return parse_document(((str(path), read_yaml(path)) for path in files), kind=kind)


class BaseSchemaProvider:
    """Supply the static base request schema for an operation name."""

    def __init__(self, root) -> None:
        self.root = Path(root)

    def path_for(self, operation: str) -> Path:
        """
        Resolve `operation` (e.g. "user/create") below `root`.

        Raises:
            SchemaLoadError: for empty names or names escaping the root.
        """
        if not operation or Path(operation).is_absolute() or ".." in Path(operation).parts:
            raise SchemaLoadError(f"Invalid base schema name {operation!r}.")
        for suffix in _YAML_SUFFIXES:
            candidate = self.root / f"{operation}{suffix}"
            if candidate.is_file():
                return candidate
        raise SchemaLoadError(f"Base schema '{operation}' not found under {self.root}")

    def get(self, operation: str) -> SchemaDocument:
        path = self.path_for(operation)
        return parse_document([(str(path), read_yaml(path))])
