"""
Adapter between schema documents and DRF's validation machinery.

`build_serializer(schema)` turns any `SchemaDocument` (custom fields alone or a
`MergedSchema`) into a `serializers.Serializer` subclass, so views and the
attribute store validate and coerce with the same rules.

Type mapping
------------
- string  -> CharField (length -> min_length/max_length)
- number  -> IntegerField with the `integer` rule, otherwise NumberField
             (range -> min_value/max_value)
- boolean -> BooleanField
- enum    -> ChoiceField over `member_of.values`

Fields without the `required` rule accept null (and blank strings). A field's
`default` is applied on full (non-partial) validation only, which mirrors the
"whitelist and set defaults" step of a request pipeline.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from django.core.validators import EmailValidator, RegexValidator, URLValidator
from rest_framework import serializers

from .exceptions import ProfileValidationError
from .types import FieldDefinition, FieldType, SchemaDocument

_TELEPHONE_RE = r"^\+?[0-9 ().\-]{7,20}$"
_INTEGER_RE = r"^[+-]?\d+$"


class NumberField(serializers.FloatField):
    """FloatField that keeps integral input as `int` (30 stays 30, not 30.0)."""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        if isinstance(data, int) and not isinstance(data, bool):
            return int(value)
        return value


def _message(params: Mapping[str, Any], default: str) -> str:
    return params.get("message") or default


def _member_of(values: List[Any], params: Mapping[str, Any]) -> Callable[[Any], None]:
    allowed = [str(v) for v in values]

    def validator(value):
        if str(value) not in allowed:
            raise serializers.ValidationError(
                _message(params, f"Must be one of: {', '.join(allowed)}.")
            )
    return validator


def _not_member_of(values: List[Any], params: Mapping[str, Any]) -> Callable[[Any], None]:
    forbidden = [str(v) for v in values]

    def validator(value):
        if str(value) in forbidden:
            raise serializers.ValidationError(_message(params, "This value is not allowed."))
    return validator


def _no_leading_whitespace(params: Mapping[str, Any]) -> Callable[[Any], None]:
    def validator(value):
        if isinstance(value, str) and value[:1].isspace():
            raise serializers.ValidationError(_message(params, "Must not begin with whitespace."))
    return validator


def _no_trailing_whitespace(params: Mapping[str, Any]) -> Callable[[Any], None]:
    def validator(value):
        if isinstance(value, str) and value[-1:].isspace():
            raise serializers.ValidationError(_message(params, "Must not end with whitespace."))
    return validator


def _numeric_string(params: Mapping[str, Any]) -> Callable[[Any], None]:
    def validator(value):
        try:
            float(value)
        except (TypeError, ValueError):
            raise serializers.ValidationError(_message(params, "Must be a number.")) from None
    return validator


def _validators_for(definition: FieldDefinition) -> List[Callable[[Any], None]]:
    """Translate rules that have no direct DRF field keyword into callables."""
    rules = definition.validators
    validators: List[Callable[[Any], None]] = []
    for rule, params in rules.items():
        if rule == "email":
            validators.append(EmailValidator(message=params.get("message")))
        elif rule == "uri":
            validators.append(URLValidator(message=params.get("message")))
        elif rule == "regex":
            validators.append(RegexValidator(params["regex"], message=params.get("message")))
        elif rule == "telephone":
            validators.append(RegexValidator(_TELEPHONE_RE, _message(params, "Enter a valid telephone number.")))
        elif rule == "member_of" and definition.type != FieldType.ENUM:
            validators.append(_member_of(params["values"], params))
        elif rule == "not_member_of":
            validators.append(_not_member_of(params["values"], params))
        elif rule == "no_leading_whitespace":
            validators.append(_no_leading_whitespace(params))
        elif rule == "no_trailing_whitespace":
            validators.append(_no_trailing_whitespace(params))
        elif definition.type == FieldType.STRING and rule == "integer":
            validators.append(RegexValidator(_INTEGER_RE, _message(params, "Must be an integer.")))
        elif definition.type == FieldType.STRING and rule == "numeric":
            validators.append(_numeric_string(params))
    return validators


def build_field(definition: FieldDefinition) -> serializers.Field:
    """Return the DRF field that validates and coerces `definition`."""
    rules = definition.validators
    required = "required" in rules
    kwargs: Dict[str, Any] = {"validators": _validators_for(definition)}
    if required:
        kwargs["required"] = True
    else:
        kwargs["allow_null"] = True
        if definition.default is not None:
            kwargs["default"] = definition.default
        else:
            kwargs["required"] = False

    length = rules.get("length", {})
    bounds = rules.get("range", {})

    if definition.type == FieldType.STRING:
        return serializers.CharField(
            allow_blank=not required,
            trim_whitespace=False,
            min_length=length.get("min"),
            max_length=length.get("max"),
            **kwargs,
        )
    if definition.type == FieldType.NUMBER:
        field_cls = serializers.IntegerField if "integer" in rules else NumberField
        return field_cls(min_value=bounds.get("min"), max_value=bounds.get("max"), **kwargs)
    if definition.type == FieldType.BOOLEAN:
        return serializers.BooleanField(**kwargs)
    if definition.type == FieldType.ENUM:
        choices = [str(v) for v in rules["member_of"]["values"]]
        return serializers.ChoiceField(choices=choices, allow_blank=not required, **kwargs)
    raise ValueError(f"Unsupported field type '{definition.type}'.")


def _matches_validator(pairs: List[tuple]) -> Callable:
    """Serializer-level `validate()` enforcing `matches` (e.g. password confirmation)."""

    def validate(self, attrs):
        errors: Dict[str, List[str]] = {}
        for field_name, params in pairs:
            if field_name in attrs and attrs[field_name] != attrs.get(params["field"]):
                errors[field_name] = [_message(params, f"Must match {params['field']}.")]
        if errors:
            raise serializers.ValidationError(errors)
        return attrs
    return validate


def build_serializer(schema: SchemaDocument, name: str = "ProfileSerializer") -> type:
    """Generate a `Serializer` subclass with one field per schema entry."""
    attrs: Dict[str, Any] = {
        field_name: build_field(definition) for field_name, definition in schema.items()
    }
    matches = [
        (field_name, definition.validators["matches"])
        for field_name, definition in schema.items()
        if "matches" in definition.validators
    ]
    if matches:
        attrs["validate"] = _matches_validator(matches)
    return type(name, (serializers.Serializer,), attrs)


def flatten_errors(errors: Mapping[str, Any]) -> Dict[str, List[str]]:
    """Convert DRF `serializer.errors` to plain `{field: [message, ...]}`."""
    flat: Dict[str, List[str]] = {}
    for field_name, messages in errors.items():
        if isinstance(messages, (list, tuple)):
            flat[field_name] = [str(m) for m in messages]
        else:
            flat[field_name] = [str(messages)]
    return flat


def validate_values(
    schema: SchemaDocument,
    values: Mapping[str, Any],
    partial: bool = True,
    serializer_class: Optional[type] = None,
) -> Dict[str, Any]:
    """
    Validate `values` against `schema` and return the coerced data.

    With `partial=True` only supplied keys are validated (and returned).

    Raises:
        ProfileValidationError: aggregated per-field errors.
    """
    serializer_class = serializer_class or build_serializer(schema)
    serializer = serializer_class(data=values, partial=partial)
    if not serializer.is_valid():
        raise ProfileValidationError(flatten_errors(serializer.errors))
    return dict(serializer.validated_data)


def describe(schema: SchemaDocument) -> List[Dict[str, Any]]:
    """JSON-ready field descriptors for form-rendering clients."""
    return [{"name": name, **declared} for name, declared in schema.to_dict().items()]
