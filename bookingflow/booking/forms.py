"""
Organizer-defined registration form fields

Options are stored either as a plain string or as a {"value", "label"} object.
Inside the booking core they are always one of the two tagged option types;
conversion happens only when reading from or writing to storage.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from bookingflow.schemas.event import FormFieldSchema


@dataclass(frozen=True)
class PlainOption:
    value: str

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class LabeledOption:
    value: str
    label: str


Option = Union[PlainOption, LabeledOption]


def parse_option(raw: Union[str, Mapping[str, Any]]) -> Option:
    """Convert a stored option into its tagged form"""
    if isinstance(raw, str):
        return PlainOption(raw)
    if isinstance(raw, Mapping) and "value" in raw:
        value = str(raw["value"])
        label = raw.get("label")
        if label is None or str(label) == value:
            return PlainOption(value)
        return LabeledOption(value=value, label=str(label))
    raise ValueError(f"Unsupported form field option: {raw!r}")


def to_storage(option: Option) -> Union[str, Dict[str, str]]:
    """Convert a tagged option back to the simplest stored form"""
    if isinstance(option, LabeledOption):
        return {"value": option.value, "label": option.label}
    return option.value


@dataclass(frozen=True)
class FormField:
    """Registration field collected for every participant"""
    name: str
    label: str
    field_type: str = "text"
    required: bool = False
    options: Tuple[Option, ...] = field(default_factory=tuple)

    @classmethod
    def from_schema(cls, schema: FormFieldSchema) -> "FormField":
        return cls(
            name=schema.name,
            label=schema.label,
            field_type=schema.field_type,
            required=schema.required,
            options=tuple(parse_option(o) for o in schema.options or ()),
        )

    def to_schema(self) -> FormFieldSchema:
        return FormFieldSchema(
            name=self.name,
            label=self.label,
            field_type=self.field_type,
            required=self.required,
            options=[to_storage(o) for o in self.options] or None,
        )

    def option_values(self) -> List[str]:
        return [o.value for o in self.options]

    def is_populated(self, value: Any) -> bool:
        if value is None:
            return False
        if isinstance(value, str):
            return value.strip() != ""
        if isinstance(value, (list, tuple, set)):
            return len(value) > 0
        return True


def missing_required_fields(
    fields: List[FormField], custom_data: Optional[Mapping[str, Any]]
) -> List[FormField]:
    """Return the required fields that `custom_data` leaves unpopulated"""
    data = custom_data or {}
    return [f for f in fields if f.required and not f.is_populated(data.get(f.name))]
