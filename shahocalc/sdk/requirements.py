"""Conditional field requirements for the dependent change filing (被扶養者異動届).

SDK layer - pure logic. No form rendering.

Each spouse or other-dependent sub-record carries a change type (異動種別).
The change type decides which of the record's fields must be filled before
the filing can be submitted:

    no_change       nothing required
    applicable      identity + start fields (becoming a dependent)
    not_applicable  identity + end fields (ceasing to be a dependent)
    change          nothing required; identity is the frozen "before" value

On top of the base table, the selected reason adds fields:

    applicable     + start reason "other" -> dependent_start_reason_other
    not_applicable + end reason "death"   -> death_date
    not_applicable + end reason "other"   -> dependent_end_reason_other

The spouse record of the external filing has one extra switch: when the
insured person has a spouse who is not a dependent, the change type is
ignored and only spouse_income is required.

Requirements are a pure function of (change type, form variant, reason
selections) and are recomputed from scratch on every transition, so a
requirement from a previous change type can never linger.

Usage:
    from shahocalc.sdk.requirements import required_fields, FormVariant

    variant = FormVariant.of("spouse", "external")
    required_fields("not_applicable", variant, end_reason="death")
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class InvalidChangeType(Exception):
    """Raised for a change type outside ChangeType. A caller bug, not user input."""
    pass


class ReadOnlyFieldError(ValueError):
    """Raised when writing a frozen "before" field of a record in change state."""
    pass


class ChangeType(str, Enum):
    NO_CHANGE = "no_change"
    APPLICABLE = "applicable"
    NOT_APPLICABLE = "not_applicable"
    CHANGE = "change"


class Requirement(str, Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"


class RecordKind(str, Enum):
    SPOUSE = "spouse"
    OTHER_DEPENDENT = "other_dependent"


class FilingContext(str, Enum):
    INTERNAL = "internal"  # employee's own request to HR
    EXTERNAL = "external"  # filing submitted to the pension office


class StartReason(str, Enum):
    SPOUSE_EMPLOYMENT = "spouse_employment"
    MARRIAGE = "marriage"
    BIRTH = "birth"
    RETIREMENT = "retirement"
    INCOME_DECREASE = "income_decrease"
    LIVING_TOGETHER = "living_together"
    OTHER = "other"


class EndReason(str, Enum):
    DEATH = "death"
    DIVORCE = "divorce"
    EMPLOYMENT = "employment"
    OVER75 = "over75"
    DISABILITY = "disability"
    OTHER = "other"


# =============================================================================
# Field catalogue
# =============================================================================

IDENTITY_FIELDS = (
    "last_name",
    "first_name",
    "last_name_kana",
    "first_name_kana",
    "birth_date",
    "gender",
    "relationship",
)

START_FIELDS = ("dependent_start_date", "dependent_start_reason")
END_FIELDS = ("dependent_end_date", "dependent_end_reason")

DEATH_DATE = "death_date"
START_REASON_OTHER = "dependent_start_reason_other"
END_REASON_OTHER = "dependent_end_reason_other"
SPOUSE_INCOME = "spouse_income"

_DETAIL_FIELDS = (
    "personal_number",
    "address.address",
    "address.living_together",
    "occupation",
    "occupation_other",
    "income",
    START_REASON_OTHER,
    END_REASON_OTHER,
    DEATH_DATE,
    "remarks",
    "overseas_exception",
    "overseas_exception_start_date",
    "overseas_exception_start_reason",
    "overseas_exception_end_date",
    "overseas_exception_end_reason",
    "domestic_transfer_date",
    "certificate_required",
)

_SPOUSE_DETAIL_FIELDS = (
    "identification_type",
    "basic_pension_number",
    "is_foreigner",
    "foreign_name",
    "foreign_name_kana",
    "phone_number.phone",
    "phone_number.type",
)

_OTHER_DEPENDENT_DETAIL_FIELDS = (
    "relationship_other",
    "student_year",
)

_CHANGE_AFTER_FIELDS = IDENTITY_FIELDS[:5] + (
    "dependent_start_date",
    "dependent_start_reason",
    "occupation",
    "income",
    "dependent_end_date",
    "dependent_end_reason",
    DEATH_DATE,
)

# Required fields per change type, before reason rules
BASE_RULES: Dict[ChangeType, Tuple[str, ...]] = {
    ChangeType.NO_CHANGE: (),
    ChangeType.APPLICABLE: IDENTITY_FIELDS + START_FIELDS,
    ChangeType.NOT_APPLICABLE: IDENTITY_FIELDS + END_FIELDS,
    # TODO: decide whether change_after identity fields should be required once
    # the pension office confirms what a partial "after" block means.
    ChangeType.CHANGE: (),
}

START_REASON_RULES: Dict[StartReason, Tuple[str, ...]] = {
    StartReason.OTHER: (START_REASON_OTHER,),
}

END_REASON_RULES: Dict[EndReason, Tuple[str, ...]] = {
    EndReason.DEATH: (DEATH_DATE,),
    EndReason.OTHER: (END_REASON_OTHER,),
}


@dataclass(frozen=True)
class FormVariant:
    """Which sub-record of which filing a rule table applies to."""

    kind: RecordKind
    context: FilingContext

    @classmethod
    def of(cls, kind: Any, context: Any) -> "FormVariant":
        """Build from enum members or their string values."""
        try:
            return cls(RecordKind(kind), FilingContext(context))
        except ValueError as e:
            raise ValueError(f"Unknown form variant ({kind!r}, {context!r}): {e}") from e

    @property
    def fields(self) -> Tuple[str, ...]:
        return _VARIANT_FIELDS[self]

    @property
    def supports_spouse_override(self) -> bool:
        return self.kind is RecordKind.SPOUSE and self.context is FilingContext.EXTERNAL

    def __str__(self) -> str:
        return f"{self.kind.value}/{self.context.value}"


def _variant_fields(kind: RecordKind, context: FilingContext) -> Tuple[str, ...]:
    """Every field path of a sub-record, in form order."""
    kind_details = _SPOUSE_DETAIL_FIELDS if kind is RecordKind.SPOUSE else _OTHER_DEPENDENT_DETAIL_FIELDS
    after = _CHANGE_AFTER_FIELDS
    if kind is RecordKind.OTHER_DEPENDENT:
        after = after + ("student_year",)

    fields = IDENTITY_FIELDS + START_FIELDS + END_FIELDS + _DETAIL_FIELDS + kind_details
    fields += tuple(f"change_after.{name}" for name in after)
    if kind is RecordKind.SPOUSE and context is FilingContext.EXTERNAL:
        fields += (SPOUSE_INCOME,)
    return fields


_VARIANT_FIELDS: Dict[FormVariant, Tuple[str, ...]] = {
    FormVariant(kind, context): _variant_fields(kind, context)
    for kind in RecordKind
    for context in FilingContext
}


# =============================================================================
# Pure requirement derivation
# =============================================================================

def coerce_change_type(value: Any) -> ChangeType:
    """Resolve a change type value.

    Raises:
        InvalidChangeType: For None, blank or unknown values
    """
    if isinstance(value, ChangeType):
        return value
    try:
        return ChangeType(value)
    except ValueError as e:
        raise InvalidChangeType(
            f"Unknown change type {value!r}; expected one of "
            f"{', '.join(ct.value for ct in ChangeType)}"
        ) from e


def _coerce_reason(enum_cls, value: Any):
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ValueError(f"Unknown {enum_cls.__name__} {value!r}") from e


def required_fields(
    change_type: Any,
    variant: FormVariant,
    *,
    end_reason: Any = None,
    start_reason: Any = None,
    has_non_dependent_spouse: bool = False,
) -> FrozenSet[str]:
    """Field paths that must be filled for the given selections.

    Args:
        change_type: ChangeType or its value. Ignored under the spouse override.
        variant: Sub-record kind and filing context
        end_reason: EndReason (or value); only consulted for not_applicable
        start_reason: StartReason (or value); only consulted for applicable
        has_non_dependent_spouse: Spouse override (external spouse only)

    Raises:
        InvalidChangeType: If change_type is not a ChangeType value
        ValueError: If the override is requested for a variant without it,
            or a reason value is unknown
    """
    if has_non_dependent_spouse:
        if not variant.supports_spouse_override:
            raise ValueError(f"has_non_dependent_spouse is not available on {variant}")
        return frozenset((SPOUSE_INCOME,))

    change_type = coerce_change_type(change_type)
    end_reason = _coerce_reason(EndReason, end_reason)
    start_reason = _coerce_reason(StartReason, start_reason)

    required = set(BASE_RULES[change_type])
    if change_type is ChangeType.APPLICABLE and start_reason is not None:
        required.update(START_REASON_RULES.get(start_reason, ()))
    if change_type is ChangeType.NOT_APPLICABLE and end_reason is not None:
        required.update(END_REASON_RULES.get(end_reason, ()))

    return frozenset(required)


def field_requirements(
    change_type: Any,
    variant: FormVariant,
    *,
    end_reason: Any = None,
    start_reason: Any = None,
    has_non_dependent_spouse: bool = False,
) -> Dict[str, Requirement]:
    """Requirement of every field of the variant. Same arguments as required_fields."""
    required = required_fields(
        change_type,
        variant,
        end_reason=end_reason,
        start_reason=start_reason,
        has_non_dependent_spouse=has_non_dependent_spouse,
    )
    return {
        path: Requirement.REQUIRED if path in required else Requirement.OPTIONAL
        for path in variant.fields
    }


def _lookup(values: Mapping[str, Any], path: str) -> Any:
    """Read a dotted path from nested values, falling back to a flat key."""
    if path in values:
        return values[path]
    current: Any = values
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def is_blank(value: Any) -> bool:
    """Blank as the form sees it. A date group is blank if any part is blank."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, Mapping):
        return not value or any(is_blank(v) for v in value.values())
    return False


# =============================================================================
# Per-record state
# =============================================================================

class SubRecordState:
    """Change-type state of one spouse or other-dependent record.

    Holds the record's current values, the active selections, and, while in
    change state, a private snapshot of the identity values as they were
    before the change. Sub-records never share any of this.
    """

    def __init__(self, variant: FormVariant, values: Optional[Mapping[str, Any]] = None):
        self.variant = variant
        self.values: Dict[str, Any] = dict(values or {})
        self.change_type = ChangeType.NO_CHANGE
        self.start_reason: Optional[StartReason] = None
        self.end_reason: Optional[EndReason] = None
        self.has_non_dependent_spouse = False
        self._before: Optional[Dict[str, Any]] = None
        self._requirements = self._derive()

    def _derive(self) -> Dict[str, Requirement]:
        return field_requirements(
            self.change_type,
            self.variant,
            end_reason=self.end_reason,
            start_reason=self.start_reason,
            has_non_dependent_spouse=self.has_non_dependent_spouse,
        )

    def select_change_type(self, change_type: Any) -> Dict[str, Requirement]:
        """Switch the change type and re-derive requirements from scratch.

        Entering change captures the identity values as the before snapshot;
        leaving it discards this record's snapshot. Re-selecting the active
        type changes nothing.

        Raises:
            InvalidChangeType: If change_type is not a ChangeType value
        """
        new_type = coerce_change_type(change_type)

        if new_type is ChangeType.CHANGE and self._before is None:
            self._before = {name: _lookup(self.values, name) for name in IDENTITY_FIELDS}
        elif new_type is not ChangeType.CHANGE:
            self._before = None

        if new_type is not self.change_type:
            logger.debug(f"{self.variant}: change type {self.change_type.value} -> {new_type.value}")
        self.change_type = new_type
        self._requirements = self._derive()
        return self.requirements

    def select_start_reason(self, reason: Any) -> Dict[str, Requirement]:
        self.start_reason = _coerce_reason(StartReason, reason)
        self._requirements = self._derive()
        return self.requirements

    def select_end_reason(self, reason: Any) -> Dict[str, Requirement]:
        self.end_reason = _coerce_reason(EndReason, reason)
        self._requirements = self._derive()
        return self.requirements

    def set_non_dependent_spouse(self, flag: bool) -> Dict[str, Requirement]:
        """Toggle the non-dependent spouse override (external spouse only)."""
        if flag and not self.variant.supports_spouse_override:
            raise ValueError(f"has_non_dependent_spouse is not available on {self.variant}")
        self.has_non_dependent_spouse = bool(flag)
        self._requirements = self._derive()
        return self.requirements

    def set_value(self, path: str, value: Any) -> None:
        """Record a user edit.

        Raises:
            ReadOnlyFieldError: For identity fields while in change state
        """
        if self.change_type is ChangeType.CHANGE and path in IDENTITY_FIELDS:
            raise ReadOnlyFieldError(f"{path} holds the before value and is read-only in change state")
        self.values[path] = value

    @property
    def requirements(self) -> Dict[str, Requirement]:
        return dict(self._requirements)

    @property
    def required_fields(self) -> FrozenSet[str]:
        return frozenset(p for p, r in self._requirements.items() if r is Requirement.REQUIRED)

    @property
    def before_snapshot(self) -> Optional[Dict[str, Any]]:
        return dict(self._before) if self._before is not None else None

    def missing_fields(self) -> List[str]:
        """Required fields that are still blank, in form order."""
        return [
            path for path in self.variant.fields
            if self._requirements[path] is Requirement.REQUIRED and is_blank(_lookup(self.values, path))
        ]


class DependentChangeFiling:
    """One dependent change filing: a spouse record plus other dependents."""

    def __init__(self, context: Any, spouse_values: Optional[Mapping[str, Any]] = None):
        self.context = FilingContext(context)
        self.spouse = SubRecordState(FormVariant(RecordKind.SPOUSE, self.context), spouse_values)
        self.other_dependents: List[SubRecordState] = []

    def add_other_dependent(self, values: Optional[Mapping[str, Any]] = None) -> SubRecordState:
        record = SubRecordState(FormVariant(RecordKind.OTHER_DEPENDENT, self.context), values)
        self.other_dependents.append(record)
        return record

    def remove_other_dependent(self, index: int) -> SubRecordState:
        return self.other_dependents.pop(index)

    def _records(self) -> List[Tuple[str, SubRecordState]]:
        records = [("spouse", self.spouse)]
        records += [(f"other_dependents[{i}]", r) for i, r in enumerate(self.other_dependents)]
        return records

    def required_fields(self) -> FrozenSet[str]:
        """Required paths across the filing, prefixed by record."""
        return frozenset(
            f"{prefix}.{path}"
            for prefix, record in self._records()
            for path in record.required_fields
        )

    def missing_fields(self) -> List[str]:
        """Blank required paths across the filing; empty means ready to submit."""
        return [
            f"{prefix}.{path}"
            for prefix, record in self._records()
            for path in record.missing_fields()
        ]
