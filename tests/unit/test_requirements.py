"""Unit tests for dependent change filing field requirements."""
import pytest

from shahocalc.sdk.requirements import (
    ChangeType,
    DependentChangeFiling,
    END_FIELDS,
    EndReason,
    FormVariant,
    IDENTITY_FIELDS,
    InvalidChangeType,
    ReadOnlyFieldError,
    Requirement,
    START_FIELDS,
    SubRecordState,
    field_requirements,
    is_blank,
    required_fields,
)


SPOUSE_EXTERNAL = FormVariant.of("spouse", "external")
SPOUSE_INTERNAL = FormVariant.of("spouse", "internal")
OTHER_EXTERNAL = FormVariant.of("other_dependent", "external")

IDENTITY_VALUES = {
    "last_name": "山田",
    "first_name": "花子",
    "last_name_kana": "ヤマダ",
    "first_name_kana": "ハナコ",
    "birth_date": {"era": "heisei", "year": "2", "month": "3", "day": "4"},
    "gender": "female",
    "relationship": "wife",
}


class TestRequiredFields:
    """Test the pure rule table."""

    def test_no_change_requires_nothing(self):
        assert required_fields("no_change", SPOUSE_EXTERNAL) == frozenset()

    def test_applicable(self):
        assert required_fields("applicable", SPOUSE_EXTERNAL) == frozenset(IDENTITY_FIELDS + START_FIELDS)

    def test_not_applicable(self):
        assert required_fields(ChangeType.NOT_APPLICABLE, OTHER_EXTERNAL) == frozenset(
            IDENTITY_FIELDS + END_FIELDS
        )

    def test_change_requires_nothing(self):
        assert required_fields("change", SPOUSE_EXTERNAL) == frozenset()

    def test_death_requires_death_date(self):
        fields = required_fields("not_applicable", SPOUSE_EXTERNAL, end_reason=EndReason.DEATH)
        assert "death_date" in fields

    def test_divorce_does_not_require_death_date(self):
        fields = required_fields("not_applicable", SPOUSE_EXTERNAL, end_reason="divorce")
        assert "death_date" not in fields

    def test_end_reason_ignored_outside_not_applicable(self):
        fields = required_fields("applicable", SPOUSE_EXTERNAL, end_reason="death")
        assert "death_date" not in fields

    def test_other_end_reason(self):
        fields = required_fields("not_applicable", SPOUSE_EXTERNAL, end_reason="other")
        assert "dependent_end_reason_other" in fields

    def test_other_start_reason(self):
        fields = required_fields("applicable", OTHER_EXTERNAL, start_reason="other")
        assert "dependent_start_reason_other" in fields

    def test_non_dependent_spouse_override(self):
        fields = required_fields("not_applicable", SPOUSE_EXTERNAL, has_non_dependent_spouse=True)
        assert fields == frozenset({"spouse_income"})

    def test_override_unavailable_on_internal(self):
        with pytest.raises(ValueError):
            required_fields("applicable", SPOUSE_INTERNAL, has_non_dependent_spouse=True)

    def test_override_unavailable_on_other_dependent(self):
        with pytest.raises(ValueError):
            required_fields("applicable", OTHER_EXTERNAL, has_non_dependent_spouse=True)

    @pytest.mark.parametrize("value", [None, "", "unknown", 3])
    def test_invalid_change_type(self, value):
        with pytest.raises(InvalidChangeType):
            required_fields(value, SPOUSE_EXTERNAL)

    def test_unknown_reason(self):
        with pytest.raises(ValueError):
            required_fields("not_applicable", SPOUSE_EXTERNAL, end_reason="lottery")

    def test_invalid_change_type_chains_cause(self):
        with pytest.raises(InvalidChangeType) as exc_info:
            required_fields("bogus", SPOUSE_EXTERNAL)
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_deterministic(self):
        first = required_fields("not_applicable", OTHER_EXTERNAL, end_reason="death")
        second = required_fields("not_applicable", OTHER_EXTERNAL, end_reason="death")
        assert first == second


class TestFieldRequirements:
    """Test the per-field requirement map."""

    def test_covers_every_variant_field(self):
        result = field_requirements("applicable", SPOUSE_EXTERNAL)
        assert list(result) == list(SPOUSE_EXTERNAL.fields)

    def test_optional_by_default(self):
        result = field_requirements("no_change", OTHER_EXTERNAL)
        assert set(result.values()) == {Requirement.OPTIONAL}

    def test_spouse_income_only_on_external_spouse(self):
        assert "spouse_income" in SPOUSE_EXTERNAL.fields
        assert "spouse_income" not in SPOUSE_INTERNAL.fields
        assert "spouse_income" not in OTHER_EXTERNAL.fields

    def test_unknown_variant(self):
        with pytest.raises(ValueError):
            FormVariant.of("child", "external")


class TestSubRecordState:
    """Test change type transitions of a single record."""

    def test_starts_with_no_requirements(self):
        record = SubRecordState(SPOUSE_EXTERNAL)
        assert record.required_fields == frozenset()

    def test_select_is_idempotent(self):
        record = SubRecordState(SPOUSE_EXTERNAL)
        first = record.select_change_type("applicable")
        second = record.select_change_type("applicable")
        assert first == second

    def test_switching_clears_previous_requirements(self):
        record = SubRecordState(SPOUSE_EXTERNAL)
        record.select_change_type("not_applicable")
        record.select_end_reason("death")
        assert "death_date" in record.required_fields

        record.select_change_type("applicable")
        assert "death_date" not in record.required_fields
        assert "dependent_end_date" not in record.required_fields
        assert "dependent_start_date" in record.required_fields

    def test_no_change_clears_everything(self):
        record = SubRecordState(SPOUSE_EXTERNAL)
        record.select_change_type("not_applicable")
        record.select_change_type("no_change")
        assert record.required_fields == frozenset()

    def test_reason_reapplies_when_type_returns(self):
        record = SubRecordState(SPOUSE_EXTERNAL)
        record.select_end_reason("death")
        assert "death_date" not in record.required_fields
        record.select_change_type("not_applicable")
        assert "death_date" in record.required_fields

    def test_invalid_change_type_keeps_state(self):
        record = SubRecordState(SPOUSE_EXTERNAL)
        record.select_change_type("applicable")
        with pytest.raises(InvalidChangeType):
            record.select_change_type("bogus")
        assert record.change_type is ChangeType.APPLICABLE

    def test_override_toggle(self):
        record = SubRecordState(SPOUSE_EXTERNAL)
        record.select_change_type("applicable")
        record.set_non_dependent_spouse(True)
        assert record.required_fields == frozenset({"spouse_income"})
        record.set_non_dependent_spouse(False)
        assert "last_name" in record.required_fields

    def test_override_rejected_on_internal(self):
        record = SubRecordState(SPOUSE_INTERNAL)
        with pytest.raises(ValueError):
            record.set_non_dependent_spouse(True)

    def test_requirements_returns_copy(self):
        record = SubRecordState(SPOUSE_EXTERNAL)
        snapshot = record.requirements
        snapshot["last_name"] = Requirement.REQUIRED
        assert record.requirements["last_name"] is Requirement.OPTIONAL


class TestChangeSnapshot:
    """Test the before values held while in change state."""

    def test_entering_change_captures_identity(self):
        record = SubRecordState(SPOUSE_EXTERNAL, IDENTITY_VALUES)
        record.select_change_type("change")
        assert record.before_snapshot["last_name"] == "山田"
        assert record.before_snapshot["birth_date"]["year"] == "2"

    def test_identity_read_only_in_change(self):
        record = SubRecordState(SPOUSE_EXTERNAL, IDENTITY_VALUES)
        record.select_change_type("change")
        with pytest.raises(ReadOnlyFieldError):
            record.set_value("last_name", "佐藤")

    def test_after_fields_editable_in_change(self):
        record = SubRecordState(SPOUSE_EXTERNAL, IDENTITY_VALUES)
        record.select_change_type("change")
        record.set_value("change_after.last_name", "佐藤")
        assert record.values["change_after.last_name"] == "佐藤"

    def test_leaving_change_discards_snapshot(self):
        record = SubRecordState(SPOUSE_EXTERNAL, IDENTITY_VALUES)
        record.select_change_type("change")
        record.select_change_type("no_change")
        assert record.before_snapshot is None
        record.set_value("last_name", "佐藤")
        assert record.values["last_name"] == "佐藤"

    def test_reselecting_change_keeps_snapshot(self):
        record = SubRecordState(SPOUSE_EXTERNAL, IDENTITY_VALUES)
        record.select_change_type("change")
        record.values["last_name"] = "ignored"
        record.select_change_type("change")
        assert record.before_snapshot["last_name"] == "山田"


class TestDependentChangeFiling:
    """Test a filing with several records."""

    def test_records_are_independent(self):
        filing = DependentChangeFiling("external", IDENTITY_VALUES)
        first = filing.add_other_dependent(IDENTITY_VALUES)
        second = filing.add_other_dependent(IDENTITY_VALUES)

        first.select_change_type("change")
        second.select_change_type("not_applicable")
        second.select_change_type("no_change")

        assert first.before_snapshot is not None
        assert second.before_snapshot is None
        assert filing.spouse.change_type is ChangeType.NO_CHANGE

    def test_no_change_leaves_sibling_requirements(self):
        filing = DependentChangeFiling("external")
        first = filing.add_other_dependent(IDENTITY_VALUES)
        second = filing.add_other_dependent(IDENTITY_VALUES)
        first.select_change_type("applicable")
        second.select_change_type("applicable")

        second.select_change_type("no_change")

        assert second.required_fields == frozenset()
        assert first.required_fields == frozenset(IDENTITY_FIELDS + START_FIELDS)
        assert "other_dependents[0].dependent_start_date" in filing.required_fields()
        assert not any(p.startswith("other_dependents[1].") for p in filing.required_fields())

    def test_required_paths_prefixed(self):
        filing = DependentChangeFiling("external")
        filing.spouse.select_change_type("not_applicable")
        filing.spouse.select_end_reason("death")
        child = filing.add_other_dependent()
        child.select_change_type("applicable")

        required = filing.required_fields()
        assert "spouse.death_date" in required
        assert "other_dependents[0].dependent_start_date" in required
        assert "other_dependents[0].death_date" not in required

    def test_missing_fields(self):
        values = dict(IDENTITY_VALUES)
        values["dependent_end_date"] = {"era": "reiwa", "year": "6", "month": "", "day": "1"}
        values["dependent_end_reason"] = "death"
        filing = DependentChangeFiling("external", values)
        filing.spouse.select_change_type("not_applicable")
        filing.spouse.select_end_reason("death")

        assert filing.missing_fields() == ["spouse.dependent_end_date", "spouse.death_date"]

    def test_ready_when_nothing_missing(self):
        filing = DependentChangeFiling("internal", IDENTITY_VALUES)
        filing.add_other_dependent()
        assert filing.missing_fields() == []

    def test_remove_other_dependent(self):
        filing = DependentChangeFiling("external")
        filing.add_other_dependent().select_change_type("applicable")
        filing.remove_other_dependent(0)
        assert filing.required_fields() == frozenset()


class TestIsBlank:
    """Test blank detection as the form sees it."""

    @pytest.mark.parametrize("value", [None, "", "   ", {}, {"era": "reiwa", "year": ""}])
    def test_blank(self, value):
        assert is_blank(value)

    @pytest.mark.parametrize("value", ["x", 0, False, {"era": "reiwa", "year": "1"}])
    def test_not_blank(self, value):
        assert not is_blank(value)
