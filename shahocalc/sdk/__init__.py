"""Shaho Calc SDK - Core calculations behind social insurance filings."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_grade_tables_dir,
    get_default_grade_tables_dir,
    get_default_era_format,
    SettingsError,
)

from .era import (
    Era,
    EraDate,
    EraCalendarError,
    InvalidEraYear,
    EraRangeExceeded,
    parse_era,
    to_era_date,
    to_gregorian_date,
    format_era_date,
    era_date_from_form,
    era_date_to_form,
)

from .remuneration import (
    SalaryMonthEntry,
    RetroactivePayment,
    RemunerationResult,
    aggregate,
    annual_revision_window,
    revision_window,
    build_window,
    BASE_DAYS_THRESHOLD,
)

from .bonus import round_bonus

from .requirements import (
    ChangeType,
    Requirement,
    RecordKind,
    FilingContext,
    StartReason,
    EndReason,
    FormVariant,
    InvalidChangeType,
    ReadOnlyFieldError,
    required_fields,
    field_requirements,
    SubRecordState,
    DependentChangeFiling,
)

from .grades import (
    GradeBand,
    GradeTable,
    GradeResult,
    RevisionAssessment,
    GradeTableNotFoundError,
    GradeNotFoundError,
    load_grade_table,
    determine_grade,
    assess_monthly_change,
    revision_effective_month,
    grade_table_date,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "get_grade_tables_dir",
    "get_default_grade_tables_dir",
    "get_default_era_format",
    "SettingsError",
    # Era calendar
    "Era",
    "EraDate",
    "EraCalendarError",
    "InvalidEraYear",
    "EraRangeExceeded",
    "parse_era",
    "to_era_date",
    "to_gregorian_date",
    "format_era_date",
    "era_date_from_form",
    "era_date_to_form",
    # Remuneration
    "SalaryMonthEntry",
    "RetroactivePayment",
    "RemunerationResult",
    "aggregate",
    "annual_revision_window",
    "revision_window",
    "build_window",
    "BASE_DAYS_THRESHOLD",
    # Bonus
    "round_bonus",
    # Field requirements
    "ChangeType",
    "Requirement",
    "RecordKind",
    "FilingContext",
    "StartReason",
    "EndReason",
    "FormVariant",
    "InvalidChangeType",
    "ReadOnlyFieldError",
    "required_fields",
    "field_requirements",
    "SubRecordState",
    "DependentChangeFiling",
    # Grades
    "GradeBand",
    "GradeTable",
    "GradeResult",
    "RevisionAssessment",
    "GradeTableNotFoundError",
    "GradeNotFoundError",
    "load_grade_table",
    "determine_grade",
    "assess_monthly_change",
    "revision_effective_month",
    "grade_table_date",
]
