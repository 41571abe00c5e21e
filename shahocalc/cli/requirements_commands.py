"""Dependent change filing field requirement CLI commands."""

import json

import click

from shahocalc.sdk import (
    ChangeType,
    EndReason,
    FilingContext,
    FormVariant,
    InvalidChangeType,
    RecordKind,
    Requirement,
    StartReason,
    field_requirements,
)


def _choices(enum_cls):
    return click.Choice([member.value for member in enum_cls])


@click.group("requirements")
def requirements():
    """Required fields of the dependent change filing (被扶養者異動届).

    The change type of each spouse or other-dependent record decides which
    fields must be filled. Reasons add fields on top (death -> death_date).
    """
    pass


@requirements.command("show")
@click.option("--kind", type=_choices(RecordKind), default=RecordKind.SPOUSE.value, show_default=True,
              help="Sub-record kind.")
@click.option("--context", type=_choices(FilingContext), default=FilingContext.EXTERNAL.value, show_default=True,
              help="internal (request to HR) or external (filing to the pension office).")
@click.option("--change-type", type=_choices(ChangeType), default=ChangeType.NO_CHANGE.value, show_default=True,
              help="Change type of the record.")
@click.option("--start-reason", type=_choices(StartReason), help="Start reason (applicable only).")
@click.option("--end-reason", type=_choices(EndReason), help="End reason (not_applicable only).")
@click.option("--non-dependent-spouse", is_flag=True,
              help="Spouse exists but is not a dependent (external spouse only).")
@click.option("--all", "show_all", is_flag=True, help="List optional fields too.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def requirements_show(kind, context, change_type, start_reason, end_reason, non_dependent_spouse,
                      show_all, as_json):
    """Show the required fields for a record.

    \b
    Examples:
      shaho-calc requirements show --change-type applicable
      shaho-calc requirements show --change-type not_applicable --end-reason death
      shaho-calc requirements show --kind other_dependent --context internal --change-type change
      shaho-calc requirements show --non-dependent-spouse
    """
    variant = FormVariant.of(kind, context)
    try:
        result = field_requirements(
            change_type,
            variant,
            end_reason=end_reason,
            start_reason=start_reason,
            has_non_dependent_spouse=non_dependent_spouse,
        )
    except InvalidChangeType as e:
        raise click.BadParameter(str(e))
    except ValueError as e:
        raise click.UsageError(str(e))

    required = [path for path, req in result.items() if req is Requirement.REQUIRED]

    if as_json:
        payload = {
            "variant": str(variant),
            "change_type": change_type,
            "required": required,
        }
        if show_all:
            payload["fields"] = {path: req.value for path, req in result.items()}
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(f"Record: {variant}, change type: {change_type}")
    if non_dependent_spouse:
        click.echo("(non-dependent spouse: change type ignored)")
    click.echo()

    if not required:
        click.echo("No required fields.")
    else:
        click.echo(f"Required ({len(required)}):")
        for path in required:
            click.echo(f"  {path}")

    if show_all:
        optional = [path for path, req in result.items() if req is Requirement.OPTIONAL]
        click.echo()
        click.echo(f"Optional ({len(optional)}):")
        for path in optional:
            click.echo(f"  {path}")
