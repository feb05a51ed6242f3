import click, sys
from flask.cli import AppGroup

from App.main import create_app
from App.controllers import get_activity, get_all_staff, get_all_students, initialize
from App.services import get_group_service
from group_engine import GroupingError, TEMPLATE_CATALOG

app = create_app()


@app.cli.command("init", help="Creates and initializes the database")
def init():
    initialize()
    print('database initialized')


# Roster Commands
roster_cli = AppGroup('roster', help='Roster ledger commands')


@roster_cli.command("list", help="Lists students and staff in the database")
@click.argument("kind", default="all", type=click.Choice(['all', 'students', 'staff']))
def list_roster_command(kind):
    if kind in ('all', 'students'):
        for student in get_all_students():
            status = '' if student.is_active else ' (inactive)'
            print(f"{student.id}\t{student.name}\t{student.skill_level or '-'}\t{student.working_style or '-'}{status}")
    if kind in ('all', 'staff'):
        for member in get_all_staff():
            status = '' if member.is_active else ' (inactive)'
            print(f"{member.id}\t{member.name}\t{member.role}{status}")


app.cli.add_command(roster_cli)

# Group Commands
groups_cli = AppGroup('groups', help='Group assignment operations')


@groups_cli.command("templates", help="Lists the built-in group templates")
def list_templates_command():
    for template in TEMPLATE_CATALOG:
        skills = ", ".join(template.target_skills) or "-"
        print(f"{template.id}\t{template.name}\tsize {template.suggested_size}\t{template.group_type}\t{skills}")


@groups_cli.command("balance", help="Evenly redistributes students across an activity's saved groups")
@click.argument("activity_id", type=int)
@click.option("--dry-run", is_flag=True, help="Print the new sizes without saving")
def balance_command(activity_id, dry_run):
    if get_activity(activity_id) is None:
        raise click.ClickException(f"Activity {activity_id} not found")

    service = get_group_service(app)
    try:
        service.open_session(activity_id)
        sizes = service.balance(activity_id)
        if sizes and not dry_run:
            service.save(activity_id)
    except GroupingError as e:
        raise click.ClickException(str(e)) from e
    finally:
        service.discard_session(activity_id)

    if not sizes:
        print(f"Activity {activity_id} has no groups to balance")
    else:
        verb = 'would be' if dry_run else 'are now'
        print(f"Group sizes {verb}: {', '.join(str(size) for size in sizes)}")


app.cli.add_command(groups_cli)

# Test Commands
test_cli = AppGroup('test', help='Testing commands')


@test_cli.command('app', help='Run tests (all/unit/int)')
@click.argument('type', default='all')
def run_tests(type):
    import pytest
    if type == 'unit':
        sys.exit(pytest.main(['-k', 'UnitTests']))
    elif type == 'int':
        sys.exit(pytest.main(['-k', 'IntegrationTests']))
    else:
        sys.exit(pytest.main([]))


app.cli.add_command(test_cli)
