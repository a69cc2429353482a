"""
CLI entrypoint.

Wires settings, the API client, the session store and the task service, then
runs one subcommand. Results are printed as JSON on stdout; failures print the
error message on stderr and exit non-zero.
"""
import argparse
import asyncio
import getpass
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from api_client.client import ApiClient
from core.config import Settings, get_settings
from core.token_storage import StorageError
from schemas.task import TaskCreate, TaskFilters, TaskUpdate
from services.exceptions import ClientError
from services.session_service import SessionStore
from services.task_service import TaskService

logger = logging.getLogger(__name__)

PRIORITIES = ("low", "medium", "high")


def setup_logging(level_name: str) -> None:
    """Configure the root logger once; keep HTTP libraries quiet."""
    level = getattr(logging, level_name.upper(), logging.WARNING)
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ),
    )
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    logging.getLogger("httpcore").setLevel(max(level, logging.WARNING))


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(prog="task-client", description="Task API client")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Log in and store the access token")
    login.add_argument("--email", required=True)
    login.add_argument("--password", help="Prompted for when omitted")

    register = commands.add_parser("register", help="Create an account and log in")
    register.add_argument("--username", required=True)
    register.add_argument("--email", required=True)
    register.add_argument("--password", help="Prompted for when omitted")

    commands.add_parser("logout", help="End the session")
    commands.add_parser("whoami", help="Restore the session and show the current user")

    tasks = commands.add_parser("tasks", help="Manage tasks")
    task_commands = tasks.add_subparsers(dest="task_command", required=True)

    list_cmd = task_commands.add_parser("list", help="List tasks")
    list_cmd.add_argument("--search")
    list_cmd.add_argument("--completed", choices=("true", "false"))
    list_cmd.add_argument("--priority", choices=PRIORITIES)
    list_cmd.add_argument("--sort-by", dest="sort_by")
    list_cmd.add_argument("--order", choices=("ASC", "DESC"))
    list_cmd.add_argument("--page", type=int)
    list_cmd.add_argument("--limit", type=int)

    show = task_commands.add_parser("show", help="Show one task")
    show.add_argument("task_id", type=int)

    add = task_commands.add_parser("add", help="Create a task")
    add.add_argument("title")
    add.add_argument("--description")
    add.add_argument("--priority", choices=PRIORITIES)
    add.add_argument("--due", dest="due_date", help="ISO 8601 due date")

    update = task_commands.add_parser("update", help="Update a task")
    update.add_argument("task_id", type=int)
    update.add_argument("--title")
    update.add_argument("--description")
    update.add_argument("--priority", choices=PRIORITIES)
    update.add_argument("--due", dest="due_date", help="ISO 8601 due date")
    update.add_argument("--clear-due", action="store_true", help="Remove the due date")

    for name, help_text in (("done", "Mark a task completed"), ("undone", "Mark a task open")):
        toggle = task_commands.add_parser(name, help=help_text)
        toggle.add_argument("task_id", type=int)

    delete = task_commands.add_parser("delete", help="Delete a task")
    delete.add_argument("task_id", type=int)

    return parser


def _print_json(data: Any) -> None:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    print(json.dumps(data, indent=2))


def _password(args: argparse.Namespace) -> str:
    return args.password if args.password is not None else getpass.getpass("Password: ")


def _update_from_args(args: argparse.Namespace) -> TaskUpdate:
    fields: dict[str, Any] = {
        name: getattr(args, name)
        for name in ("title", "description", "priority", "due_date")
        if getattr(args, name) is not None
    }
    if args.clear_due:
        fields["due_date"] = None
    return TaskUpdate(**fields)


async def _run_tasks(args: argparse.Namespace, tasks: TaskService) -> int:
    command = args.task_command
    if command == "list":
        filters = TaskFilters(
            search=args.search,
            completed=args.completed,
            priority=args.priority,
            sort_by=args.sort_by,
            order=args.order,
            page=args.page,
            limit=args.limit,
        )
        _print_json(await tasks.get_filtered_tasks(filters))
    elif command == "show":
        _print_json(await tasks.get_task(args.task_id))
    elif command == "add":
        fields = {
            name: getattr(args, name)
            for name in ("description", "priority", "due_date")
            if getattr(args, name) is not None
        }
        _print_json(await tasks.create_task(TaskCreate(title=args.title, **fields)))
    elif command == "update":
        _print_json(await tasks.update_task(args.task_id, _update_from_args(args)))
    elif command in ("done", "undone"):
        _print_json(await tasks.toggle_task_completion(args.task_id, command == "done"))
    elif command == "delete":
        _print_json(await tasks.delete_task(args.task_id))
    return 0


async def _dispatch(
    args: argparse.Namespace,
    client: ApiClient,
    session: SessionStore,
    tasks: TaskService,
) -> int:
    if args.command == "login":
        _print_json(await session.login(args.email, _password(args)))
        return 0
    if args.command == "register":
        _print_json(await session.register(args.username, args.email, _password(args)))
        return 0
    if args.command == "logout":
        await session.logout()
        client.cookies.clear()
        if session.error:
            print(f"warning: {session.error}", file=sys.stderr)
        _print_json({"status": "logged_out"})
        return 0
    if args.command == "whoami":
        await session.check_auth()
        if session.user is None:
            print(session.error or "Not logged in", file=sys.stderr)
            return 1
        _print_json(session.user)
        return 0
    return await _run_tasks(args, tasks)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Run one parsed command against the API."""
    async with ApiClient.from_settings(settings) as client:
        try:
            client.load_cookies()
            session = SessionStore(client)
            tasks = TaskService(client)
            try:
                return await _dispatch(args, client, session, tasks)
            finally:
                client.save_cookies()
        except ClientError as e:
            print(e.message, file=sys.stderr)
            return 1
        except ValidationError as e:
            print(f"Invalid input: {e}", file=sys.stderr)
            return 2
        except StorageError as e:
            logger.error("Session store error: %s", e)
            print(str(e), file=sys.stderr)
            return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, configure logging and run the command."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
