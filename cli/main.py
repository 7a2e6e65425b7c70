import argparse
import sys
from typing import List, Optional

from cli import renderer
from core.config import Config
from core.errors import JobError, NotFoundError, ValidationError
from core.job import JobPatch
from core.lifecycle import new_job
from core.states import JobStatus
from core.stats import filter_jobs, summarize
from infra.job_store import JobStore
from infra.sqlite_job_store import SQLiteJobStore


STATUS_CHOICES = [s.value for s in JobStatus]
PATCH_FIELDS = ("status", "title", "company", "url", "source", "notes")


# -------------------------
# Commands
# -------------------------

def cmd_list(store: JobStore, args) -> None:
    status = JobStatus(args.status) if args.status else None
    renderer.render_jobs(filter_jobs(store.list(), status=status, query=args.query))


def cmd_add(store: JobStore, args) -> None:
    job = new_job(
        url=args.url,
        title=args.title,
        company=args.company,
        source=args.source,
        notes=args.notes,
    )
    store.create(job)

    renderer.success("Added")
    renderer.render_job(job)


def cmd_update(store: JobStore, args) -> None:
    fields = {
        name: getattr(args, name)
        for name in PATCH_FIELDS
        if getattr(args, name) is not None
    }
    job = store.patch(args.id, JobPatch.from_dict(fields))

    renderer.success("Updated")
    renderer.render_job(job)


def cmd_rm(store: JobStore, args) -> None:
    store.delete(args.id)
    renderer.success(f"Removed {args.id}")


def cmd_stats(store: JobStore, args) -> None:
    renderer.render_stats(summarize(store.list()))


# -------------------------
# Parser
# -------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobboard", description="Track job applications")
    parser.add_argument("--db", default=str(Config.DB_PATH), help="Path to the job database")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List jobs, newest first")
    p.add_argument("--status", choices=STATUS_CHOICES, help="Only jobs in this status")
    p.add_argument("--query", "-q", help="Case-insensitive text filter")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("add", help="Add a job from its posting URL")
    p.add_argument("url")
    p.add_argument("--title")
    p.add_argument("--company")
    p.add_argument("--source")
    p.add_argument("--notes")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("update", help="Change fields or status of a job")
    p.add_argument("id")
    p.add_argument("--status", choices=STATUS_CHOICES)
    p.add_argument("--title")
    p.add_argument("--company")
    p.add_argument("--url")
    p.add_argument("--source")
    p.add_argument("--notes")
    p.set_defaults(func=cmd_update)

    p = sub.add_parser("rm", help="Delete a job")
    p.add_argument("id")
    p.set_defaults(func=cmd_rm)

    p = sub.add_parser("stats", help="Show board statistics")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default=Config.HOST)
    p.add_argument("--port", type=int, default=Config.PORT)
    p.set_defaults(func=None)

    return parser


# -------------------------
# Entry
# -------------------------

def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        from app import serve

        serve(args.host, args.port, db_path=args.db)
        return

    store = SQLiteJobStore(args.db)
    try:
        args.func(store, args)
    except ValidationError as e:
        renderer.error(f"Invalid input: {e.message}")
        sys.exit(1)
    except NotFoundError as e:
        renderer.error(e.message)
        sys.exit(1)
    except JobError as e:
        renderer.error(f"{e.code}: {e.message}")
        sys.exit(1)
    finally:
        store.close()


if __name__ == "__main__":
    main()
