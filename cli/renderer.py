from core.states import JobStatus


STATUS_LABELS = {
    JobStatus.TODO: "To apply",
    JobStatus.APPLIED: "Applied",
    JobStatus.HIDDEN: "Hidden",
}


# =====================================================
# Plain-text rendering for the CLI
# =====================================================

def render_job(job):
    print(f"{job.title}")
    print(f"   Id      : {job.id}")
    print(f"   Status  : {STATUS_LABELS[job.status]}")
    if job.company:
        print(f"   Company : {job.company}")
    if job.source:
        print(f"   Source  : {job.source}")
    if job.url:
        print(f"   URL     : {job.url}")
    print(f"   Added   : {job.created_at:%Y-%m-%d %H:%M}")
    if job.applied_at:
        print(f"   Applied : {job.applied_at:%Y-%m-%d %H:%M}")
    if job.hidden_at:
        print(f"   Hidden  : {job.hidden_at:%Y-%m-%d %H:%M}")
    if job.notes:
        print(f"   Notes   : {job.notes}")


def render_jobs(jobs):
    if not jobs:
        print("No jobs yet.")
        return

    for job in jobs:
        render_job(job)
        print()

    print(f"{len(jobs)} job(s)")


def render_stats(stats):
    print("Job board")
    print("─────────────────────────")
    print(f"Total            : {stats.total}")
    print(f"To apply         : {stats.todo}")
    print(f"Applied          : {stats.applied}")
    print(f"Hidden           : {stats.hidden}")
    print(f"Needs follow-up  : {stats.needs_follow_up}")
    print(f"Added this week  : {stats.this_week}")
    print(f"Added last week  : {stats.last_week}")
    print(f"Application rate : {stats.application_rate}%")


def success(msg: str):
    print(f"✔ {msg}")


def error(msg: str):
    print(f"✖ {msg}")
