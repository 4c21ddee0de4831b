"""
Management command to run the escalation sweep once.

Usage:
    python manage.py run_escalations
    python manage.py run_escalations --dry-run
"""

from django.core.management.base import BaseCommand

from cashbus.escalation.schedule import local_date
from cashbus.escalation.services import EscalationScheduler, build_default_context


class Command(BaseCommand):
    help = "Send due escalation notices for active claims"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the stage due for each active claim without sending",
        )

    def handle(self, *args, **options):
        scheduler = EscalationScheduler(build_default_context())

        if options["dry_run"]:
            self.stdout.write(self.style.WARNING("DRY RUN MODE - No letters will be sent"))
            due = scheduler.preview()
            for timeline, stage in due:
                origin = local_date(timeline.initial_letter_sent_at, timeline.timezone_name)
                self.stdout.write(
                    f"{timeline.short_reference}: {stage} (initial letter {origin.isoformat()})"
                )
            self.stdout.write(f"{len(due)} claim(s) due")
            return

        summary = scheduler.run_once()
        for result in summary.results:
            line = f"{result.claim_reference[:8]}: {result.outcome}"
            if result.stage:
                line += f" {result.stage}"
            if result.error:
                line += f" ({result.error})"
            self.stdout.write(line)

        style = self.style.SUCCESS if summary.failed == 0 else self.style.ERROR
        self.stdout.write(
            style(
                f"Run {summary.run_id}: {summary.sent} sent, {summary.failed} failed, "
                f"{summary.conflicts} conflicts"
            )
        )
