"""Reconcile the action catalog with the route table."""

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from access_control.discovery import ActionDiscoveryService


class Command(BaseCommand):
    help = (
        "Discover routed actions and register missing actions with their (inactive) "
        "permissions. Use --prune to also deactivate actions no longer routed."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--prune",
            action="store_true",
            help="Deactivate catalogued actions that are no longer routed, reactivate returning ones.",
        )

    def handle(self, *args, **options):
        service = ActionDiscoveryService()
        run = service.sync if options.get("prune") else service.discover_and_register
        report = async_to_sync(run)()

        self.stdout.write(f"Discovered {report.discovered} action(s).")
        for label in report.created:
            self.stdout.write(f"  created     {label}")
        for label in report.deactivated:
            self.stdout.write(f"  deactivated {label}")
        for label in report.reactivated:
            self.stdout.write(f"  reactivated {label}")
        for label, error in report.failed.items():
            self.stderr.write(f"  failed      {label}: {error}")

        if report.failed:
            raise CommandError(f"{len(report.failed)} action(s) could not be synchronized.")
        self.stdout.write(self.style.SUCCESS("Permission catalog synchronized."))
