"""
Management command to (re)assemble the lawsuit document for a claim.

Usage:
    python manage.py assemble_lawsuit <claim_reference>
    python manage.py assemble_lawsuit <claim_reference> --pdf out.pdf
"""

import uuid

from django.core.management.base import BaseCommand, CommandError

from cashbus.lawsuits.rendering import render_lawsuit_pdf
from cashbus.lawsuits.services import assemble_lawsuit_for_claim
from cashbus.models import Claim


class Command(BaseCommand):
    help = "Assemble and store the small-claims filing for a claim"

    def add_arguments(self, parser):
        parser.add_argument("claim_reference", help="Full claim reference (UUID)")
        parser.add_argument("--pdf", metavar="PATH", help="Also write the rendered PDF here")

    def handle(self, *args, **options):
        try:
            reference = uuid.UUID(options["claim_reference"])
        except ValueError:
            raise CommandError(f"Not a claim reference: {options['claim_reference']}")

        claim = Claim.objects.select_related("profile").filter(reference=reference).first()
        if claim is None:
            raise CommandError(f"No claim with reference {reference}")

        document = assemble_lawsuit_for_claim(claim)
        self.stdout.write(self.style.SUCCESS(f"Assembled {document.filename}"))

        if options["pdf"]:
            with open(options["pdf"], "wb") as fh:
                fh.write(render_lawsuit_pdf(document.payload))
            self.stdout.write(f"PDF written to {options['pdf']}")
