from django.db import models


class LawsuitDocument(models.Model):
    """
    Structured small-claims filing for a claim.

    Re-assembling overwrites the payload; everything in it is derived from
    stored claim, incident and timeline facts.
    """

    claim = models.OneToOneField(
        "cashbus.Claim", on_delete=models.CASCADE, related_name="lawsuit_document"
    )
    payload = models.JSONField(default=dict)
    filename = models.CharField(max_length=255)
    assembled_at = models.DateTimeField()

    class Meta:
        verbose_name = "Lawsuit Document"
        verbose_name_plural = "Lawsuit Documents"
        ordering = ["-assembled_at"]

    def __str__(self):
        return self.filename
