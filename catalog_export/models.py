from django.db import models

RECORD_TYPE_CHOICES = [
    ('product', 'Product'),
    ('faq', 'FAQ'),
]


class ExportCheckpoint(models.Model):
    """Start time of the last export run that sent at least one record."""

    site_id = models.CharField(max_length=100)
    record_type = models.CharField(max_length=20, choices=RECORD_TYPE_CHOICES)
    last_export_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['site_id', 'record_type'], name='unique_checkpoint_per_site'),
        ]

    def __str__(self):
        return f"{self.site_id}/{self.record_type} ({self.last_export_at})"


class ProductExportSnapshot(models.Model):
    """Last exported ``status|listPrice|salePrice`` per site for one product."""

    product_id = models.CharField(max_length=100, primary_key=True)
    sites = models.JSONField(default=dict)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product_id} ({', '.join(sorted(self.sites))})"


class PendingDeletion(models.Model):
    record_type = models.CharField(max_length=20, choices=RECORD_TYPE_CHOICES)
    record_id = models.CharField(max_length=100)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'pk']
        constraints = [
            models.UniqueConstraint(fields=['record_type', 'record_id'], name='unique_pending_deletion'),
        ]

    def __str__(self):
        return f"{self.record_type}:{self.record_id}"


class ExportRun(models.Model):
    class State(models.TextChoices):
        VALIDATING = 'validating'
        RESETTING = 'resetting'
        DELETING = 'deleting'
        EXPORTING = 'exporting'
        CHECKPOINTING = 'checkpointing'
        DONE = 'done'
        FAILED = 'failed'

    record_type = models.CharField(max_length=20, choices=RECORD_TYPE_CHOICES)
    mode = models.CharField(max_length=10)
    site_id = models.CharField(max_length=100)
    state = models.CharField(max_length=20, choices=State.choices, default=State.VALIDATING)
    started_at = models.DateTimeField()
    finished_at = models.DateTimeField(null=True, blank=True)
    processed_count = models.PositiveIntegerField(default=0)
    message = models.TextField(blank=True)

    class Meta:
        ordering = ['-started_at']

    def __str__(self):
        return f"{self.mode} {self.record_type} export @ {self.started_at} [{self.state}]"
