from django.db import models
from django.utils import timezone


class TextRecord(models.Model):
    """A text blob stored under a unique key."""

    key = models.TextField(unique=True)
    text = models.TextField(blank=True, default="")
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["key"]

    def __str__(self) -> str:
        return f"{self.key} ({len(self.text)} chars)"
