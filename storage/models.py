from django.db import models


class Entry(models.Model):
    """A single key/value pair. Both sides are opaque byte strings."""

    key = models.BinaryField(max_length=65000, unique=True)
    value = models.BinaryField()

    class Meta:
        ordering = ["key"]
        verbose_name_plural = "entries"

    def __str__(self) -> str:
        return bytes(self.key).decode("utf-8", errors="replace")
