"""Database models for the client registry."""

from django.db import models


class Client(models.Model):
    """A billed customer.

    Documents keep a snapshot of ``name`` at issuance time, so renaming a
    client never rewrites documents that were already issued.
    """

    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=30, null=True, blank=True)
    email = models.EmailField(null=True, blank=True)
    address = models.CharField(max_length=255, null=True, blank=True)
    city = models.CharField(max_length=100, null=True, blank=True)

    # Secondary contact printed on documents when present.
    name2 = models.CharField(max_length=200, null=True, blank=True)
    phone2 = models.CharField(max_length=30, null=True, blank=True)
    email2 = models.EmailField(null=True, blank=True)
    address2 = models.CharField(max_length=255, null=True, blank=True)
    city2 = models.CharField(max_length=100, null=True, blank=True)

    class Meta:
        ordering = ['code']
        indexes = [
            models.Index(fields=['name'], name='client_name_idx'),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"
