"""Create one sequence row per document type, starting at 1000.

The first allocated numbers are therefore FC1001, RC1001 and NC1001.
"""

from django.conf import settings
from django.db import migrations

DOCUMENT_TYPES = ('Invoice', 'Receipt', 'CreditNote')


def forwards(apps, schema_editor):
    DocumentSequence = apps.get_model('sequences', 'DocumentSequence')
    start = getattr(settings, 'BILLING_SEQUENCE_START', 1000)
    for doc_type in DOCUMENT_TYPES:
        DocumentSequence.objects.get_or_create(doc_type=doc_type, defaults={'last_number': start})


def backwards(apps, schema_editor):
    DocumentSequence = apps.get_model('sequences', 'DocumentSequence')
    DocumentSequence.objects.filter(doc_type__in=DOCUMENT_TYPES).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('sequences', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(forwards, backwards),
    ]
