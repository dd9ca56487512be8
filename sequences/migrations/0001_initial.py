from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='DocumentSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('doc_type', models.CharField(choices=[('Invoice', 'Invoice'), ('Receipt', 'Receipt'), ('CreditNote', 'Credit Note')], max_length=20, unique=True)),
                ('last_number', models.PositiveIntegerField(default=1000)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Document Sequence',
                'verbose_name_plural': 'Document Sequences',
                'constraints': [models.CheckConstraint(condition=models.Q(('last_number__gte', 1000)), name='sequence_last_number_gte_1000')],
            },
        ),
    ]
