import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('clients', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('number', models.CharField(max_length=50, unique=True)),
                ('doc_type', models.CharField(choices=[('Invoice', 'Invoice'), ('Receipt', 'Receipt'), ('CreditNote', 'Credit Note')], max_length=20)),
                ('client_name', models.CharField(max_length=200)),
                ('issued_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('due_at', models.DateTimeField(blank=True, null=True)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('month', models.CharField(max_length=7)),
                ('subtotal', models.DecimalField(decimal_places=2, max_digits=12)),
                ('discounts', models.DecimalField(decimal_places=2, max_digits=12)),
                ('total', models.DecimalField(decimal_places=2, max_digits=12)),
                ('related_number', models.CharField(blank=True, max_length=50, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='documents', to='clients.client')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ('related_document', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='settlements', to='documents.document')),
            ],
            options={
                'verbose_name': 'Document',
                'verbose_name_plural': 'Documents',
                'ordering': ['-issued_at', '-id'],
                'indexes': [
                    models.Index(fields=['doc_type', 'month'], name='document_type_month_idx'),
                    models.Index(fields=['client_name'], name='document_client_name_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('doc_type__in', ['Receipt', 'CreditNote'])), fields=('related_document', 'doc_type'), name='one_settlement_per_type_per_invoice'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LineItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('position', models.PositiveIntegerField(default=0)),
                ('description', models.CharField(max_length=200)),
                ('month', models.CharField(blank=True, max_length=7, null=True)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('unit_discount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='documents.document')),
            ],
            options={
                'verbose_name': 'Line Item',
                'verbose_name_plural': 'Line Items',
                'ordering': ['position', 'id'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gte', 1)), name='line_item_quantity_gte_1'),
                    models.CheckConstraint(condition=models.Q(('unit_price__gte', 0)), name='line_item_unit_price_gte_0'),
                    models.CheckConstraint(condition=models.Q(('unit_discount__gte', 0)), name='line_item_unit_discount_gte_0'),
                ],
            },
        ),
    ]
