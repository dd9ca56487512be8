from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Client',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=30, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('phone', models.CharField(blank=True, max_length=30, null=True)),
                ('email', models.EmailField(blank=True, max_length=254, null=True)),
                ('address', models.CharField(blank=True, max_length=255, null=True)),
                ('city', models.CharField(blank=True, max_length=100, null=True)),
                ('name2', models.CharField(blank=True, max_length=200, null=True)),
                ('phone2', models.CharField(blank=True, max_length=30, null=True)),
                ('email2', models.EmailField(blank=True, max_length=254, null=True)),
                ('address2', models.CharField(blank=True, max_length=255, null=True)),
                ('city2', models.CharField(blank=True, max_length=100, null=True)),
            ],
            options={
                'ordering': ['code'],
                'indexes': [models.Index(fields=['name'], name='client_name_idx')],
            },
        ),
    ]
