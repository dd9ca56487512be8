"""Seed a working billing setup.

Creates:
- an admin and an operator user (existing users are left untouched)
- a handful of clients, plus any number of generated ones
- optionally, sample invoices with one receipt and one credit note

Usage:
  python manage.py seed_billing
  python manage.py seed_billing --admin-password s3cret --invoices 5
  python manage.py seed_billing --extra-clients 20
"""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from clients.models import Client
from documents.services import DocumentService, LoggingObserver
from sequences.models import DocumentType

SAMPLE_CLIENTS = [
    ('CL001', 'Hashrate Hosting SRL', 'billing@hashrate.example'),
    ('CL002', 'Andes Mining Co', 'accounts@andes.example'),
    ('CL003', 'Pampa Compute SA', 'pagos@pampa.example'),
]

SAMPLE_ITEMS = [
    {'description': 'Hosting A', 'quantity': 2, 'unit_price': Decimal('80.00'), 'unit_discount': Decimal('0.00')},
    {'description': 'Setup fee', 'quantity': 1, 'unit_price': Decimal('30.00'), 'unit_discount': Decimal('5.00')},
]


class Command(BaseCommand):
    help = 'Create default users, clients and (optionally) sample documents.'

    def add_arguments(self, parser):
        parser.add_argument('--admin-username', default='admin')
        parser.add_argument('--admin-password', default='admin12345')
        parser.add_argument('--operator-username', default='operator')
        parser.add_argument('--operator-password', default='operator12345')
        parser.add_argument('--invoices', type=int, default=0, help='Number of sample invoices to issue.')
        parser.add_argument('--extra-clients', type=int, default=0, help='Generate this many extra clients with Faker.')

    def _ensure_user(self, username, password, role):
        User = get_user_model()
        user, created = User.objects.get_or_create(username=username, defaults={'role': role, 'is_staff': role == 'admin'})
        if created:
            user.set_password(password)
            user.save(update_fields=['password'])
            self.stdout.write(self.style.SUCCESS(f'Created {role} user {username}'))
        else:
            self.stdout.write(f'User {username} already exists, skipped.')
        return user

    def _create_fake_clients(self, count: int):
        try:
            from faker import Faker
        except ImportError as e:
            raise SystemExit(
                'Missing dependency: Faker. Install it with `pip install Faker`.'
            ) from e

        fake = Faker('es_ES')
        start = Client.objects.count() + 1
        created = 0
        with transaction.atomic():
            for i in range(start, start + count):
                _, was_created = Client.objects.get_or_create(
                    code=f'GEN{i:04d}',
                    defaults={
                        'name': fake.company(),
                        'email': fake.company_email(),
                        'address': fake.street_address(),
                        'city': fake.city(),
                    },
                )
                created += was_created
        self.stdout.write(self.style.SUCCESS(f'Generated {created} clients'))

    def handle(self, *args, **options):
        admin_user = self._ensure_user(options['admin_username'], options['admin_password'], 'admin')
        self._ensure_user(options['operator_username'], options['operator_password'], 'operator')

        with transaction.atomic():
            for code, name, email in SAMPLE_CLIENTS:
                _, created = Client.objects.get_or_create(code=code, defaults={'name': name, 'email': email})
                if created:
                    self.stdout.write(self.style.SUCCESS(f'Created client {code} {name}'))

        if options['extra_clients'] > 0:
            self._create_fake_clients(options['extra_clients'])

        count = max(0, options['invoices'])
        if not count:
            return

        service = DocumentService(observers=[LoggingObserver()])
        clients = list(Client.objects.order_by('code'))
        invoices = []
        for i in range(count):
            client = clients[i % len(clients)]
            invoices.append(service.issue(DocumentType.INVOICE, client, SAMPLE_ITEMS, created_by=admin_user))
        self.stdout.write(self.style.SUCCESS(f'Issued {len(invoices)} invoices ({invoices[0].number}..{invoices[-1].number})'))

        if len(invoices) >= 2:
            receipt = service.issue(DocumentType.RECEIPT, invoices[0].client, related_document_id=invoices[0].pk, created_by=admin_user)
            credit = service.issue(DocumentType.CREDIT_NOTE, invoices[1].client, related_document_id=invoices[1].pk, created_by=admin_user)
            self.stdout.write(self.style.SUCCESS(f'Settled {invoices[0].number} with {receipt.number}, cancelled {invoices[1].number} with {credit.number}'))
