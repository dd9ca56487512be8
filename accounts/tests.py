"""Accounts app tests."""

from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from clients.models import Client
from documents.lifecycle import InvoiceState, derive_state
from documents.models import Document


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class AccountsAuthTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.operator = User.objects.create_user(
			username='ops',
			email='ops@example.com',
			password='12345678',
			role='operator',
		)

	def test_login_returns_tokens_usable_for_me(self):
		api = APIClient()
		res = api.post('/api/accounts/login/', {'username': 'ops', 'password': '12345678'}, format='json')
		self.assertEqual(res.status_code, 200)
		self.assertIn('access', res.data)
		self.assertIn('refresh', res.data)

		api.credentials(HTTP_AUTHORIZATION=f"Bearer {res.data['access']}")
		res = api.get('/api/accounts/me/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['role'], 'operator')
		self.assertTrue(res.data['can_issue_documents'])
		self.assertFalse(res.data['is_billing_admin'])

	def test_wrong_password_is_rejected(self):
		res = APIClient().post('/api/accounts/login/', {'username': 'ops', 'password': 'nope'}, format='json')
		self.assertEqual(res.status_code, 401)

	def test_new_users_default_to_viewer(self):
		user = get_user_model().objects.create_user(username='someone', password='12345678')
		self.assertEqual(user.role, 'viewer')
		self.assertFalse(user.can_issue_documents)


class SeedBillingCommandTests(TestCase):

	def test_seed_creates_users_clients_and_sample_lifecycle(self):
		out = StringIO()
		call_command('seed_billing', '--invoices', '3', '--extra-clients', '2', stdout=out)

		User = get_user_model()
		self.assertEqual(User.objects.get(username='admin').role, 'admin')
		self.assertEqual(User.objects.get(username='operator').role, 'operator')
		self.assertEqual(Client.objects.count(), 5)

		invoices = list(Document.objects.filter(doc_type='Invoice').order_by('id'))
		self.assertEqual(len(invoices), 3)
		self.assertEqual(
			[derive_state(i) for i in invoices],
			[InvoiceState.SETTLED, InvoiceState.CANCELLED, InvoiceState.PENDING],
		)

		# Running it again leaves existing users alone.
		call_command('seed_billing', stdout=out)
		self.assertEqual(User.objects.filter(username='admin').count(), 1)
