"""Clients app tests."""

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework import serializers
from rest_framework.test import APIClient

from clients.models import Client
from clients.serializers import normalize_phone


class PhoneNormalizationTests(TestCase):

	def test_formats_to_e164(self):
		self.assertEqual(normalize_phone('+1 (650) 253-0000', 'phone'), '+16502530000')

	def test_double_zero_prefix_is_international(self):
		self.assertEqual(normalize_phone('001 650 253 0000', 'phone'), '+16502530000')

	def test_invalid_number_is_rejected(self):
		with self.assertRaises(serializers.ValidationError):
			normalize_phone('12345', 'phone2')


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class ClientApiTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.operator = User.objects.create_user(username='client_operator', password='12345678', role='operator')
		cls.viewer = User.objects.create_user(username='client_viewer', password='12345678', role='viewer')
		Client.objects.create(code='ACME', name='Acme SA')

	def api_as(self, user):
		api = APIClient()
		api.force_authenticate(user=user)
		return api

	def test_operator_creates_client_with_normalized_fields(self):
		res = self.api_as(self.operator).post('/api/clients/', {
			'code': ' beta ',
			'name': 'Beta SRL',
			'phone': '+1 650 253 0000',
			'email': 'billing@beta.example',
		}, format='json')
		self.assertEqual(res.status_code, 201)
		self.assertEqual(res.data['code'], 'BETA')
		self.assertEqual(res.data['phone'], '+16502530000')

	def test_invalid_phone_returns_validation_envelope(self):
		res = self.api_as(self.operator).post('/api/clients/', {
			'code': 'GAMMA', 'name': 'Gamma', 'phone': '12345',
		}, format='json')
		self.assertEqual(res.status_code, 400)
		self.assertEqual(res.data['error']['kind'], 'validation_error')
		self.assertIn('phone', res.data['error']['details'])

	def test_viewer_reads_but_cannot_write(self):
		api = self.api_as(self.viewer)
		res = api.get('/api/clients/', {'search': 'acme'})
		self.assertEqual(res.status_code, 200)
		self.assertEqual([c['code'] for c in res.data], ['ACME'])
		res = api.post('/api/clients/', {'code': 'X', 'name': 'X'}, format='json')
		self.assertEqual(res.status_code, 403)
