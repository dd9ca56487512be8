"""Documents app tests."""

from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError, OperationalError, transaction
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.test import APIClient

from clients.models import Client
from core.exceptions import BillingValidationError, DuplicateNumber, LifecycleViolation, StoreUnavailable
from documents import calculator
from documents.imports import ParseError, ParsedRow, parse_row
from documents.lifecycle import (
	InvoiceState,
	billing_by_client,
	billing_by_month,
	billing_summary,
	check_can_settle,
	derive_state,
	pending_invoices,
	pending_total,
	state_from_counts,
)
from documents.models import Document, LineItem
from documents.services import DocumentObserver, DocumentService
from sequences.models import DocumentSequence, DocumentType


HOSTING_ITEMS = [
	{'description': 'Hosting rack A', 'month': '2026-03', 'quantity': 1, 'unit_price': '200.00', 'unit_discount': '15.00'},
]


def reset_sequences():
	for doc_type in DocumentType.values:
		DocumentSequence.objects.update_or_create(doc_type=doc_type, defaults={'last_number': 1000})


class RecordingObserver(DocumentObserver):
	def __init__(self):
		self.issued = []
		self.deleted = []

	def document_issued(self, document):
		self.issued.append(document.number)

	def document_deleted(self, document):
		self.deleted.append(document.number)


class CalculatorTests(SimpleTestCase):
	"""Money arithmetic and sign convention."""

	items = [
		{'quantity': 2, 'unit_price': Decimal('80.00'), 'unit_discount': Decimal('0')},
		{'quantity': 1, 'unit_price': Decimal('30.00'), 'unit_discount': Decimal('5.00')},
	]

	def test_totals_are_subtotal_minus_discounts(self):
		totals = calculator.compute_totals(self.items)
		self.assertEqual(totals.subtotal, Decimal('190.00'))
		self.assertEqual(totals.discounts, Decimal('5.00'))
		self.assertEqual(totals.total, Decimal('185.00'))

	def test_line_total(self):
		self.assertEqual(calculator.line_total(self.items[1]), Decimal('25.00'))

	def test_invoice_totals_are_stored_positive(self):
		totals = calculator.stored_totals(DocumentType.INVOICE, self.items, has_related=False)
		self.assertEqual(totals.total, Decimal('185.00'))

	def test_receipt_totals_are_stored_negative_but_displayed_positive(self):
		stored = calculator.stored_totals(DocumentType.RECEIPT, self.items, has_related=True)
		self.assertEqual(stored, (Decimal('-190.00'), Decimal('-5.00'), Decimal('-185.00')))
		self.assertEqual(calculator.display_totals(self.items).total, Decimal('185.00'))

	def test_credit_note_is_negated(self):
		self.assertTrue(calculator.is_negated(DocumentType.CREDIT_NOTE, True))
		self.assertFalse(calculator.is_negated(DocumentType.CREDIT_NOTE, False))
		self.assertFalse(calculator.is_negated(DocumentType.INVOICE, True))

	def test_float_amounts_do_not_drift(self):
		self.assertEqual(calculator.to_money(0.1 + 0.2), Decimal('0.30'))

	def test_due_date_defaults_to_six_days(self):
		from datetime import datetime
		issued = datetime(2026, 3, 1, 10, 0)
		self.assertEqual(calculator.due_date(issued), datetime(2026, 3, 7, 10, 0))
		self.assertEqual(calculator.due_date(issued, 5), datetime(2026, 3, 6, 10, 0))

	def test_due_days_outside_allowed_set_is_rejected(self):
		with self.assertRaises(BillingValidationError):
			calculator.resolve_due_days(8)

	def test_state_priority(self):
		self.assertEqual(state_from_counts(0, 0), InvoiceState.PENDING)
		self.assertEqual(state_from_counts(1, 0), InvoiceState.SETTLED)
		self.assertEqual(state_from_counts(1, 1), InvoiceState.CANCELLED)
		self.assertEqual(state_from_counts(0, 1), InvoiceState.CANCELLED)
		# Two credit notes is corrupt data, not a cancellation.
		self.assertEqual(state_from_counts(0, 2), InvoiceState.PENDING)


class DocumentLifecycleTests(TestCase):
	"""Issuing through the service: numbering, guards and derived state."""

	@classmethod
	def setUpTestData(cls):
		cls.acme = Client.objects.create(code='ACME', name='Acme SA')
		cls.other = Client.objects.create(code='BETA', name='Beta SRL')

	def setUp(self):
		reset_sequences()
		self.observer = RecordingObserver()
		self.service = DocumentService(observers=[self.observer])

	def issue_invoice(self, client=None, items=None, **kwargs):
		return self.service.issue(DocumentType.INVOICE, client or self.acme, items or HOSTING_ITEMS, **kwargs)

	def test_invoice_then_receipt_settles_invoice(self):
		invoice = self.issue_invoice()
		self.assertEqual(invoice.number, 'FC1001')
		self.assertEqual(invoice.total, Decimal('185.00'))
		self.assertEqual(derive_state(invoice), InvoiceState.PENDING)

		receipt = self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=invoice.pk)
		self.assertEqual(receipt.number, 'RC1001')
		self.assertEqual(receipt.total, Decimal('-185.00'))
		self.assertEqual(receipt.related_number, 'FC1001')
		self.assertEqual(calculator.display_totals(receipt.items.all()).total, Decimal('185.00'))
		self.assertEqual(derive_state(invoice), InvoiceState.SETTLED)
		self.assertEqual(self.observer.issued, ['FC1001', 'RC1001'])

	def test_credit_note_cancels_and_blocks_receipt(self):
		invoice = self.issue_invoice()
		self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=invoice.pk)
		self.assertEqual(derive_state(invoice), InvoiceState.CANCELLED)

		with self.assertRaises(LifecycleViolation) as ctx:
			self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=invoice.pk)
		self.assertEqual(ctx.exception.reason, LifecycleViolation.ALREADY_CANCELLED)
		self.assertFalse(Document.objects.filter(doc_type=DocumentType.RECEIPT).exists())

	def test_second_credit_note_is_rejected(self):
		invoice = self.issue_invoice()
		self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=invoice.pk)
		with self.assertRaises(LifecycleViolation) as ctx:
			self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=invoice.pk)
		self.assertEqual(ctx.exception.reason, LifecycleViolation.ALREADY_CANCELLED)
		self.assertEqual(invoice.settlements.filter(doc_type=DocumentType.CREDIT_NOTE).count(), 1)

	def test_settled_invoice_cannot_be_cancelled_or_paid_twice(self):
		invoice = self.issue_invoice()
		self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=invoice.pk)

		with self.assertRaises(LifecycleViolation) as ctx:
			self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=invoice.pk)
		self.assertEqual(ctx.exception.reason, LifecycleViolation.ALREADY_SETTLED)

		with self.assertRaises(LifecycleViolation) as ctx:
			self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=invoice.pk)
		self.assertEqual(ctx.exception.reason, LifecycleViolation.ALREADY_SETTLED)
		self.assertEqual(derive_state(invoice), InvoiceState.SETTLED)

	def test_settling_a_receipt_is_rejected(self):
		invoice = self.issue_invoice()
		receipt = self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=invoice.pk)
		with self.assertRaises(LifecycleViolation) as ctx:
			self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=receipt.pk)
		self.assertEqual(ctx.exception.reason, LifecycleViolation.NOT_AN_INVOICE)

	def test_receipt_needs_an_existing_invoice(self):
		with self.assertRaises(BillingValidationError):
			self.service.issue(DocumentType.RECEIPT, self.acme)
		with self.assertRaises(BillingValidationError):
			self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=999999)

	def test_receipt_for_another_clients_invoice_is_rejected(self):
		invoice = self.issue_invoice()
		with self.assertRaises(BillingValidationError) as ctx:
			self.service.issue(DocumentType.RECEIPT, self.other, related_document_id=invoice.pk)
		self.assertEqual(ctx.exception.field, 'client')

	def test_settling_documents_copy_invoice_items(self):
		invoice = self.issue_invoice()
		other_items = [{'description': 'Ignored', 'quantity': 9, 'unit_price': '1.00'}]
		receipt = self.service.issue(DocumentType.RECEIPT, self.acme, other_items, related_document_id=invoice.pk)
		self.assertEqual(
			[(i.description, i.quantity, i.unit_price, i.unit_discount) for i in receipt.items.all()],
			[(i.description, i.quantity, i.unit_price, i.unit_discount) for i in invoice.items.all()],
		)
		self.assertEqual(receipt.month, invoice.month)

	def test_receipt_paid_at_defaults_to_issue_time(self):
		invoice = self.issue_invoice()
		receipt = self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=invoice.pk)
		self.assertEqual(receipt.paid_at, receipt.issued_at)
		self.assertIsNone(receipt.due_at)

	def test_invoice_due_date_uses_requested_days(self):
		invoice = self.issue_invoice(due_days=7)
		self.assertEqual((invoice.due_at - invoice.issued_at).days, 7)

	def test_derivation_is_idempotent(self):
		invoice = self.issue_invoice()
		self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=invoice.pk)
		self.assertEqual(derive_state(invoice), derive_state(invoice.pk))
		self.assertEqual(derive_state(invoice), derive_state(invoice))

	def test_state_is_none_for_non_invoices(self):
		invoice = self.issue_invoice()
		receipt = self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=invoice.pk)
		self.assertIsNone(derive_state(receipt))

	def test_store_rejects_second_settlement_of_same_type(self):
		invoice = self.issue_invoice()
		self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=invoice.pk)
		with self.assertRaises(IntegrityError):
			with transaction.atomic():
				Document.objects.create(
					number='RC9999', doc_type=DocumentType.RECEIPT, client=self.acme, client_name='Acme SA',
					month='2026-03', subtotal=0, discounts=0, total=0, related_document=invoice,
				)

	def test_validation_errors_do_not_consume_numbers(self):
		with self.assertRaises(BillingValidationError):
			self.issue_invoice(items=[{'description': '', 'quantity': 1, 'unit_price': '10'}])
		with self.assertRaises(BillingValidationError):
			self.issue_invoice(month='2026-13')
		with self.assertRaises(BillingValidationError):
			self.service.issue(DocumentType.INVOICE, 'Nobody Inc', HOSTING_ITEMS)
		self.assertEqual(DocumentSequence.objects.get(doc_type=DocumentType.INVOICE).last_number, 1000)
		self.assertEqual(self.issue_invoice().number, 'FC1001')

	def test_empty_items_are_rejected(self):
		with self.assertRaises(BillingValidationError) as ctx:
			self.service.issue(DocumentType.INVOICE, self.acme, [])
		self.assertEqual(ctx.exception.field, 'items')

	def test_explicit_number_skips_allocation(self):
		invoice = self.issue_invoice(number='FC0001')
		self.assertEqual(invoice.number, 'FC0001')
		self.assertEqual(DocumentSequence.objects.get(doc_type=DocumentType.INVOICE).last_number, 1000)

	def test_duplicate_number_burns_the_allocation(self):
		self.issue_invoice(number='FC1001')
		with self.assertRaises(DuplicateNumber):
			self.issue_invoice()
		self.assertEqual(Document.objects.filter(number='FC1001').count(), 1)
		self.assertEqual(self.issue_invoice().number, 'FC1002')

	def test_store_failure_leaves_no_partial_document(self):
		with mock.patch.object(LineItem.objects, 'bulk_create', side_effect=OperationalError('disk I/O error')):
			with self.assertRaises(StoreUnavailable):
				self.issue_invoice()
		self.assertFalse(Document.objects.exists())
		self.assertEqual(self.observer.issued, [])

	def test_month_defaults(self):
		self.assertEqual(self.issue_invoice().month, '2026-03')
		no_month = [{'description': 'Setup', 'quantity': 1, 'unit_price': '10.00'}]
		invoice = self.issue_invoice(items=no_month, issued_at='2026-05-20')
		self.assertEqual(invoice.month, '2026-05')

	def test_client_can_be_given_by_name_or_id(self):
		by_name = self.service.issue(DocumentType.INVOICE, 'Acme SA', HOSTING_ITEMS)
		by_id = self.service.issue(DocumentType.INVOICE, self.acme.pk, HOSTING_ITEMS)
		self.assertEqual(by_name.client_id, self.acme.pk)
		self.assertEqual(by_id.client_name, 'Acme SA')

	def test_delete_leaves_references_dangling(self):
		invoice = self.issue_invoice()
		receipt = self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=invoice.pk)
		invoice_pk = invoice.pk

		self.service.delete(invoice)

		receipt = Document.objects.get(pk=receipt.pk)
		self.assertEqual(receipt.related_document_id, invoice_pk)
		self.assertEqual(receipt.related_number, 'FC1001')
		self.assertEqual(receipt.items.count(), 1)
		self.assertFalse(Document.objects.filter(pk=invoice_pk).exists())
		self.assertEqual(self.observer.deleted, ['FC1001'])

	def test_pending_excludes_settled_and_cancelled(self):
		settled = self.issue_invoice()
		cancelled = self.issue_invoice()
		pending = self.issue_invoice(client=self.other)
		self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=settled.pk)
		self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=cancelled.pk)

		self.assertEqual(list(pending_invoices().values_list('pk', flat=True)), [pending.pk])
		self.assertFalse(pending_invoices(client='acme').exists())
		self.assertTrue(pending_invoices(month='2026-03').exists())

	def test_summary_figures(self):
		paid = self.issue_invoice()
		cancelled = self.issue_invoice()
		self.issue_invoice(
			client=self.other,
			items=[{'description': 'Setup', 'quantity': 1, 'unit_price': '50.00'}],
			month='2026-04',
		)
		self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=paid.pk)
		self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=cancelled.pk)

		summary = billing_summary()
		self.assertEqual(summary['invoices'], 3)
		self.assertEqual(summary['receipts'], 1)
		self.assertEqual(summary['credit_notes'], 1)
		self.assertEqual(summary['documents'], 5)
		self.assertEqual(summary['billed_total'], Decimal('235.00'))
		# Only the pending invoice is still owed; the cancelled one is not.
		self.assertEqual(summary['outstanding_total'], Decimal('50.00'))
		self.assertEqual(summary['outstanding_total'], pending_total(pending_invoices()))
		self.assertEqual(summary['collected_total'], Decimal('185.00'))

	def test_net_billing_per_month(self):
		paid = self.issue_invoice()
		self.issue_invoice(month='2026-04')
		self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=paid.pk)

		rows = [(row['month'], row['total']) for row in billing_by_month()]
		self.assertEqual(rows, [('2026-03', Decimal('0.00')), ('2026-04', Decimal('185.00'))])

	def test_client_ranking_nets_credit_notes(self):
		self.issue_invoice()
		cancelled = self.issue_invoice()
		self.issue_invoice(client=self.other, items=[{'description': 'Setup', 'quantity': 1, 'unit_price': '50.00'}])
		self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=cancelled.pk)
		# Receipts do not reduce what a client was billed.
		self.service.issue(DocumentType.RECEIPT, self.other, related_document_id=Document.objects.get(client=self.other).pk)

		rows = [(row['client_name'], row['total']) for row in billing_by_client()]
		self.assertEqual(rows, [('Acme SA', Decimal('185.00')), ('Beta SRL', Decimal('50.00'))])

	def test_numeric_client_name_is_not_read_as_an_id(self):
		numeric = Client.objects.create(code='NUM', name=str(self.other.pk))
		invoice = self.service.issue(DocumentType.INVOICE, numeric.name, HOSTING_ITEMS)
		self.assertEqual(invoice.client_id, numeric.pk)
		self.assertEqual(invoice.client_name, str(self.other.pk))

	def test_derive_state_by_id_matches_document_form(self):
		invoice = self.issue_invoice()
		receipt = self.service.issue(DocumentType.RECEIPT, self.acme, related_document_id=invoice.pk)
		self.assertEqual(derive_state(invoice.pk), InvoiceState.SETTLED)
		self.assertIsNone(derive_state(receipt.pk))
		self.assertEqual(derive_state(receipt.pk), derive_state(receipt))

	def test_derive_state_of_unknown_id_is_a_validation_error(self):
		with self.assertRaises(BillingValidationError):
			derive_state(999999)

	def test_locked_recheck_rejects_a_settlement_that_passed_the_first_guard(self):
		invoice = self.issue_invoice()
		self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=invoice.pk)

		calls = []

		def guard(doc_type, target):
			# The first call stands in for a check that ran before a concurrent commit.
			calls.append(doc_type)
			if len(calls) > 1:
				check_can_settle(doc_type, target)

		with mock.patch('documents.services.check_can_settle', side_effect=guard):
			with self.assertRaises(LifecycleViolation) as ctx:
				self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=invoice.pk)
		self.assertEqual(ctx.exception.reason, LifecycleViolation.ALREADY_CANCELLED)
		self.assertEqual(len(calls), 2)
		self.assertEqual(invoice.settlements.filter(doc_type=DocumentType.CREDIT_NOTE).count(), 1)

	def test_store_constraint_is_reported_as_lifecycle_violation(self):
		invoice = self.issue_invoice()
		self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=invoice.pk)

		with mock.patch('documents.services.check_can_settle'):
			with self.assertRaises(LifecycleViolation) as ctx:
				self.service.issue(DocumentType.CREDIT_NOTE, self.acme, related_document_id=invoice.pk)
		self.assertEqual(ctx.exception.reason, LifecycleViolation.ALREADY_CANCELLED)
		self.assertEqual(invoice.settlements.filter(doc_type=DocumentType.CREDIT_NOTE).count(), 1)
		self.assertEqual(Document.objects.filter(doc_type=DocumentType.CREDIT_NOTE).count(), 1)


class ImportParsingTests(SimpleTestCase):

	def test_valid_invoice_row(self):
		parsed = parse_row({
			'number': 'FC0001', 'type': 'Factura', 'client_name': 'Acme SA', 'issued_at': '2025-01-05',
			'items': [{'description': 'Hosting', 'quantity': 1, 'unit_price': '100.00'}],
		})
		self.assertIsInstance(parsed, ParsedRow)
		self.assertEqual(parsed.doc_type, DocumentType.INVOICE)
		self.assertEqual(parsed.items[0]['unit_price'], Decimal('100.00'))

	def test_unknown_type(self):
		parsed = parse_row({'number': 'X1', 'type': 'Quote', 'client_name': 'Acme SA', 'issued_at': '2025-01-05'}, 3)
		self.assertIsInstance(parsed, ParseError)
		self.assertEqual((parsed.index, parsed.field), (3, 'type'))

	def test_receipt_row_needs_related_number(self):
		parsed = parse_row({'number': 'RC1', 'type': 'Recibo', 'client_name': 'Acme SA', 'issued_at': '2025-01-05'})
		self.assertEqual(parsed.field, 'related_number')

	def test_unexpected_column(self):
		parsed = parse_row({'number': 'FC1', 'type': 'Invoice', 'client_name': 'A', 'issued_at': '2025-01-05', 'vat': 21})
		self.assertEqual(parsed.field, 'vat')

	def test_bad_date(self):
		parsed = parse_row({
			'number': 'FC1', 'type': 'Invoice', 'client_name': 'A', 'issued_at': 'yesterday',
			'items': [{'description': 'x', 'unit_price': '1'}],
		})
		self.assertEqual(parsed.field, 'issued_at')


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class DocumentApiTests(TestCase):
	"""HTTP surface: permissions, envelopes and derived state in listings."""

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.admin = User.objects.create_user(username='billing_admin', password='12345678', role='admin')
		cls.operator = User.objects.create_user(username='billing_operator', password='12345678', role='operator')
		cls.viewer = User.objects.create_user(username='billing_viewer', password='12345678', role='viewer')
		cls.acme = Client.objects.create(code='ACME', name='Acme SA')

	def setUp(self):
		reset_sequences()

	def api_as(self, user):
		api = APIClient()
		api.force_authenticate(user=user)
		return api

	def post_invoice(self, api, **extra):
		payload = {'type': 'Invoice', 'client_id': self.acme.pk, 'items': HOSTING_ITEMS}
		payload.update(extra)
		return api.post('/api/documents/', payload, format='json')

	def test_requires_authentication(self):
		res = APIClient().get('/api/documents/')
		self.assertEqual(res.status_code, 401)

	def test_next_number_reserves_a_number(self):
		api = self.api_as(self.operator)
		res = api.get('/api/documents/next-number/', {'type': 'Invoice'})
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data, {'number': 'FC1001'})
		res = api.get('/api/documents/next-number/', {'type': 'Invoice'})
		self.assertEqual(res.data, {'number': 'FC1002'})

	def test_next_number_rejects_unknown_type(self):
		res = self.api_as(self.operator).get('/api/documents/next-number/', {'type': 'Quote'})
		self.assertEqual(res.status_code, 400)
		self.assertEqual(res.data['error']['kind'], 'validation_error')

	def test_viewer_cannot_issue(self):
		api = self.api_as(self.viewer)
		self.assertEqual(api.get('/api/documents/next-number/', {'type': 'Invoice'}).status_code, 403)
		self.assertEqual(self.post_invoice(api).status_code, 403)

	def test_issue_invoice_and_receipt(self):
		api = self.api_as(self.operator)
		res = self.post_invoice(api)
		self.assertEqual(res.status_code, 201)
		invoice = res.data['document']
		self.assertEqual(invoice['number'], 'FC1001')
		self.assertEqual(invoice['total'], '185.00')
		self.assertEqual(invoice['state'], 'Pending')

		res = api.post('/api/documents/', {
			'type': 'Receipt',
			'client_id': self.acme.pk,
			'related_document_id': invoice['id'],
			'payment_date': '2026-03-10',
		}, format='json')
		self.assertEqual(res.status_code, 201)
		receipt = res.data['document']
		self.assertEqual(receipt['number'], 'RC1001')
		self.assertEqual(receipt['total'], '-185.00')
		self.assertEqual(receipt['display_totals']['total'], '185.00')
		self.assertEqual(receipt['related_number'], 'FC1001')
		self.assertIsNone(receipt['state'])

		res = api.get(f"/api/documents/{invoice['id']}/")
		self.assertEqual(res.data['state'], 'Settled')

	def test_lifecycle_violation_envelope(self):
		api = self.api_as(self.operator)
		invoice = self.post_invoice(api).data['document']
		payload = {'type': 'Receipt', 'client_id': self.acme.pk, 'related_document_id': invoice['id']}
		self.assertEqual(api.post('/api/documents/', payload, format='json').status_code, 201)

		payload['type'] = 'CreditNote'
		res = api.post('/api/documents/', payload, format='json')
		self.assertEqual(res.status_code, 422)
		self.assertEqual(res.data['error']['kind'], 'lifecycle_violation')
		self.assertEqual(res.data['error']['reason'], 'already_settled')

	def test_duplicate_number_envelope(self):
		api = self.api_as(self.operator)
		self.assertEqual(self.post_invoice(api, number='FC5000').status_code, 201)
		res = self.post_invoice(api, number='FC5000')
		self.assertEqual(res.status_code, 409)
		self.assertEqual(res.data['error']['kind'], 'duplicate_number')

	def test_malformed_payload_envelope(self):
		res = self.api_as(self.operator).post('/api/documents/', {'type': 'Invoice'}, format='json')
		self.assertEqual(res.status_code, 400)
		self.assertEqual(res.data['error']['kind'], 'validation_error')
		self.assertIn('details', res.data['error'])

	def test_list_includes_state_and_filters(self):
		api = self.api_as(self.operator)
		first = self.post_invoice(api).data['document']
		self.post_invoice(api, month='2026-04')
		api.post('/api/documents/', {
			'type': 'CreditNote', 'client_id': self.acme.pk, 'related_document_id': first['id'],
		}, format='json')

		res = self.api_as(self.viewer).get('/api/documents/', {'type': 'Invoice'})
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['count'], 2)
		states = {row['number']: row['state'] for row in res.data['results']}
		self.assertEqual(states, {'FC1001': 'Cancelled', 'FC1002': 'Pending'})

		res = self.api_as(self.viewer).get('/api/documents/', {'month': '2026-04'})
		self.assertEqual([row['number'] for row in res.data['results']], ['FC1002'])

		res = self.api_as(self.viewer).get('/api/documents/', {'client': 'acme'})
		self.assertEqual(res.data['count'], 3)

	def test_only_admin_can_delete(self):
		invoice = self.post_invoice(self.api_as(self.operator)).data['document']
		url = f"/api/documents/{invoice['id']}/"
		self.assertEqual(self.api_as(self.operator).delete(url).status_code, 403)
		self.assertEqual(self.api_as(self.admin).delete(url).status_code, 204)
		self.assertFalse(Document.objects.filter(pk=invoice['id']).exists())

	def test_pending_report(self):
		api = self.api_as(self.operator)
		paid = self.post_invoice(api).data['document']
		self.post_invoice(api)
		api.post('/api/documents/', {
			'type': 'Receipt', 'client_id': self.acme.pk, 'related_document_id': paid['id'],
		}, format='json')

		res = self.api_as(self.viewer).get('/api/documents/pending/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['count'], 1)
		self.assertEqual(res.data['pending_total'], '185.00')
		self.assertEqual(res.data['results'][0]['number'], 'FC1002')
		self.assertEqual(res.data['results'][0]['state'], 'Pending')

	def test_summary_report(self):
		api = self.api_as(self.operator)
		self.post_invoice(api)
		res = self.api_as(self.viewer).get('/api/documents/summary/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['invoices'], 1)
		self.assertEqual(res.data['billed_total'], '185.00')
		self.assertEqual(res.data['outstanding_total'], '185.00')
		self.assertEqual(res.data['collected_total'], '0.00')
		self.assertEqual(res.data['by_month'], [{'month': '2026-03', 'total': '185.00'}])
		self.assertEqual(res.data['by_client'], [{'client_name': 'Acme SA', 'total': '185.00'}])

	def test_numeric_client_name_bills_the_named_client(self):
		numeric = Client.objects.create(code='NUM', name=str(self.acme.pk))
		other = Client.objects.create(code='ZED', name='Zed Co')
		res = self.api_as(self.operator).post('/api/documents/', {
			'type': 'Invoice', 'client_name': numeric.name, 'items': HOSTING_ITEMS,
		}, format='json')
		self.assertEqual(res.status_code, 201)
		self.assertEqual(res.data['document']['client_id'], numeric.pk)

		res = self.api_as(self.operator).post('/api/documents/', {
			'type': 'Invoice', 'client_id': other.pk, 'items': HOSTING_ITEMS,
		}, format='json')
		self.assertEqual(res.data['document']['client_name'], 'Zed Co')

	def test_import_reports_each_row(self):
		rows = [
			{
				'number': 'FC0001', 'type': 'Factura', 'client_name': 'Acme SA', 'issued_at': '2025-01-05',
				'month': '2025-01', 'items': [{'description': 'Hosting', 'quantity': 1, 'unit_price': '100.00'}],
			},
			{
				'number': 'RC0001', 'type': 'Recibo', 'client_name': 'Acme SA', 'issued_at': '2025-01-10',
				'related_number': 'FC0001',
			},
			{
				'number': 'FC0001', 'type': 'Invoice', 'client_name': 'Acme SA', 'issued_at': '2025-01-05',
				'items': [{'description': 'Hosting', 'quantity': 1, 'unit_price': '100.00'}],
			},
			{'number': 'XX1', 'type': 'Quote', 'client_name': 'Acme SA', 'issued_at': '2025-01-05'},
		]
		self.assertEqual(self.api_as(self.operator).post('/api/documents/import/', {'rows': rows}, format='json').status_code, 403)

		res = self.api_as(self.admin).post('/api/documents/import/', {'rows': rows}, format='json')
		self.assertEqual(res.status_code, 200)
		self.assertEqual((res.data['created'], res.data['failed']), (2, 2))
		self.assertEqual([r['status'] for r in res.data['results']], ['created', 'created', 'error', 'error'])
		self.assertEqual(res.data['results'][2]['kind'], 'duplicate_number')
		self.assertEqual(res.data['results'][3]['kind'], 'parse_error')

		receipt = Document.objects.get(number='RC0001')
		self.assertEqual(receipt.total, Decimal('-100.00'))
		self.assertEqual(derive_state(Document.objects.get(number='FC0001')), InvoiceState.SETTLED)
		# Imports never touch the sequence.
		self.assertEqual(DocumentSequence.objects.get(doc_type=DocumentType.INVOICE).last_number, 1000)
