"""Sequences app tests."""

import threading
import time
from unittest import mock

from django.db import IntegrityError, OperationalError, connection
from django.test import TestCase, TransactionTestCase, skipIfDBFeature, skipUnlessDBFeature

from core.exceptions import BillingValidationError, StoreUnavailable
from sequences.models import DocumentSequence, DocumentType
from sequences.services import allocate, format_number, next_number


class SequenceAllocationTests(TestCase):
	"""Single-connection behaviour of the per-type counters."""

	def setUp(self):
		DocumentSequence.objects.update_or_create(doc_type=DocumentType.INVOICE, defaults={'last_number': 1000})
		DocumentSequence.objects.update_or_create(doc_type=DocumentType.RECEIPT, defaults={'last_number': 1000})

	def test_two_allocations_from_1000_return_1001_and_1002(self):
		first = allocate(DocumentType.INVOICE)
		second = allocate(DocumentType.INVOICE)
		self.assertEqual({first, second}, {1001, 1002})
		self.assertEqual(DocumentSequence.objects.get(doc_type=DocumentType.INVOICE).last_number, 1002)

	def test_types_are_independent(self):
		self.assertEqual(allocate(DocumentType.INVOICE), 1001)
		self.assertEqual(allocate(DocumentType.RECEIPT), 1001)
		self.assertEqual(allocate(DocumentType.INVOICE), 1002)

	def test_plain_string_type_is_accepted(self):
		self.assertEqual(allocate('Receipt'), 1001)

	def test_unknown_type_is_a_validation_error(self):
		with self.assertRaises(BillingValidationError):
			allocate('Quote')

	def test_missing_row_is_created_at_configured_start(self):
		DocumentSequence.objects.filter(doc_type=DocumentType.CREDIT_NOTE).delete()
		self.assertEqual(allocate(DocumentType.CREDIT_NOTE), 1001)
		self.assertEqual(DocumentSequence.objects.filter(doc_type=DocumentType.CREDIT_NOTE).count(), 1)

	def test_store_failure_raises_store_unavailable_and_allocates_nothing(self):
		with mock.patch('sequences.services._bump', side_effect=OperationalError('database is locked')):
			with self.assertRaises(StoreUnavailable):
				allocate(DocumentType.INVOICE)
		self.assertEqual(DocumentSequence.objects.get(doc_type=DocumentType.INVOICE).last_number, 1000)

	def test_integrity_failure_is_reported_as_store_unavailable(self):
		with mock.patch('sequences.services._bump', side_effect=IntegrityError('CHECK constraint failed')):
			with self.assertRaises(StoreUnavailable):
				allocate(DocumentType.RECEIPT)
		self.assertEqual(DocumentSequence.objects.get(doc_type=DocumentType.RECEIPT).last_number, 1000)

	def test_next_number_uses_type_prefix(self):
		self.assertEqual(next_number(DocumentType.INVOICE), 'FC1001')
		self.assertEqual(next_number(DocumentType.RECEIPT), 'RC1001')

	def test_format_number(self):
		self.assertEqual(format_number(DocumentType.CREDIT_NOTE, 1005), 'NC1005')
		self.assertEqual(format_number('Invoice', 1001), 'FC1001')


@skipUnlessDBFeature('has_select_for_update')
class ConcurrentAllocationTests(TransactionTestCase):
	"""Real concurrent transactions; needs a backend with row locking."""

	def test_concurrent_allocations_form_a_contiguous_run(self):
		DocumentSequence.objects.update_or_create(doc_type=DocumentType.INVOICE, defaults={'last_number': 1000})
		workers = 8
		results = []
		errors = []
		lock = threading.Lock()
		barrier = threading.Barrier(workers)

		def worker():
			try:
				barrier.wait()
				number = allocate(DocumentType.INVOICE)
				with lock:
					results.append(number)
			except Exception as exc:
				with lock:
					errors.append(exc)
			finally:
				connection.close()

		threads = [threading.Thread(target=worker) for _ in range(workers)]
		for t in threads:
			t.start()
		for t in threads:
			t.join()

		self.assertEqual(errors, [])
		self.assertEqual(sorted(results), list(range(1001, 1001 + workers)))
		self.assertEqual(DocumentSequence.objects.get(doc_type=DocumentType.INVOICE).last_number, 1000 + workers)


@skipIfDBFeature('has_select_for_update')
class SQLiteConcurrentAllocationTests(TransactionTestCase):
	"""Threads sharing the SQLite test database.

	SQLite refuses a second writer instead of queueing it, so a worker
	retries after ``StoreUnavailable``; a refused call must allocate nothing.
	"""

	def test_concurrent_allocations_form_a_contiguous_run(self):
		DocumentSequence.objects.update_or_create(doc_type=DocumentType.RECEIPT, defaults={'last_number': 1000})
		workers = 4
		results = []
		errors = []
		lock = threading.Lock()
		barrier = threading.Barrier(workers)

		def worker():
			try:
				barrier.wait()
				for _ in range(500):
					try:
						number = allocate(DocumentType.RECEIPT)
					except StoreUnavailable:
						time.sleep(0.005)
						continue
					with lock:
						results.append(number)
					return
				raise AssertionError('allocation kept failing')
			except Exception as exc:
				with lock:
					errors.append(exc)
			finally:
				connection.close()

		threads = [threading.Thread(target=worker) for _ in range(workers)]
		for t in threads:
			t.start()
		for t in threads:
			t.join()

		self.assertEqual(errors, [])
		self.assertEqual(sorted(results), list(range(1001, 1001 + workers)))
		self.assertEqual(DocumentSequence.objects.get(doc_type=DocumentType.RECEIPT).last_number, 1000 + workers)
