from django.db import DatabaseError, IntegrityError
from django.test import SimpleTestCase

from .exceptions import Conflict, NotFound, PersistenceError, normalize_store_errors


class NormalizeStoreErrorsTests(SimpleTestCase):

    def test_database_errors_become_persistence_errors(self):
        @normalize_store_errors
        def broken():
            raise IntegrityError('constraint failed')

        with self.assertRaises(PersistenceError) as ctx:
            broken()
        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)
        self.assertEqual('persistence_error', ctx.exception.code)

    def test_domain_errors_pass_through(self):
        @normalize_store_errors
        def missing():
            raise NotFound("Team not found.")

        with self.assertRaises(NotFound):
            missing()

    def test_error_payload(self):
        error = Conflict("The user is already a member of the team.")
        self.assertEqual(409, error.status_code)
        self.assertEqual(
            {"success": False, "code": "conflict", "message": "The user is already a member of the team."},
            error.as_dict(),
        )
        self.assertEqual(NotFound.default_message, NotFound().message)
