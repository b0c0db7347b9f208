from django.db import IntegrityError, transaction
from django.test import TestCase

from .models import CustomUser, avatar_upload
from .utils import find_user_by_email, find_user_by_id, resolve_user


class CustomUserTests(TestCase):

    def test_username_is_derived_from_email(self):
        first = CustomUser.objects.create_user(email='sam@example.com')
        second = CustomUser.objects.create_user(email='sam@other.org')
        self.assertEqual('sam', first.username)
        self.assertEqual('sam1', second.username)

    def test_display_name_falls_back_to_username(self):
        named = CustomUser.objects.create_user(email='ana@example.com', first_name='Ana', last_name='Lopez')
        bare = CustomUser.objects.create_user(email='bare@example.com')
        self.assertEqual('Ana Lopez', named.display_name)
        self.assertEqual('bare', bare.display_name)

    def test_create_user_requires_email(self):
        with self.assertRaises(ValueError):
            CustomUser.objects.create_user(email='')

    def test_email_is_stored_lowercase_and_unique_across_case(self):
        user = CustomUser.objects.create_user(email=' Ana.Lopez@Example.COM ')
        self.assertEqual('ana.lopez@example.com', user.email)

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                CustomUser.objects.create_user(email='ANA.LOPEZ@example.com', username='other')

    def test_avatar_path_is_timestamped(self):
        user = CustomUser.objects.create_user(email='ana@example.com')
        path = avatar_upload(user, 'me.png')
        self.assertTrue(path.startswith(f"avatars/avatar_{user.pk}_"))
        self.assertTrue(path.endswith('.png'))


class UserLookupTests(TestCase):
    def setUp(self):
        self.ana = CustomUser.objects.create_user(email='ana@example.com')
        self.ben = CustomUser.objects.create_user(email='ben@example.com')

    def test_find_by_id(self):
        self.assertEqual(self.ana, find_user_by_id(self.ana.pk))
        self.assertEqual(self.ana, find_user_by_id(str(self.ana.pk)))
        self.assertIsNone(find_user_by_id(9999))
        self.assertIsNone(find_user_by_id('abc'))

    def test_find_by_email_ignores_case(self):
        self.assertEqual(self.ben, find_user_by_email(' BEN@example.com '))
        self.assertIsNone(find_user_by_email('nobody@example.com'))
        self.assertIsNone(find_user_by_email(None))

    def test_resolve_prefers_id(self):
        self.assertEqual(self.ana, resolve_user(user_id=self.ana.pk, email=self.ben.email))
        self.assertIsNone(resolve_user(user_id=9999, email=self.ben.email))
        self.assertEqual(self.ben, resolve_user(email=self.ben.email))
