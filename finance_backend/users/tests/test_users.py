from io import StringIO

from django.contrib.auth import authenticate, get_user_model
from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from users.models import DummyContact
from users.services.identity import get_dummy_contact, resolve_user, search_users

User = get_user_model()


class UserManagerTests(TestCase):
    """
    GUARANTEES:
    - Email is canonical; username is derived when missing
    - Derived usernames stay unique
    """

    def test_username_derived_from_email(self):
        user = User.objects.create_user(email="alice@example.com", password="pass")
        self.assertEqual(user.username, "alice")
        self.assertEqual(user.display_name, "alice")

    def test_derived_username_is_unique(self):
        User.objects.create_user(email="bob@example.com", password="pass")
        other = User.objects.create_user(email="bob@example.org", password="pass")
        self.assertEqual(other.username, "bob2")

    def test_username_only_gets_placeholder_email(self):
        user = User.objects.create_user(username="carol", password="pass")
        self.assertEqual(user.email, "carol@local.test")

    def test_display_name_prefers_full_name(self):
        user = User.objects.create_user(
            email="dan@example.com", password="pass", first_name="Dan", last_name="Brown"
        )
        self.assertEqual(user.display_name, "Dan Brown")


class AuthBackendTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="erin@example.com", username="erin", password="secret")

    def test_login_with_email(self):
        self.assertEqual(authenticate(email="erin@example.com", password="secret"), self.user)

    def test_login_with_username(self):
        self.assertEqual(authenticate(username="erin", password="secret"), self.user)

    def test_wrong_password_fails(self):
        self.assertIsNone(authenticate(username="erin", password="nope"))

    def test_inactive_user_cannot_login(self):
        self.user.is_active = False
        self.user.save()
        self.assertIsNone(authenticate(username="erin", password="secret"))


class IdentityServiceTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.other = User.objects.create_user(email="other@example.com", password="pass")

    def test_resolve_user(self):
        self.assertTrue(resolve_user(self.owner.pk))
        self.assertFalse(resolve_user("not-a-uuid"))

    def test_dummy_contacts_are_owner_scoped(self):
        contact = DummyContact.objects.create(owner=self.owner, name="Grandma")
        self.assertEqual(get_dummy_contact(owner=self.owner, contact_id=contact.pk), contact)
        self.assertIsNone(get_dummy_contact(owner=self.other, contact_id=contact.pk))

    def test_search_excludes_caller(self):
        results = list(search_users("example.com", exclude=self.owner))
        self.assertEqual(results, [self.other])


class UsersAPITests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="api@example.com", password="pass")
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def test_me(self):
        res = self.client.get("/api/users/me/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["email"], "api@example.com")

    def test_create_and_list_dummy_contacts(self):
        res = self.client.post("/api/users/dummy/", {"name": "Landlord"}, format="json")
        self.assertEqual(res.status_code, 201)

        dup = self.client.post("/api/users/dummy/", {"name": "landlord"}, format="json")
        self.assertEqual(dup.status_code, 400)

        res = self.client.get("/api/users/dummy/")
        self.assertEqual([c["name"] for c in res.data], ["Landlord"])

    def test_anonymous_is_rejected(self):
        self.assertEqual(APIClient().get("/api/users/me/").status_code, 401)

    def test_jwt_login_with_email(self):
        self.user.set_password("pass")
        self.user.save()
        res = APIClient().post(
            "/api/auth/jwt/create/", {"email": "api@example.com", "password": "pass"}, format="json"
        )
        self.assertEqual(res.status_code, 200)
        self.assertIn("access", res.data)


class MigrationStateTests(TestCase):
    def test_models_match_migrations(self):
        # exits non-zero when a model change has no migration
        call_command("makemigrations", "--check", "--dry-run", stdout=StringIO())
