from __future__ import annotations

from unittest import mock

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APITestCase

from profiles import get_service
from profiles.exceptions import UnknownFieldError
from profiles.models import ProfileValue
from profiles.service import ProfileService

User = get_user_model()


class UserCreateApiTests(APITestCase):
    url = "/api/users/"

    def setUp(self) -> None:
        self.staff = User.objects.create_user(username="admin", password="pass12345", is_staff=True)
        self.client.force_authenticate(self.staff)

    def _payload(self, **overrides):
        payload = {
            "user_name": "carol",
            "email": "carol@example.com",
            "password": "longenough1",
            "passwordc": "longenough1",
            "nickname": "Caz",
            "birth_year": 1990,
        }
        payload.update(overrides)
        return payload

    def test_create_user_with_profile(self):
        r = self.client.post(self.url, self._payload(), format="json")

        self.assertEqual(r.status_code, 201)
        data = r.json()
        self.assertEqual(data["username"], "carol")
        self.assertEqual(
            data["profile"],
            {"nickname": "Caz", "department": "other", "birth_year": 1990, "newsletter": False},
        )
        user = User.objects.get(username="carol")
        self.assertTrue(user.check_password("longenough1"))
        self.assertEqual(user.profile_values.count(), 4)

    def test_without_password_gets_unusable_password(self):
        r = self.client.post(self.url, self._payload(password=None, passwordc=None), format="json")
        self.assertEqual(r.status_code, 201)
        self.assertFalse(User.objects.get(username="carol").has_usable_password())

    def test_password_bounds_come_from_settings(self):
        r = self.client.post(self.url, self._payload(password="short", passwordc="short"), format="json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["code"], "invalid")
        self.assertIn("password", r.json()["errors"])

    def test_password_confirmation_must_match(self):
        r = self.client.post(self.url, self._payload(passwordc="different1"), format="json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["errors"], {"passwordc": ["Passwords do not match."]})

    def test_invalid_custom_field_creates_nothing(self):
        r = self.client.post(self.url, self._payload(birth_year=1800), format="json")

        self.assertEqual(r.status_code, 400)
        self.assertIn("birth_year", r.json()["errors"])
        self.assertFalse(User.objects.filter(username="carol").exists())

    def test_missing_required_base_fields(self):
        r = self.client.post(self.url, {"nickname": "Caz"}, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(set(r.json()["errors"]), {"user_name", "email"})

    def test_username_and_email_in_use(self):
        User.objects.create_user(username="carol", email="other@example.com")
        r = self.client.post(self.url, self._payload(), format="json")
        self.assertEqual(r.json()["code"], "username_in_use")

        r = self.client.post(self.url, self._payload(user_name="carol2", email="OTHER@example.com"), format="json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["code"], "email_in_use")

    def test_profile_failure_rolls_back_user(self):
        with mock.patch.object(ProfileService, "update_profile", side_effect=UnknownFieldError(["ghost"])):
            r = self.client.post(self.url, self._payload(), format="json")

        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["code"], "unknown_field")
        self.assertFalse(User.objects.filter(username="carol").exists())

    def test_requires_staff(self):
        self.client.force_authenticate(User.objects.create_user(username="bob", password="pass12345"))
        self.assertEqual(self.client.post(self.url, self._payload(), format="json").status_code, 403)


class EntityProfileApiTests(APITestCase):
    def setUp(self) -> None:
        self.staff = User.objects.create_user(username="admin", password="pass12345", is_staff=True)
        self.alice = User.objects.create_user(username="alice", password="pass12345")
        self.bob = User.objects.create_user(username="bob", password="pass12345")
        self.group = Group.objects.create(name="ops")
        get_service().update_profile(self.alice, {"nickname": "al", "birth_year": 1985})

    def test_public_view_for_other_users(self):
        self.client.force_authenticate(self.bob)
        r = self.client.get(f"/api/users/{self.alice.pk}/profile/")

        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {
            "id": self.alice.pk,
            "visibility": "public",
            "profile": {"nickname": "al", "department": "other"},
        })

    def test_owner_and_staff_see_private_fields(self):
        for viewer in (self.alice, self.staff):
            with self.subTest(viewer=viewer.username):
                self.client.force_authenticate(viewer)
                data = self.client.get(f"/api/users/{self.alice.pk}/profile/").json()
                self.assertEqual(data["visibility"], "all")
                self.assertEqual(data["profile"]["birth_year"], 1985)
                self.assertIs(data["profile"]["newsletter"], False)

    def test_staff_update(self):
        self.client.force_authenticate(self.staff)
        r = self.client.patch(
            f"/api/users/{self.alice.pk}/profile/",
            {"department": "sales", "not_a_field": 1},
            format="json",
        )

        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["profile"]["department"], "sales")
        self.assertEqual(r.json()["profile"]["nickname"], "al")

    def test_update_validation_error(self):
        self.client.force_authenticate(self.staff)
        r = self.client.patch(f"/api/users/{self.alice.pk}/profile/", {"department": "legal"}, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertIn("department", r.json()["errors"])

    def test_non_staff_cannot_update(self):
        self.client.force_authenticate(self.alice)
        r = self.client.patch(f"/api/users/{self.alice.pk}/profile/", {"nickname": "x"}, format="json")
        self.assertEqual(r.status_code, 403)

    def test_group_profile(self):
        self.client.force_authenticate(self.bob)
        r = self.client.get(f"/api/groups/{self.group.pk}/profile/")
        self.assertEqual(r.json()["profile"], {"color": "#000000"})

        self.client.force_authenticate(self.staff)
        r = self.client.patch(f"/api/groups/{self.group.pk}/profile/", {"max_members": 5}, format="json")
        self.assertEqual(r.json()["profile"], {"color": "#000000", "max_members": 5})

        r = self.client.patch(f"/api/groups/{self.group.pk}/profile/", {"color": "red"}, format="json")
        self.assertEqual(r.status_code, 400)

    def test_missing_entity(self):
        self.client.force_authenticate(self.staff)
        self.assertEqual(self.client.get("/api/users/999999/profile/").status_code, 404)
        self.assertEqual(self.client.get("/api/groups/999999/profile/").status_code, 404)

    def test_anonymous_rejected(self):
        self.assertEqual(self.client.get(f"/api/users/{self.alice.pk}/profile/").status_code, 403)


class AccountProfileApiTests(APITestCase):
    url = "/api/account/profile/"

    def setUp(self) -> None:
        self.alice = User.objects.create_user(username="alice", password="pass12345", email="a@example.com")
        self.client.force_authenticate(self.alice)

    def test_get_includes_fields(self):
        data = self.client.get(self.url).json()

        self.assertEqual(data["username"], "alice")
        self.assertEqual(data["email"], "a@example.com")
        self.assertEqual(
            [f["name"] for f in data["fields"]],
            ["first_name", "last_name", "email", "nickname", "department", "birth_year", "newsletter"],
        )
        self.assertIn("newsletter", data["profile"])

    def test_patch_updates_columns_and_profile_together(self):
        r = self.client.patch(self.url, {"first_name": "Alice", "newsletter": True}, format="json")

        self.assertEqual(r.status_code, 200)
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.first_name, "Alice")
        self.assertIs(r.json()["profile"]["newsletter"], True)
        self.assertEqual(ProfileValue.objects.filter(slug="newsletter").count(), 1)

    def test_patch_invalid_email_changes_nothing(self):
        r = self.client.patch(self.url, {"email": "nope", "nickname": "al"}, format="json")

        self.assertEqual(r.status_code, 400)
        self.assertIn("email", r.json()["errors"])
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.email, "a@example.com")
        self.assertFalse(ProfileValue.objects.exists())

    def test_patch_rejects_email_of_another_account(self):
        User.objects.create_user(username="bob", password="pass12345", email="bob@example.com")

        r = self.client.patch(self.url, {"email": "BOB@example.com", "nickname": "al"}, format="json")

        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["code"], "email_in_use")
        self.assertEqual(User.objects.filter(email__iexact="bob@example.com").count(), 1)
        self.assertFalse(ProfileValue.objects.exists())

    def test_patch_keeps_own_email(self):
        r = self.client.patch(self.url, {"email": "A@example.com"}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["email"], "A@example.com")


class EntityDetailsEditApiTests(APITestCase):
    def setUp(self) -> None:
        self.staff = User.objects.create_user(username="admin", password="pass12345", is_staff=True)
        self.alice = User.objects.create_user(username="alice", password="pass12345", email="a@example.com")
        self.ops = Group.objects.create(name="ops")
        self.client.force_authenticate(self.staff)

    def test_staff_edits_user_info_and_profile_together(self):
        r = self.client.patch(
            f"/api/users/{self.alice.pk}/profile/",
            {"first_name": "Alice", "last_name": None, "email": "alice@example.com", "nickname": "al"},
            format="json",
        )

        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["profile"]["nickname"], "al")
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.first_name, "Alice")
        self.assertEqual(self.alice.last_name, "")
        self.assertEqual(self.alice.email, "alice@example.com")

    def test_user_email_in_use(self):
        User.objects.create_user(username="bob", password="pass12345", email="bob@example.com")

        r = self.client.patch(
            f"/api/users/{self.alice.pk}/profile/", {"email": "Bob@example.com", "nickname": "al"}, format="json"
        )

        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["code"], "email_in_use")
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.email, "a@example.com")
        self.assertFalse(ProfileValue.objects.exists())

    def test_invalid_user_info_changes_nothing(self):
        r = self.client.patch(
            f"/api/users/{self.alice.pk}/profile/", {"email": "nope", "first_name": "Alice"}, format="json"
        )

        self.assertEqual(r.status_code, 400)
        self.assertIn("email", r.json()["errors"])
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.first_name, "")

    def test_profile_failure_rolls_back_user_info(self):
        with mock.patch.object(ProfileService, "update_profile", side_effect=UnknownFieldError(["ghost"])):
            r = self.client.patch(f"/api/users/{self.alice.pk}/profile/", {"first_name": "Alice"}, format="json")

        self.assertEqual(r.status_code, 400)
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.first_name, "")

    def test_staff_renames_group_with_profile(self):
        r = self.client.patch(
            f"/api/groups/{self.ops.pk}/profile/", {"name": "operations", "color": "#00ff00"}, format="json"
        )

        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["profile"]["color"], "#00ff00")
        self.ops.refresh_from_db()
        self.assertEqual(self.ops.name, "operations")

    def test_group_name_in_use_or_null(self):
        Group.objects.create(name="sales")

        r = self.client.patch(f"/api/groups/{self.ops.pk}/profile/", {"name": "sales"}, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["code"], "name_in_use")

        r = self.client.patch(f"/api/groups/{self.ops.pk}/profile/", {"name": None}, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertIn("name", r.json()["errors"])

        self.ops.refresh_from_db()
        self.assertEqual(self.ops.name, "ops")
