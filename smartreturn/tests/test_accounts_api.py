from unittest.mock import patch

from django.http import JsonResponse

from smartreturn.identity import IdentityError

from .base import ApiTestCase, BUYER, SELLER


class HealthTests(ApiTestCase):
    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["firestore"], "connected")

    def test_health_rejects_post(self):
        self.assertEqual(self.client.post("/api/health").status_code, 405)


class RegisterTests(ApiTestCase):
    def _payload(self, **overrides):
        data = {
            "email": "new@example.com",
            "phone": "5551234567",
            "password": "secret1",
            "confirmPassword": "secret1",
            "role": "seller",
            "storeName": "Shop",
            "businessPhone": "5559998888",
            "businessAddress": "2 High St",
        }
        data.update(overrides)
        return data

    @patch("smartreturn.views.accounts.create_account", return_value="new_uid")
    def test_register_seller(self, mock_create):
        response = self.post_json("/api/auth/register", self._payload())

        self.assertEqual(response.status_code, 201)
        mock_create.assert_called_once_with("new@example.com", "secret1")
        profile = self.db.docs("users")["new_uid"]
        self.assertEqual(profile["role"], "seller")
        self.assertEqual(profile["name"], "new")
        self.assertEqual(profile["storeName"], "Shop")
        self.assertEqual(profile["company"], "")
        self.assertTrue(profile["isActive"])

    @patch("smartreturn.views.accounts.create_account")
    def test_validation_errors(self, mock_create):
        response = self.post_json("/api/auth/register", self._payload(password="123", confirmPassword="123"))

        self.assertEqual(response.status_code, 400)
        self.assertIn("password", response.json()["fields"])
        mock_create.assert_not_called()

    @patch("smartreturn.views.accounts.delete_account", side_effect=RuntimeError("auth down"))
    @patch("smartreturn.views.accounts.create_account", return_value="new_uid")
    def test_profile_write_failure_rolls_back_account(self, _, mock_delete):
        with patch("smartreturn.views.accounts.firestore_service.create_user_profile",
                   side_effect=RuntimeError("write failed")):
            response = self.post_json("/api/auth/register", self._payload())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "failed_to_create_profile")
        mock_delete.assert_called_once_with("new_uid")

    @patch("smartreturn.views.accounts.create_account", return_value="new_uid")
    def test_email_is_stored_lowercase(self, mock_create):
        self.post_json("/api/auth/register", self._payload(email="New@Example.com"))
        mock_create.assert_called_once_with("new@example.com", "secret1")
        self.assertEqual(self.db.docs("users")["new_uid"]["email"], "new@example.com")

    @patch("smartreturn.views.accounts.create_account", side_effect=IdentityError("EMAIL_EXISTS", status=409))
    def test_existing_email(self, _):
        response = self.post_json("/api/auth/register", self._payload(role="buyer"))
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "EMAIL_EXISTS")


class LoginTests(ApiTestCase):
    @patch("smartreturn.views.accounts.sign_in_with_password")
    def test_login_returns_role(self, mock_sign_in):
        mock_sign_in.return_value = {"uid": SELLER["uid"], "email": SELLER["email"], "idToken": "tok"}

        response = self.post_json("/api/auth/login", {"email": SELLER["email"], "password": "secret1"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], "seller")
        self.assertEqual(response.json()["idToken"], "tok")

    def test_short_password_never_reaches_firebase(self):
        with patch("smartreturn.views.accounts.sign_in_with_password") as mock_sign_in:
            response = self.post_json("/api/auth/login", {"email": SELLER["email"], "password": "12345"})
        self.assertEqual(response.status_code, 400)
        mock_sign_in.assert_not_called()

    @patch("smartreturn.views.accounts.sign_in_with_password",
           side_effect=IdentityError("INVALID_LOGIN_CREDENTIALS", status=401))
    def test_bad_credentials(self, _):
        response = self.post_json("/api/auth/login", {"email": SELLER["email"], "password": "wrong12"})
        self.assertEqual(response.status_code, 401)

    @patch("smartreturn.views.accounts.sign_in_with_google")
    def test_google_first_login_creates_buyer(self, mock_google):
        mock_google.return_value = {"uid": "g_uid", "email": "g@example.com", "displayName": "Gee"}

        response = self.post_json("/api/auth/google", {"accessToken": "ya29.token"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], "buyer")
        self.assertEqual(self.db.docs("users")["g_uid"]["name"], "Gee")

    @patch("smartreturn.views.accounts.sign_in_with_google")
    def test_google_login_never_overwrites_existing_profile(self, mock_google):
        mock_google.return_value = {"uid": SELLER["uid"], "email": SELLER["email"], "displayName": "S"}

        # A failed profile read must not be taken for a first login
        with patch("smartreturn.firebase_service.firestore_service.get_user", return_value=None):
            response = self.post_json("/api/auth/google", {"accessToken": "ya29.token"})

        self.assertEqual(response.json()["role"], "seller")
        stored = self.db.docs("users")[SELLER["uid"]]
        self.assertEqual(stored["role"], "seller")
        self.assertEqual(stored["storeName"], "Store")

    @patch("smartreturn.views.accounts.sign_in_with_google")
    def test_google_login_without_firestore(self, mock_google):
        with patch("smartreturn.views.accounts.require_firestore",
                   return_value=JsonResponse({"error": "firestore_unavailable"}, status=503)):
            response = self.post_json("/api/auth/google", {"accessToken": "ya29.token"})

        self.assertEqual(response.status_code, 503)
        mock_google.assert_not_called()


class ProfileTests(ApiTestCase):
    def test_requires_token(self):
        response = self.client.get("/api/me")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "missing_token")

    def test_get_profile(self):
        response = self.get("/api/me", user=BUYER)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], "buyer")

    def test_buyer_updates_allowed_fields(self):
        response = self.patch_json("/api/me", {"name": "Ann", "address": "1 Main St"}, user=BUYER)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.db.docs("users")[BUYER["uid"]]["address"], "1 Main St")

    def test_buyer_cannot_set_role_or_store(self):
        response = self.patch_json("/api/me", {"role": "seller", "storeName": "X"}, user=BUYER)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["fields"], ["role", "storeName"])
        self.assertEqual(self.db.docs("users")[BUYER["uid"]]["role"], "buyer")

    def test_seller_updates_business_fields(self):
        response = self.patch_json("/api/me", {"businessAddress": "3 Dock Rd"}, user=SELLER)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.db.docs("users")[SELLER["uid"]]["businessAddress"], "3 Dock Rd")

    def test_push_token_upsert(self):
        first = self.post_json("/api/me/push-token", {"pushToken": "ExponentPushToken[a]"}, user=BUYER)
        second = self.post_json("/api/me/push-token", {"pushToken": "ExponentPushToken[b]"}, user=BUYER)

        self.assertTrue(first.json()["created"])
        self.assertFalse(second.json()["created"])
        tokens = list(self.db.docs("pushTokens").values())
        self.assertEqual(len(tokens), 1)
        self.assertEqual(tokens[0]["pushToken"], "ExponentPushToken[b]")


class PasswordAndDeletionTests(ApiTestCase):
    @patch("smartreturn.views.accounts.update_password")
    @patch("smartreturn.views.accounts.sign_in_with_password")
    def test_change_password(self, mock_sign_in, mock_update):
        response = self.post_json("/api/me/password", {
            "currentPassword": "old123", "newPassword": "new1234", "confirmNewPassword": "new1234",
        }, user=BUYER)

        self.assertEqual(response.status_code, 200)
        mock_sign_in.assert_called_once_with(BUYER["email"], "old123")
        mock_update.assert_called_once_with(BUYER["uid"], "new1234")

    @patch("smartreturn.views.accounts.update_password")
    @patch("smartreturn.views.accounts.sign_in_with_password",
           side_effect=IdentityError("INVALID_LOGIN_CREDENTIALS", status=401))
    def test_wrong_current_password(self, _, mock_update):
        response = self.post_json("/api/me/password", {
            "currentPassword": "bad123", "newPassword": "new1234", "confirmNewPassword": "new1234",
        }, user=BUYER)
        self.assertEqual(response.status_code, 401)
        mock_update.assert_not_called()

    @patch("smartreturn.views.accounts.delete_account")
    @patch("smartreturn.views.accounts.sign_in_with_password")
    def test_delete_account(self, _, mock_delete):
        response = self.post_json("/api/me/delete", {"password": "secret1"}, user=BUYER)

        self.assertEqual(response.status_code, 200)
        self.assertNotIn(BUYER["uid"], self.db.docs("users"))
        mock_delete.assert_called_once_with(BUYER["uid"])

    def test_delete_requires_password(self):
        response = self.post_json("/api/me/delete", {}, user=BUYER)
        self.assertEqual(response.status_code, 400)
        self.assertIn(BUYER["uid"], self.db.docs("users"))
