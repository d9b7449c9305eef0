import unittest

from django.core.files.uploadedfile import SimpleUploadedFile

from smartreturn.validation import (
    validate_decision,
    validate_login,
    validate_password_change,
    validate_photo_files,
    validate_product,
    validate_registration,
    validate_return,
)


def _registration(**overrides):
    data = {
        "email": "new@example.com",
        "phone": "5551234567",
        "password": "secret1",
        "confirmPassword": "secret1",
        "role": "buyer",
    }
    data.update(overrides)
    return data


def _return_form(**overrides):
    data = {
        "productName": "Shoes",
        "productCode": "SR-1",
        "productPrice": "19.99",
        "buyerName": "Ann",
        "buyerPhone": "5551234567",
        "buyerAddress": "1 Main St",
        "sellerEmail": "seller@example.com",
        "reason": "Too small",
    }
    data.update(overrides)
    return data


class LoginValidationTests(unittest.TestCase):
    def test_valid_login(self):
        self.assertEqual(validate_login({"email": "a@b.com", "password": "123456"}), {})

    def test_short_password(self):
        errors = validate_login({"email": "a@b.com", "password": "12345"})
        self.assertIn("password", errors)

    def test_email_without_at(self):
        errors = validate_login({"email": "ab.com", "password": "123456"})
        self.assertEqual(errors["email"], "Please enter a valid email address")


class RegistrationValidationTests(unittest.TestCase):
    def test_valid_buyer(self):
        self.assertEqual(validate_registration(_registration()), {})

    def test_email_needs_dot(self):
        self.assertIn("email", validate_registration(_registration(email="new@example")))

    def test_phone_too_short(self):
        errors = validate_registration(_registration(phone="1234567"))
        self.assertEqual(errors["phone"], "Phone number too short")

    def test_password_mismatch(self):
        errors = validate_registration(_registration(confirmPassword="other1"))
        self.assertEqual(errors["confirmPassword"], "Passwords do not match")

    def test_unknown_role(self):
        self.assertIn("role", validate_registration(_registration(role="admin")))

    def test_seller_requires_business_fields(self):
        errors = validate_registration(_registration(role="seller", storeName="Shop"))
        self.assertNotIn("storeName", errors)
        self.assertIn("businessPhone", errors)
        self.assertIn("businessAddress", errors)

    def test_seller_company_is_optional(self):
        data = _registration(
            role="seller", storeName="Shop", businessPhone="5550000000", businessAddress="2 High St"
        )
        self.assertEqual(validate_registration(data), {})


class PasswordChangeValidationTests(unittest.TestCase):
    def test_all_fields_required(self):
        errors = validate_password_change({"currentPassword": "old123", "newPassword": "new123"})
        self.assertEqual(errors, {"password": "Please fill in all password fields"})

    def test_new_password_length(self):
        errors = validate_password_change({
            "currentPassword": "old123", "newPassword": "abc", "confirmNewPassword": "abc",
        })
        self.assertIn("newPassword", errors)

    def test_valid_change(self):
        self.assertEqual(validate_password_change({
            "currentPassword": "old123", "newPassword": "new1234", "confirmNewPassword": "new1234",
        }), {})


class ProductValidationTests(unittest.TestCase):
    def test_blank_field_rejected(self):
        data = {
            "productCode": "SR-1", "productName": "Shoes", "productSize": "42",
            "productQuantity": "1", "productPrice": "10", "buyerName": "Ann",
            "buyerAddress": "1 Main St", "buyerEmail": "ann@example.com", "buyerPhone": "   ",
        }
        self.assertEqual(list(validate_product(data)), ["buyerPhone"])


class ReturnValidationTests(unittest.TestCase):
    def test_valid_return(self):
        self.assertEqual(validate_return(_return_form(), photo_count=2), {})

    def test_at_least_two_photos(self):
        errors = validate_return(_return_form(), photo_count=1)
        self.assertEqual(errors["photos"], "Please upload at least 2 photos")

    def test_at_most_four_photos(self):
        self.assertIn("photos", validate_return(_return_form(), photo_count=5))

    def test_reason_limit(self):
        self.assertEqual(validate_return(_return_form(reason="x" * 500), photo_count=2), {})
        self.assertIn("reason", validate_return(_return_form(reason="x" * 501), photo_count=2))

    def test_price_must_be_numeric(self):
        errors = validate_return(_return_form(productPrice="cheap"), photo_count=2)
        self.assertEqual(errors["productPrice"], "Price must be a number")

    def test_missing_seller_email(self):
        self.assertIn("sellerEmail", validate_return(_return_form(sellerEmail=""), photo_count=2))


class PhotoFileValidationTests(unittest.TestCase):
    def test_images_pass(self):
        photos = [SimpleUploadedFile("a.png", b"png", content_type="image/png")]
        self.assertEqual(validate_photo_files(photos), {})

    def test_first_bad_file_is_named(self):
        photos = [
            SimpleUploadedFile("a.jpg", b"jpg", content_type="image/jpeg"),
            SimpleUploadedFile("notes.txt", b"hi", content_type="text/plain"),
        ]
        self.assertEqual(validate_photo_files(photos), {"photos": "notes.txt is not an image"})


class DecisionValidationTests(unittest.TestCase):
    def test_approval_needs_address(self):
        self.assertIn("returnAddress", validate_decision("approved", " "))

    def test_rejection_needs_no_address(self):
        self.assertEqual(validate_decision("rejected", ""), {})

    def test_unknown_decision(self):
        self.assertIn("decision", validate_decision("pending", "1 Main St"))


if __name__ == "__main__":
    unittest.main()
