import os
import unittest
from unittest.mock import MagicMock, patch

import requests
from django.core.files.uploadedfile import SimpleUploadedFile

from smartreturn.cloudinary_client import UploadError, upload_image
from smartreturn.geocoding import geocode

CLOUDINARY_ENV = {"CLOUDINARY_CLOUD_NAME": "demo-cloud", "CLOUDINARY_UPLOAD_PRESET": "unsigned"}


def _response(status_code, payload):
    response = MagicMock(status_code=status_code, text=str(payload))
    response.json.return_value = payload
    return response


class CloudinaryUploadTests(unittest.TestCase):
    @patch.dict(os.environ, CLOUDINARY_ENV)
    @patch("smartreturn.cloudinary_client.requests.post")
    def test_returns_secure_url(self, mock_post):
        mock_post.return_value = _response(200, {"secure_url": "https://res.cloudinary.com/demo/a.jpg"})
        upload = SimpleUploadedFile("a.jpg", b"\xff\xd8data", content_type="image/jpeg")

        url = upload_image(upload, folder="returns")

        self.assertEqual(url, "https://res.cloudinary.com/demo/a.jpg")
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "https://api.cloudinary.com/v1_1/demo-cloud/image/upload")
        self.assertEqual(kwargs["data"], {"upload_preset": "unsigned", "folder": "returns"})
        self.assertEqual(kwargs["files"]["file"][0], "a.jpg")

    @patch.dict(os.environ, {"CLOUDINARY_CLOUD_NAME": "", "CLOUDINARY_UPLOAD_PRESET": ""})
    def test_not_configured(self):
        upload = SimpleUploadedFile("a.jpg", b"data", content_type="image/jpeg")
        with self.assertRaises(UploadError):
            upload_image(upload)

    @patch.dict(os.environ, CLOUDINARY_ENV)
    def test_rejects_non_images(self):
        upload = SimpleUploadedFile("a.pdf", b"%PDF", content_type="application/pdf")
        with self.assertRaisesRegex(UploadError, "unsupported_content_type"):
            upload_image(upload)

    @patch.dict(os.environ, CLOUDINARY_ENV)
    @patch("smartreturn.cloudinary_client.requests.post")
    def test_rejected_upload(self, mock_post):
        mock_post.return_value = _response(400, {"error": {"message": "Invalid image file"}})
        upload = SimpleUploadedFile("a.jpg", b"data", content_type="image/jpeg")
        with self.assertRaisesRegex(UploadError, "upload_rejected"):
            upload_image(upload)

    @patch.dict(os.environ, CLOUDINARY_ENV)
    @patch("smartreturn.cloudinary_client.requests.post", side_effect=requests.exceptions.ConnectionError())
    def test_transport_error(self, _):
        upload = SimpleUploadedFile("a.jpg", b"data", content_type="image/jpeg")
        with self.assertRaisesRegex(UploadError, "upload_unavailable"):
            upload_image(upload)


class GeocodeTests(unittest.TestCase):
    @patch.dict(os.environ, {"GEOCODING_ENABLED": "1"})
    @patch("smartreturn.geocoding.requests.get")
    def test_first_hit(self, mock_get):
        mock_get.return_value = _response(200, [{"lat": "41.03", "lon": "28.97"}, {"lat": "0", "lon": "0"}])

        self.assertEqual(geocode("Istiklal Cd. 1"), {"latitude": 41.03, "longitude": 28.97})
        self.assertEqual(mock_get.call_args.kwargs["params"]["q"], "Istiklal Cd. 1")

    @patch.dict(os.environ, {"GEOCODING_ENABLED": "1"})
    @patch("smartreturn.geocoding.requests.get")
    def test_no_hit(self, mock_get):
        mock_get.return_value = _response(200, [])
        self.assertIsNone(geocode("Nowhere"))

    @patch.dict(os.environ, {"GEOCODING_ENABLED": "1"})
    @patch("smartreturn.geocoding.requests.get", side_effect=requests.exceptions.Timeout())
    def test_errors_are_swallowed(self, _):
        self.assertIsNone(geocode("Istiklal Cd. 1"))

    @patch.dict(os.environ, {"GEOCODING_ENABLED": "0"})
    @patch("smartreturn.geocoding.requests.get")
    def test_disabled(self, mock_get):
        self.assertIsNone(geocode("Istiklal Cd. 1"))
        mock_get.assert_not_called()


if __name__ == "__main__":
    unittest.main()
