import unittest

from rest_framework import serializers

from apps.users.validators import normalize_email, validate_name, validate_password


class ValidatorTests(unittest.TestCase):
    def test_normalize_email(self):
        self.assertEqual(normalize_email("  Jane@Example.COM "), "jane@example.com")
        self.assertEqual(normalize_email(None), "")

    def test_password_bounds(self):
        self.assertEqual(validate_password("secret"), "secret")
        with self.assertRaises(serializers.ValidationError):
            validate_password("12345")
        with self.assertRaises(serializers.ValidationError):
            validate_password("x" * 101)

    def test_name_is_trimmed(self):
        self.assertEqual(validate_name("  Jo  "), "Jo")
        with self.assertRaises(serializers.ValidationError):
            validate_name(" J ")
        with self.assertRaises(serializers.ValidationError):
            validate_name("x" * 51)
