from rest_framework import serializers

from apps.users.serializers import UserProfileSerializer, UserSerializer
from apps.users.validators import (
    normalize_email,
    validate_name as validate_name_rules,
    validate_password as validate_password_rules,
)


class RegisterRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    name = serializers.CharField()

    def validate_email(self, value: str) -> str:
        return normalize_email(value)

    def validate_password(self, value: str) -> str:
        return validate_password_rules(value)

    def validate_name(self, value: str) -> str:
        return validate_name_rules(value)


class LoginRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate_email(self, value: str) -> str:
        return normalize_email(value)


class AuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    token = serializers.CharField()
    user = UserSerializer()


class ProfileResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    user = UserProfileSerializer()
