from rest_framework import serializers

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def validate_password(value: str) -> str:
    if value is None:
        raise serializers.ValidationError("Password is required.")
    if len(value) < PASSWORD_MIN_LENGTH:
        raise serializers.ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long."
        )
    if len(value) > PASSWORD_MAX_LENGTH:
        raise serializers.ValidationError(
            f"Password must be at most {PASSWORD_MAX_LENGTH} characters long."
        )
    return value


def validate_name(value: str) -> str:
    trimmed = (value or "").strip()
    if len(trimmed) < NAME_MIN_LENGTH:
        raise serializers.ValidationError(
            f"Name must be at least {NAME_MIN_LENGTH} characters long."
        )
    if len(trimmed) > NAME_MAX_LENGTH:
        raise serializers.ValidationError(
            f"Name must be at most {NAME_MAX_LENGTH} characters long."
        )
    return trimmed
