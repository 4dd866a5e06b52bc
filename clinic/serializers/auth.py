from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(max_length=128, write_only=True)


class ProfileUpdateSerializer(serializers.Serializer):
    fullName = serializers.CharField(source='full_name', required=False, allow_blank=True, max_length=255)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(write_only=True)
    newPassword = serializers.CharField(write_only=True)

    def validate_newPassword(self, value):
        try:
            validate_password(value, user=self.context.get('user'))
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)
        return value


def user_payload(user) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'fullName': user.display_name(),
        'role': user.role,
        'email': user.email,
        'phone': user.phone,
    }
