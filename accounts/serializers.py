"""Serializers for the accounts app."""

from django.contrib.auth import get_user_model
from rest_framework import serializers


User = get_user_model()


class UserProfileSerializer(serializers.ModelSerializer):
    """Read-only view of the authenticated user and what they may do."""

    can_issue_documents = serializers.BooleanField(read_only=True)
    is_billing_admin = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'role', 'can_issue_documents', 'is_billing_admin']
        read_only_fields = fields
