"""Serializers for the client registry."""

import re

import phonenumbers
from rest_framework import serializers

from .models import Client


def normalize_phone(phone, field_name):
    """Validate an international phone number and return it in E.164 form."""
    phone_input = str(phone).strip()
    # Keep a leading '+' only; drop spaces, dashes and brackets.
    clean_phone = re.sub(r'(?<!^)\+|[^\d+]', '', phone_input)
    if clean_phone.startswith('00'):
        clean_phone = '+' + clean_phone[2:]
    if not clean_phone.startswith('+'):
        clean_phone = '+' + clean_phone

    try:
        parsed_phone = phonenumbers.parse(clean_phone, None)
        if not phonenumbers.is_valid_number(parsed_phone):
            raise ValueError
    except (phonenumbers.NumberParseException, ValueError):
        raise serializers.ValidationError({
            field_name: f"Phone number {phone_input} is not valid. Include the country code (e.g. +54 for Argentina)."
        })
    return phonenumbers.format_number(parsed_phone, phonenumbers.PhoneNumberFormat.E164)


class ClientSerializer(serializers.ModelSerializer):
    """Client payload used for create/update and document snapshots."""

    class Meta:
        model = Client
        fields = [
            'id', 'code', 'name', 'phone', 'email', 'address', 'city',
            'name2', 'phone2', 'email2', 'address2', 'city2',
        ]

    def validate_code(self, value):
        value = value.strip().upper()
        if not value:
            raise serializers.ValidationError("Client code is required.")
        return value

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Client name is required.")
        return value

    def validate(self, attrs):
        for field_name in ('phone', 'phone2'):
            phone = attrs.get(field_name)
            if phone:
                attrs[field_name] = normalize_phone(phone, field_name)
        return attrs
