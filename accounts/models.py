"""Database models for billing users and their roles."""

from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Custom user model.

    Extends Django's :class:`~django.contrib.auth.models.AbstractUser` with a
    ``role`` that decides who may issue, import and delete documents.
    """

    ROLE_ADMIN = 'admin'
    ROLE_OPERATOR = 'operator'
    ROLE_VIEWER = 'viewer'
    ROLE_CHOICES = (
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_OPERATOR, 'Operator'),
        (ROLE_VIEWER, 'Viewer'),
    )
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_VIEWER)

    def __str__(self):
        return self.username

    @property
    def can_issue_documents(self):
        return self.role in (self.ROLE_ADMIN, self.ROLE_OPERATOR)

    @property
    def is_billing_admin(self):
        return self.role == self.ROLE_ADMIN
