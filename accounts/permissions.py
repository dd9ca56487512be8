from rest_framework import permissions


class CanIssueDocuments(permissions.BasePermission):
    """
    Admins and operators may issue documents and reserve numbers.
    """
    message = 'Issuing documents requires the admin or operator role.'

    def has_permission(self, request, view):
        return request.user.is_authenticated and bool(getattr(request.user, 'can_issue_documents', False))


class IsBillingAdmin(permissions.BasePermission):
    """
    Only billing administrators may delete or bulk-import documents.
    """
    message = 'This action is restricted to billing administrators.'

    def has_permission(self, request, view):
        return request.user.is_authenticated and bool(getattr(request.user, 'is_billing_admin', False))


class CanIssueOrReadOnly(permissions.BasePermission):
    """Allow reads to any authenticated user; writes only to issuers."""

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(getattr(request.user, 'can_issue_documents', False))
