"""Accounts app views.

API authentication is handled with JWT under /api/accounts/login/; this
module only exposes the profile of the caller.
"""

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .serializers import UserProfileSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    """Return the authenticated user with role flags."""
    return Response(UserProfileSerializer(request.user).data)
