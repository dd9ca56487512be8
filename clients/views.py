"""Client registry API views."""

from rest_framework import filters, viewsets

from accounts.permissions import CanIssueOrReadOnly
from .models import Client
from .serializers import ClientSerializer


class ClientViewSet(viewsets.ModelViewSet):
    """Client CRUD.

    Any authenticated user can read the registry; issuers maintain it.
    """

    queryset = Client.objects.all()
    serializer_class = ClientSerializer
    permission_classes = [CanIssueOrReadOnly]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['code', 'name', 'email']
    ordering_fields = ['code', 'name']
    ordering = ['code']
