"""
Accounts API Views - registration, own account and contractor profile.
"""

import logging

from django.contrib.auth import get_user_model
from django.http import Http404
from rest_framework import generics, permissions, status
from rest_framework.response import Response

from core.permissions import IsContractor

from ..models import ContractorProfile
from ..serializers import (
    ContractorProfileSerializer,
    UserRegistrationSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)
User = get_user_model()


class RegisterView(generics.CreateAPIView):
    """Register a client or contractor account."""

    serializer_class = UserRegistrationSerializer
    permission_classes = [permissions.AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Registered {user.role} account {user.email}")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class MeView(generics.RetrieveUpdateAPIView):
    """Read or update the authenticated user's account."""

    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user


class ContractorProfileView(generics.RetrieveUpdateAPIView):
    """
    The authenticated contractor's directory profile.

    PUT creates the profile on first use.
    """

    serializer_class = ContractorProfileSerializer
    permission_classes = [permissions.IsAuthenticated, IsContractor]

    def get_object(self):
        profile = ContractorProfile.objects.filter(user=self.request.user).first()
        if profile is None and self.request.method == 'GET':
            raise Http404('Contractor profile not found')
        return profile

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        if instance is None and partial:
            return Response(
                {'error': 'Contractor profile not found. Use PUT to create it.'},
                status=status.HTTP_404_NOT_FOUND
            )

        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        if instance is None:
            serializer.save(user=request.user)
            return Response(serializer.data, status=status.HTTP_201_CREATED)

        serializer.save()
        return Response(serializer.data)
