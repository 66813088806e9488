"""
Services API Filters

django-filter FilterSets for service requests and bids. `since` supports
the 30-second polling clients do on list endpoints.
"""

import django_filters

from accounts.models import ContractorProfile

from .models import Bid, ServiceRequest


class ServiceRequestFilter(django_filters.FilterSet):
    """
    FilterSet for ServiceRequest API endpoints.
    """

    status = django_filters.CharFilter(field_name='status')
    status__in = django_filters.BaseInFilter(field_name='status')
    urgency = django_filters.CharFilter(field_name='urgency')
    service_type = django_filters.CharFilter(method='filter_service_type', label='Service type')
    mine = django_filters.BooleanFilter(method='filter_mine', label='Only my requests')
    since = django_filters.IsoDateTimeFilter(field_name='updated_at', lookup_expr='gt')
    city = django_filters.CharFilter(field_name='city', lookup_expr='iexact')

    class Meta:
        model = ServiceRequest
        fields = ['status', 'urgency', 'city']

    def filter_service_type(self, queryset, name, value):
        """JSON list membership, evaluated in Python so it works on every backend."""
        if not value:
            return queryset
        ids = [pk for pk, types in queryset.values_list('pk', 'service_types') if value in (types or [])]
        return queryset.filter(pk__in=ids)

    def filter_mine(self, queryset, name, value):
        user = getattr(self.request, 'user', None)
        if not value or not user or not user.is_authenticated:
            return queryset
        if getattr(user, 'is_contractor', False):
            return queryset.filter(assigned_contractor=user)
        return queryset.filter(customer=user)


class BidFilter(django_filters.FilterSet):
    """
    FilterSet for Bid API endpoints.
    """

    service_request = django_filters.NumberFilter(field_name='service_request_id')
    request_id = django_filters.CharFilter(field_name='service_request__request_id')
    contractor = django_filters.NumberFilter(field_name='contractor_id')
    status = django_filters.CharFilter(field_name='status')
    since = django_filters.IsoDateTimeFilter(field_name='updated_at', lookup_expr='gt')
    min_amount = django_filters.NumberFilter(field_name='amount', lookup_expr='gte')
    max_amount = django_filters.NumberFilter(field_name='amount', lookup_expr='lte')

    class Meta:
        model = Bid
        fields = ['service_request', 'contractor', 'status']


class ContractorDirectoryFilter(django_filters.FilterSet):
    """
    FilterSet for the public contractor directory.

    `services` takes a comma-separated list; a profile matches when it
    offers any of them.
    """

    services = django_filters.CharFilter(method='filter_services', label='Service types')
    city = django_filters.CharFilter(field_name='city', lookup_expr='iexact')
    state = django_filters.CharFilter(field_name='state', lookup_expr='iexact')
    verified = django_filters.BooleanFilter(field_name='is_verified')

    class Meta:
        model = ContractorProfile
        fields = ['city', 'state']

    def filter_services(self, queryset, name, value):
        wanted = [s.strip() for s in value.split(',') if s.strip()]
        if not wanted:
            return queryset
        ids = [pk for pk, offered in queryset.values_list('pk', 'services') if set(offered or []) & set(wanted)]
        return queryset.filter(pk__in=ids)
