"""
Site management views.
Handles CRUD operations for sites and site overview.
"""
import logging

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import IntegrityError

from integrations.authentication import extract_google_access_token
from integrations.gsc import GSCError, list_sites
from seo.cannibalization.pipeline import get_latest_analysis
from seo.gsc_cache import get_cache_stats
from .models import Site
from .serializers import SiteSerializer
from .permissions import IsSiteOwner

logger = logging.getLogger(__name__)


class SiteViewSet(viewsets.ModelViewSet):
    """
    ViewSet for managing sites.

    list: GET /api/v1/sites/ - List all sites for current user
    create: POST /api/v1/sites/ - Register a Search Console property
    retrieve: GET /api/v1/sites/{id}/ - Get site details
    update: PUT /api/v1/sites/{id}/ - Update site
    destroy: DELETE /api/v1/sites/{id}/ - Delete site and its cached data
    overview: GET /api/v1/sites/{id}/overview/ - Cache, content group and cannibalization stats
    available: GET /api/v1/sites/available/ - Properties visible in Search Console
    """
    serializer_class = SiteSerializer
    permission_classes = [IsAuthenticated, IsSiteOwner]

    def get_queryset(self):
        """Return only sites owned by the current user."""
        return Site.objects.filter(user=self.request.user)

    def perform_create(self, serializer):
        """Set the user when creating a site."""
        serializer.save(user=self.request.user)

    def create(self, request, *args, **kwargs):
        """Create a site with duplicate URL handling."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            self.perform_create(serializer)
        except IntegrityError:
            return Response(
                {'error': 'A site with this URL is already registered'},
                status=status.HTTP_400_BAD_REQUEST
            )

        headers = self.get_success_headers(serializer.data)
        return Response(serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    @action(detail=True, methods=['get'])
    def overview(self, request, pk=None):
        """
        Get site overview with cache and analysis stats.

        GET /api/v1/sites/{id}/overview/
        """
        site = self.get_object()

        latest = get_latest_analysis(site.id)
        cannibalization = None
        if latest:
            cannibalization = {
                'analysis_run_id': latest.id,
                'completed_at': latest.completed_at,
                'total_issues': latest.total_issues_found,
                'high': latest.high_count,
                'medium': latest.medium_count,
                'low': latest.low_count,
            }

        return Response({
            'site_id': site.id,
            'site_url': site.site_url,
            'site_name': site.name,
            'last_synced_at': site.last_synced_at,
            'gsc_cache': get_cache_stats(site.site_url),
            'content_group_count': site.content_groups.count(),
            'query_counting_days': site.query_counting_aggregates.count(),
            'cannibalization': cannibalization,
        })

    @action(detail=False, methods=['get'])
    def available(self, request):
        """
        List Search Console properties the credentials can see.

        GET /api/v1/sites/available/
        """
        try:
            entries = list_sites(access_token=extract_google_access_token(request))
        except GSCError as e:
            logger.error(f"Search Console site list failed: {e}")
            return Response(
                {'error': f'Search Console request failed: {e}'},
                status=status.HTTP_502_BAD_GATEWAY
            )

        registered = set(self.get_queryset().values_list('site_url', flat=True))

        return Response({
            'sites': [
                {
                    'site_url': entry.get('siteUrl'),
                    'permission_level': entry.get('permissionLevel'),
                    'registered': entry.get('siteUrl') in registered,
                }
                for entry in entries
            ],
        })
