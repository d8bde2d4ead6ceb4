"""
Search performance API views.

Content groups, annotations, query counting, organic positions,
cannibalization, dashboard data and GSC cache management. Every endpoint works on sites owned by the caller.
"""
import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from integrations.authentication import extract_google_access_token
from integrations.gsc import GSCError
from sites.models import Site
from .annotations import annotation_impact, validate_annotation
from .cannibalization.pipeline import get_analysis_results, get_latest_analysis, run_analysis
from .content_groups import (
    ValidationError,
    fetch_matching_urls,
    filter_rows_by_group,
    preview_content_group,
    validate_conditions,
)
from .dashboard import get_search_analytics, sync_dashboard_data
from .gsc_cache import clear_gsc_cache, get_cache_stats
from .models import Annotation, ContentGroup
from .positions import aggregate_positions, serialize_records
from .query_counting import (
    QueryCountingError,
    get_query_counting,
    reaggregate_query_counting,
    sync_query_counting,
)
from .rows import parse_date
from .serializers import AnnotationSerializer, ContentGroupSerializer

logger = logging.getLogger(__name__)

POSITION_DIMENSIONS = ['date', 'query', 'page']
SEARCH_DIMENSIONS = ('date', 'query', 'page', 'country', 'device')


def _error(message, code):
    return Response({'error': message}, status=code)


def _gsc_error(e: GSCError):
    return _error(f'Search Console request failed: {e}', status.HTTP_502_BAD_GATEWAY)


def _owned_site(request, site_url):
    if not site_url:
        return None
    return Site.objects.filter(site_url=site_url, user=request.user).first()


class ContentGroupViewSet(viewsets.ModelViewSet):
    """
    ViewSet for content groups.

    list: GET /api/v1/seo/content-groups/?site_url=... - Groups of a site
    create: POST /api/v1/seo/content-groups/ - Create and fetch matching URLs
    retrieve: GET /api/v1/seo/content-groups/{id}/
    update: PUT /api/v1/seo/content-groups/{id}/ - Save and refetch matching URLs
    destroy: DELETE /api/v1/seo/content-groups/{id}/
    preview: POST /api/v1/seo/content-groups/preview/ - Count matches without saving
    """
    serializer_class = ContentGroupSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        """Return only groups of sites owned by the current user."""
        return ContentGroup.objects.filter(site__user=self.request.user).select_related('site')

    def list(self, request, *args, **kwargs):
        site_url = request.query_params.get('site_url')
        if not site_url:
            return _error('Missing site_url parameter', status.HTTP_400_BAD_REQUEST)

        groups = self.get_queryset().filter(site__site_url=site_url)
        serializer = self.get_serializer(groups, many=True)
        return Response({'groups': serializer.data})

    def retrieve(self, request, *args, **kwargs):
        group = self.get_object()
        return Response({'group': self.get_serializer(group).data})

    def create(self, request, *args, **kwargs):
        name = request.data.get('name')
        site_url = request.data.get('site_url')
        conditions = request.data.get('conditions')

        if not name or not site_url or conditions is None:
            return _error('Missing required fields: name, site_url, conditions', status.HTTP_400_BAD_REQUEST)

        try:
            validate_conditions(conditions)
        except ValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)

        site = _owned_site(request, site_url)
        if not site:
            return _error('Site not found', status.HTTP_404_NOT_FOUND)

        try:
            matched_urls = fetch_matching_urls(
                site_url, conditions, access_token=extract_google_access_token(request)
            )
        except GSCError as e:
            logger.error(f"Content group URL fetch failed for {site_url}: {e}")
            return _gsc_error(e)

        group = ContentGroup.objects.create(
            site=site,
            name=name,
            conditions=conditions,
            matched_urls=matched_urls,
            url_count=len(matched_urls),
        )
        logger.info(f"Created content group {group.id} '{name}' with {group.url_count} URLs")

        return Response({'group': self.get_serializer(group).data}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        group = self.get_object()

        name = request.data.get('name', group.name)
        conditions = request.data.get('conditions', group.conditions)

        try:
            validate_conditions(conditions)
        except ValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)

        try:
            matched_urls = fetch_matching_urls(
                group.site.site_url, conditions, access_token=extract_google_access_token(request)
            )
        except GSCError as e:
            logger.error(f"Content group URL fetch failed for group {group.id}: {e}")
            return _gsc_error(e)

        group.name = name
        group.conditions = conditions
        group.matched_urls = matched_urls
        group.url_count = len(matched_urls)
        group.save()

        return Response({'group': self.get_serializer(group).data})

    @action(detail=False, methods=['post'])
    def preview(self, request):
        """
        Preview how many URLs a condition set matches.

        POST /api/v1/seo/content-groups/preview/
        """
        site_url = request.data.get('site_url')
        conditions = request.data.get('conditions')

        if not site_url or conditions is None:
            return _error('Missing required parameters: site_url, conditions', status.HTTP_400_BAD_REQUEST)

        try:
            validate_conditions(conditions)
        except ValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)

        if not _owned_site(request, site_url):
            return _error('Site not found', status.HTTP_404_NOT_FOUND)

        try:
            preview = preview_content_group(
                site_url,
                conditions,
                request.data.get('start_date'),
                request.data.get('end_date'),
                access_token=extract_google_access_token(request),
            )
        except GSCError as e:
            return _gsc_error(e)

        return Response(preview)


class AnnotationViewSet(viewsets.ModelViewSet):
    """
    ViewSet for chart annotations.

    list: GET /api/v1/seo/annotations/?site_url=... - Annotations of a site
    create: POST /api/v1/seo/annotations/
    retrieve: GET /api/v1/seo/annotations/{id}/
    update: PUT/PATCH /api/v1/seo/annotations/{id}/
    destroy: DELETE /api/v1/seo/annotations/{id}/
    impact: GET /api/v1/seo/annotations/{id}/impact/ - Metrics before vs after
    """
    serializer_class = AnnotationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        """Return only annotations of sites owned by the current user."""
        return Annotation.objects.filter(site__user=self.request.user).select_related('site', 'created_by')

    def _content_group(self, site, data):
        if data.get('scope') != 'content_group':
            return None
        return ContentGroup.objects.filter(id=data.get('content_group_id'), site=site).first()

    def list(self, request, *args, **kwargs):
        site_url = request.query_params.get('site_url')
        if not site_url:
            return _error('Missing site_url parameter', status.HTTP_400_BAD_REQUEST)

        annotations = self.get_queryset().filter(site__site_url=site_url)
        return Response({'annotations': self.get_serializer(annotations, many=True).data})

    def retrieve(self, request, *args, **kwargs):
        return Response({'annotation': self.get_serializer(self.get_object()).data})

    def create(self, request, *args, **kwargs):
        data = request.data
        if not data.get('site_url'):
            return _error('Missing required fields: site_url', status.HTTP_400_BAD_REQUEST)

        try:
            validate_annotation(data)
        except ValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)

        site = _owned_site(request, data.get('site_url'))
        if not site:
            return _error('Site not found', status.HTTP_404_NOT_FOUND)

        group = self._content_group(site, data)
        if data.get('scope') == 'content_group' and group is None:
            return _error('Content group not found', status.HTTP_404_NOT_FOUND)

        annotation = Annotation.objects.create(
            site=site,
            date=parse_date(data['date']),
            title=data['title'],
            description=data.get('description') or '',
            scope=data['scope'],
            urls=data.get('urls') if data['scope'] == 'specific' else [],
            content_group=group,
            created_by=request.user,
        )
        logger.info(f"Created annotation {annotation.id} for {site.site_url} on {annotation.date}")

        return Response({'annotation': self.get_serializer(annotation).data}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        annotation = self.get_object()
        data = request.data

        try:
            validate_annotation(data, partial=True)
        except ValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)

        if 'scope' in data:
            group = self._content_group(annotation.site, data)
            if data['scope'] == 'content_group' and group is None:
                return _error('Content group not found', status.HTTP_404_NOT_FOUND)
            annotation.scope = data['scope']
            annotation.urls = data.get('urls') if data['scope'] == 'specific' else []
            annotation.content_group = group

        if 'date' in data:
            annotation.date = parse_date(data['date'])
        annotation.title = data.get('title') or annotation.title
        annotation.description = data.get('description', annotation.description) or ''
        annotation.save()

        return Response({'annotation': self.get_serializer(annotation).data})

    @action(detail=True, methods=['get'])
    def impact(self, request, pk=None):
        """
        Compare Search Console metrics before and after the annotation.

        GET /api/v1/seo/annotations/{id}/impact/
            ?start_date=&end_date=&compare_start_date=&compare_end_date=  (all optional)
        """
        annotation = self.get_object()
        params = request.query_params

        start_date = parse_date(params.get('start_date'))
        end_date = parse_date(params.get('end_date'))
        if bool(start_date) != bool(end_date) or (start_date and start_date > end_date):
            return _error('start_date and end_date must form a valid range', status.HTTP_400_BAD_REQUEST)

        try:
            impact = annotation_impact(
                annotation.site.site_url,
                annotation.date,
                urls=annotation.scoped_urls(),
                start_date=start_date,
                end_date=end_date,
                compare_start=params.get('compare_start_date'),
                compare_end=params.get('compare_end_date'),
                access_token=extract_google_access_token(request),
            )
        except GSCError as e:
            return _gsc_error(e)

        return Response({'annotation_id': annotation.id, **impact})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def query_counting(request):
    """
    POST /api/v1/seo/query-counting/

    Request body:
        {"site_url": "...", "start_date": "YYYY-MM-DD", "end_date": "YYYY-MM-DD"}
    """
    site_url = request.data.get('site_url')
    start_date = parse_date(request.data.get('start_date'))
    end_date = parse_date(request.data.get('end_date'))

    if not site_url or not start_date or not end_date:
        return _error('Missing or invalid parameters: site_url, start_date, end_date', status.HTTP_400_BAD_REQUEST)

    if not _owned_site(request, site_url):
        return _error('Site not found. Run a query counting sync first.', status.HTTP_404_NOT_FOUND)

    try:
        return Response(get_query_counting(site_url, start_date, end_date))
    except Exception as e:
        logger.exception(f"Query counting read failed for {site_url}")
        return _error(str(e) or 'Failed to fetch query counting data', status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def query_counting_sync(request):
    """
    POST /api/v1/seo/query-counting/sync/

    Request body:
        {"site_url": "...", "days": 90}
    """
    site_url = request.data.get('site_url')
    if not site_url:
        return _error('site_url required', status.HTTP_400_BAD_REQUEST)

    if not _owned_site(request, site_url):
        return _error('Site not found', status.HTTP_404_NOT_FOUND)

    try:
        days = int(request.data.get('days', 90))
    except (TypeError, ValueError):
        return _error('days must be an integer', status.HTTP_400_BAD_REQUEST)

    if days < 1:
        return _error('days must be at least 1', status.HTTP_400_BAD_REQUEST)

    try:
        result = sync_query_counting(site_url, days=days, access_token=extract_google_access_token(request))
    except GSCError as e:
        return _gsc_error(e)
    except QueryCountingError as e:
        return _error(str(e), status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.exception(f"Query counting sync failed for {site_url}")
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def query_counting_reaggregate(request):
    """
    POST /api/v1/seo/query-counting/reaggregate/

    Rebuilds aggregates from cached rows without calling Search Console.
    """
    site_url = request.data.get('site_url')
    if not site_url:
        return _error('site_url required', status.HTTP_400_BAD_REQUEST)

    if not _owned_site(request, site_url):
        return _error('Site not found', status.HTTP_404_NOT_FOUND)

    try:
        result = reaggregate_query_counting(site_url)
    except QueryCountingError as e:
        return _error(str(e), status.HTTP_404_NOT_FOUND)
    except Exception as e:
        logger.exception(f"Query counting re-aggregation failed for {site_url}")
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def organic_positions(request):
    """
    Daily position distribution, optionally limited to a content group.

    POST /api/v1/seo/positions/

    Request body:
        {
            "site_url": "...",
            "start_date": "YYYY-MM-DD",
            "end_date": "YYYY-MM-DD",
            "content_group_id": 3,      (optional)
            "force_refresh": false      (optional)
        }
    """
    site_url = request.data.get('site_url')
    start_date = parse_date(request.data.get('start_date'))
    end_date = parse_date(request.data.get('end_date'))

    if not site_url or not start_date or not end_date:
        return _error('Missing required parameters: site_url, start_date, end_date', status.HTTP_400_BAD_REQUEST)

    site = _owned_site(request, site_url)
    if not site:
        return _error('Site not found', status.HTTP_404_NOT_FOUND)

    group = None
    group_id = request.data.get('content_group_id')
    if group_id:
        group = ContentGroup.objects.filter(id=group_id, site=site).first()
        if not group:
            return _error('Content group not found', status.HTTP_404_NOT_FOUND)

    try:
        rows, from_cache = get_search_analytics(
            site_url,
            start_date,
            end_date,
            POSITION_DIMENSIONS,
            force_refresh=bool(request.data.get('force_refresh')),
            access_token=extract_google_access_token(request),
        )
    except GSCError as e:
        return _gsc_error(e)

    if group is not None:
        rows = filter_rows_by_group(rows, group)

    records = aggregate_positions(rows, has_page_dimension=True)

    return Response({
        'position_data': serialize_records(records),
        'from_cache': from_cache,
        'content_group_id': group.id if group else None,
    })


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def cannibalization(request):
    """
    Keyword cannibalization.

    GET  /api/v1/seo/cannibalization/?site_url=... - Latest completed run
    POST /api/v1/seo/cannibalization/ - Run a new analysis

    POST body:
        {"site_url": "...", "start_date": "YYYY-MM-DD", "end_date": "YYYY-MM-DD"}
    """
    if request.method == 'GET':
        site = _owned_site(request, request.query_params.get('site_url'))
        if not site:
            return _error('Site not found', status.HTTP_404_NOT_FOUND)

        latest = get_latest_analysis(site.id)
        if not latest:
            return Response({'issues': [], 'summary': None, 'analysis_run_id': None})

        results = get_analysis_results(latest.id)
        return Response({
            'analysis_run_id': latest.id,
            'issues': results['issues'],
            'summary': results['summary'],
        })

    site_url = request.data.get('site_url')
    start_date = parse_date(request.data.get('start_date'))
    end_date = parse_date(request.data.get('end_date'))

    if not site_url or not start_date or not end_date:
        return _error('Missing required parameters: site_url, start_date, end_date', status.HTTP_400_BAD_REQUEST)

    site = _owned_site(request, site_url)
    if not site:
        return _error('Site not found', status.HTTP_404_NOT_FOUND)

    try:
        analysis_run = run_analysis(
            site.id, start_date, end_date,
            access_token=extract_google_access_token(request),
        )
    except GSCError as e:
        return _gsc_error(e)
    except Exception as e:
        logger.exception(f"Cannibalization analysis failed for {site_url}")
        return _error(str(e) or 'Failed to analyze keyword cannibalization', status.HTTP_500_INTERNAL_SERVER_ERROR)

    results = get_analysis_results(analysis_run.id)
    return Response({
        'analysis_run_id': analysis_run.id,
        'issues': results['issues'],
        'summary': results['summary'],
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def gsc_cache_stats(request):
    """GET /api/v1/seo/gsc-cache/stats/?site_url=..."""
    site = _owned_site(request, request.query_params.get('site_url'))
    if not site:
        return _error('Site not found', status.HTTP_404_NOT_FOUND)

    return Response({'stats': get_cache_stats(site.site_url)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def gsc_cache_clear(request):
    """
    POST /api/v1/seo/gsc-cache/clear/

    Request body:
        {"site_url": "...", "start_date": "YYYY-MM-DD" (optional), "end_date": "YYYY-MM-DD" (optional)}
    """
    site = _owned_site(request, request.data.get('site_url'))
    if not site:
        return _error('Site not found', status.HTTP_404_NOT_FOUND)

    deleted = clear_gsc_cache(
        site.site_url,
        request.data.get('start_date'),
        request.data.get('end_date'),
    )
    return Response({'success': True, 'deleted': deleted})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def dashboard_sync(request):
    """
    Refresh the cached date+page time series.

    POST /api/v1/seo/dashboard/sync/

    Request body:
        {"site_url": "...", "days": 90}
    """
    site = _owned_site(request, request.data.get('site_url'))
    if not site:
        return _error('Site not found', status.HTTP_404_NOT_FOUND)

    try:
        days = int(request.data.get('days', 90))
    except (TypeError, ValueError):
        return _error('days must be an integer', status.HTTP_400_BAD_REQUEST)

    if days < 1:
        return _error('days must be at least 1', status.HTTP_400_BAD_REQUEST)

    try:
        result = sync_dashboard_data(site.site_url, days=days, access_token=extract_google_access_token(request))
    except GSCError as e:
        return _gsc_error(e)
    except Exception as e:
        logger.exception(f"Dashboard sync failed for {site.site_url}")
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def search_analytics(request):
    """
    Search Analytics rows, served from the GSC cache when fresh.

    POST /api/v1/seo/search-analytics/

    Request body:
        {
            "site_url": "...",
            "start_date": "YYYY-MM-DD",
            "end_date": "YYYY-MM-DD",
            "dimensions": ["date", "page"],
            "content_group_id": 3,      (optional, needs the page dimension)
            "force_refresh": false      (optional)
        }
    """
    site_url = request.data.get('site_url')
    start_date = parse_date(request.data.get('start_date'))
    end_date = parse_date(request.data.get('end_date'))
    dimensions = request.data.get('dimensions') or []

    if not site_url or not start_date or not end_date:
        return _error('Missing required parameters: site_url, start_date, end_date', status.HTTP_400_BAD_REQUEST)

    if not isinstance(dimensions, list) or any(d not in SEARCH_DIMENSIONS for d in dimensions):
        return _error(f"dimensions must be a list drawn from {', '.join(SEARCH_DIMENSIONS)}", status.HTTP_400_BAD_REQUEST)

    site = _owned_site(request, site_url)
    if not site:
        return _error('Site not found', status.HTTP_404_NOT_FOUND)

    group = None
    group_id = request.data.get('content_group_id')
    if group_id:
        if 'page' not in dimensions:
            return _error('content_group_id requires the page dimension', status.HTTP_400_BAD_REQUEST)
        group = ContentGroup.objects.filter(id=group_id, site=site).first()
        if not group:
            return _error('Content group not found', status.HTTP_404_NOT_FOUND)

    try:
        rows, from_cache = get_search_analytics(
            site_url,
            start_date,
            end_date,
            dimensions,
            force_refresh=bool(request.data.get('force_refresh')),
            group=group,
            access_token=extract_google_access_token(request),
        )
    except GSCError as e:
        return _gsc_error(e)

    return Response({
        'rows': [row.to_dict() for row in rows],
        'cached': from_cache,
    })
