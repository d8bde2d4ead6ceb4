"""
Google Search Console API client.

Credentials come from an OAuth access token when one is given, otherwise
from the service account file configured in settings.GSC_SERVICE_ACCOUNT_FILE.
"""
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from django.conf import settings
from googleapiclient.errors import HttpError

from seo.rows import PerformanceRow

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/webmasters.readonly"]


class GSCError(Exception):
    """Raised when Search Console cannot be reached or rejects a request."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def _build_credentials(access_token: Optional[str] = None):
    if access_token:
        from google.oauth2.credentials import Credentials
        return Credentials(token=access_token)

    sa_file = getattr(settings, 'GSC_SERVICE_ACCOUNT_FILE', '')
    if not sa_file:
        raise GSCError("No Search Console credentials configured")

    from google.oauth2 import service_account
    try:
        return service_account.Credentials.from_service_account_file(sa_file, scopes=SCOPES)
    except (OSError, ValueError) as e:
        raise GSCError(f"Invalid service account file: {e}")


def _build_service(access_token: Optional[str] = None):
    from googleapiclient.discovery import build

    creds = _build_credentials(access_token)
    return build("webmasters", "v3", credentials=creds, cache_discovery=False)


def list_sites(access_token: Optional[str] = None) -> list:
    service = _build_service(access_token)
    try:
        result = service.sites().list().execute()
    except HttpError as e:
        raise GSCError(f"Search Console error: {e}", status=e.resp.status)
    return result.get("siteEntry", [])


def query_search_analytics(
    site_url: str,
    start_date,
    end_date,
    dimensions: List[str],
    row_limit: Optional[int] = None,
    access_token: Optional[str] = None,
    max_rows: Optional[int] = None,
) -> List[PerformanceRow]:
    """
    Fetch Search Analytics rows, following startRow pagination.

    Args:
        site_url: Search Console property
        start_date, end_date: date or 'YYYY-MM-DD', inclusive
        dimensions: e.g. ['date', 'query', 'page']
        row_limit: rows per request (API maximum 25000)
        max_rows: stop after this many rows in total

    Returns:
        List of PerformanceRow
    """
    row_limit = row_limit or settings.GSC_ROW_LIMIT
    service = _build_service(access_token)

    rows: List[PerformanceRow] = []
    start_row = 0

    while True:
        body = {
            "startDate": str(start_date),
            "endDate": str(end_date),
            "dimensions": dimensions,
            "rowLimit": row_limit,
            "startRow": start_row,
        }
        try:
            response = service.searchanalytics().query(siteUrl=site_url, body=body).execute()
        except HttpError as e:
            logger.error(f"Search Analytics query failed for {site_url}: {e}")
            raise GSCError(f"Search Console error: {e}", status=e.resp.status)

        page_rows = response.get("rows", [])
        rows.extend(PerformanceRow.from_api_row(r, dimensions) for r in page_rows)

        if len(page_rows) < row_limit:
            break
        if max_rows is not None and len(rows) >= max_rows:
            break
        start_row += row_limit

    if max_rows is not None:
        rows = rows[:max_rows]

    logger.info(
        f"Fetched {len(rows)} rows for {site_url} "
        f"({start_date} to {end_date}, dimensions={dimensions})"
    )
    return rows


def get_gsc_data(site, start_date, end_date, dimensions: List[str], access_token: Optional[str] = None) -> List[PerformanceRow]:
    """Fetch Search Analytics rows for a Site model instance."""
    return query_search_analytics(
        site.site_url,
        start_date,
        end_date,
        dimensions,
        access_token=access_token,
    )


def split_date_range(start_date: date, end_date: date, chunk_days: int = 7) -> List[Tuple[date, date]]:
    """
    Split an inclusive date range into consecutive chunks of chunk_days.

    Example:
        2024-01-01 .. 2024-01-10, chunk_days=7
        → [(2024-01-01, 2024-01-07), (2024-01-08, 2024-01-10)]
    """
    if chunk_days < 1:
        raise ValueError("chunk_days must be at least 1")

    chunks = []
    current = start_date
    while current <= end_date:
        chunk_end = min(current + timedelta(days=chunk_days - 1), end_date)
        chunks.append((current, chunk_end))
        current = chunk_end + timedelta(days=1)

    return chunks
