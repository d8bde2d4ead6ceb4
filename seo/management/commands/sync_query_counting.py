"""
Sync query counting aggregates from Search Console.

Meant to be run by an external scheduler, e.g. three times a day:
    python manage.py sync_query_counting
    python manage.py sync_query_counting --site sc-domain:example.com --days 30
    python manage.py sync_query_counting --dashboard --cleanup
"""
import logging

from django.core.management.base import BaseCommand, CommandError

from integrations.gsc import GSCError
from seo.dashboard import sync_dashboard_data
from seo.gsc_cache import cleanup_old_data
from seo.query_counting import MAX_DAYS, sync_query_counting
from sites.models import Site

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Fetch recent Search Console rows and rebuild query counting aggregates"

    def add_arguments(self, parser):
        parser.add_argument('--site', help="Only sync this Search Console property")
        parser.add_argument('--days', type=int, default=MAX_DAYS, help="Days of history to sync")
        parser.add_argument(
            '--dashboard',
            action='store_true',
            help="Also refresh the cached date+page dashboard time series",
        )
        parser.add_argument(
            '--cleanup',
            action='store_true',
            help="Also delete cached rows older than Search Console retention",
        )

    def handle(self, *args, **options):
        if options['days'] < 1:
            raise CommandError("--days must be at least 1")

        sites = Site.objects.all()
        if options['site']:
            sites = sites.filter(site_url=options['site'])
            if not sites.exists():
                raise CommandError(f"Site not found: {options['site']}")

        failures = 0
        for site in sites:
            try:
                result = sync_query_counting(site.site_url, days=options['days'])
                if options['dashboard']:
                    dashboard = sync_dashboard_data(site.site_url, days=options['days'])
            except GSCError as e:
                failures += 1
                logger.error(f"Sync failed for {site.site_url}: {e}")
                self.stderr.write(f"{site.site_url}: {e}")
                continue

            self.stdout.write(
                f"{site.site_url}: {result['rows']} rows, {result['aggregated_days']} days aggregated"
            )
            if options['dashboard']:
                self.stdout.write(
                    f"{site.site_url}: {dashboard['stats']['time_series_rows']} dashboard rows"
                )

        if options['cleanup']:
            deleted = cleanup_old_data()
            self.stdout.write(f"Removed {deleted} expired cache rows")

        if failures:
            raise CommandError(f"{failures} site(s) failed to sync")
