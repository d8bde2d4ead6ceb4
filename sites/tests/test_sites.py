"""
Site management API tests.
"""
from datetime import date
from unittest.mock import patch
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient
from integrations.gsc import GSCError
from seo.cannibalization.models import AnalysisRun
from seo.models import ContentGroup, GSCDataPoint
from sites.models import Site


class SiteAPITestCase(TestCase):

    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username='owner', password='pw')
        self.other = User.objects.create_user(username='other', password='pw')
        self.site = Site.objects.create(user=self.user, site_url='https://example.com/', display_name='Example')
        self.foreign_site = Site.objects.create(user=self.other, site_url='https://other.example/')

        self.client = APIClient()
        self.client.force_authenticate(user=self.user)


class TestSiteCrud(SiteAPITestCase):

    def test_list_only_own_sites(self):
        response = self.client.get('/api/v1/sites/')
        assert response.status_code == 200
        assert [s['site_url'] for s in response.data] == ['https://example.com/']

    def test_create(self):
        response = self.client.post('/api/v1/sites/', {'site_url': 'sc-domain:example.org'}, format='json')
        assert response.status_code == 201
        assert Site.objects.get(site_url='sc-domain:example.org').user == self.user

    def test_create_duplicate(self):
        response = self.client.post('/api/v1/sites/', {'site_url': 'https://other.example/'}, format='json')
        assert response.status_code == 400

    def test_foreign_site_hidden(self):
        assert self.client.get(f'/api/v1/sites/{self.foreign_site.id}/').status_code == 404

    def test_delete_cascades_cache(self):
        GSCDataPoint.objects.create(site=self.site, date=date(2024, 5, 1), query='q')
        response = self.client.delete(f'/api/v1/sites/{self.site.id}/')
        assert response.status_code == 204
        assert GSCDataPoint.objects.count() == 0

    def test_name_falls_back_to_url(self):
        assert self.site.name == 'Example'
        assert self.foreign_site.name == 'https://other.example/'


class TestOverview(SiteAPITestCase):

    def test_overview(self):
        GSCDataPoint.objects.create(site=self.site, date=date(2024, 5, 1), query='q')
        ContentGroup.objects.create(site=self.site, name='Blog')
        run = AnalysisRun.objects.create(site=self.site, status='running')
        run.high_count = 2
        run.total_issues_found = 2
        run.mark_completed()

        response = self.client.get(f'/api/v1/sites/{self.site.id}/overview/')

        assert response.status_code == 200
        assert response.data['site_name'] == 'Example'
        assert response.data['gsc_cache']['total_data_points'] == 1
        assert response.data['content_group_count'] == 1
        assert response.data['query_counting_days'] == 0
        assert response.data['cannibalization']['analysis_run_id'] == run.id
        assert response.data['cannibalization']['high'] == 2

    def test_overview_empty(self):
        response = self.client.get(f'/api/v1/sites/{self.site.id}/overview/')
        assert response.data['gsc_cache'] is None
        assert response.data['cannibalization'] is None


class TestAvailable(SiteAPITestCase):

    @patch('sites.sites.list_sites')
    def test_marks_registered_properties(self, mock_list):
        mock_list.return_value = [
            {'siteUrl': 'https://example.com/', 'permissionLevel': 'siteOwner'},
            {'siteUrl': 'sc-domain:new.example', 'permissionLevel': 'siteFullUser'},
        ]

        response = self.client.get('/api/v1/sites/available/', HTTP_X_GOOGLE_ACCESS_TOKEN='Bearer abc')

        assert response.status_code == 200
        assert [s['registered'] for s in response.data['sites']] == [True, False]
        mock_list.assert_called_once_with(access_token='abc')

    @patch('sites.sites.list_sites', side_effect=GSCError('No Search Console credentials configured'))
    def test_gsc_failure(self, mock_list):
        assert self.client.get('/api/v1/sites/available/').status_code == 502
