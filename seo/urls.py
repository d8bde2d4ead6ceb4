"""
URL routing for SEO app.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'content-groups', views.ContentGroupViewSet, basename='content-group')
router.register(r'annotations', views.AnnotationViewSet, basename='annotation')

urlpatterns = [
    path('', include(router.urls)),
    path('query-counting/', views.query_counting, name='query-counting'),
    path('query-counting/sync/', views.query_counting_sync, name='query-counting-sync'),
    path('query-counting/reaggregate/', views.query_counting_reaggregate, name='query-counting-reaggregate'),
    path('positions/', views.organic_positions, name='organic-positions'),
    path('cannibalization/', views.cannibalization, name='cannibalization'),
    path('gsc-cache/stats/', views.gsc_cache_stats, name='gsc-cache-stats'),
    path('gsc-cache/clear/', views.gsc_cache_clear, name='gsc-cache-clear'),
    path('dashboard/sync/', views.dashboard_sync, name='dashboard-sync'),
    path('search-analytics/', views.search_analytics, name='search-analytics'),
]
