from django.contrib import admin
from .models import Annotation, AnalysisRun, CannibalizationIssue, ContentGroup, QueryCountingAggregate


@admin.register(ContentGroup)
class ContentGroupAdmin(admin.ModelAdmin):
    list_display = ('name', 'site', 'url_count', 'updated_at')
    search_fields = ('name',)
    readonly_fields = ('matched_urls',)


@admin.register(QueryCountingAggregate)
class QueryCountingAggregateAdmin(admin.ModelAdmin):
    list_display = ('site', 'date', 'position1to3', 'position4to10', 'position11to20', 'position21plus')
    list_filter = ('site',)


@admin.register(AnalysisRun)
class AnalysisRunAdmin(admin.ModelAdmin):
    list_display = ('site', 'status', 'started_at', 'total_issues_found', 'high_count')
    list_filter = ('status',)


@admin.register(CannibalizationIssue)
class CannibalizationIssueAdmin(admin.ModelAdmin):
    list_display = ('query', 'impact', 'url_count', 'total_clicks', 'analysis_run')
    list_filter = ('impact',)
    readonly_fields = ('urls_json',)


@admin.register(Annotation)
class AnnotationAdmin(admin.ModelAdmin):
    list_display = ('date', 'title', 'site', 'scope', 'created_by')
    list_filter = ('scope',)
    search_fields = ('title',)
