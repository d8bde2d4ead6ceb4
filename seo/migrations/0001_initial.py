from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('sites', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='GSCDataPoint',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('query', models.CharField(blank=True, default='', max_length=1000)),
                ('page', models.CharField(blank=True, default='', max_length=2000)),
                ('country', models.CharField(blank=True, default='', max_length=10)),
                ('device', models.CharField(blank=True, default='', max_length=20)),
                ('clicks', models.IntegerField(default=0)),
                ('impressions', models.IntegerField(default=0)),
                ('ctr', models.FloatField(default=0)),
                ('position', models.FloatField(default=0)),
                ('fetched_at', models.DateTimeField(auto_now=True)),
                ('site', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='gsc_data', to='sites.site')),
            ],
            options={
                'db_table': 'gsc_data_points',
                'ordering': ['date'],
                'indexes': [
                    models.Index(fields=['site', 'date'], name='gsc_data_po_site_id_4b1a0e_idx'),
                    models.Index(fields=['site', 'fetched_at'], name='gsc_data_po_site_id_8c2d7f_idx'),
                ],
            },
        ),
        migrations.AddConstraint(
            model_name='gscdatapoint',
            constraint=models.UniqueConstraint(fields=('site', 'date', 'query', 'page', 'country', 'device'), name='unique_gsc_data_point'),
        ),
        migrations.CreateModel(
            name='QueryCountingAggregate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('position1to3', models.IntegerField(default=0)),
                ('position4to10', models.IntegerField(default=0)),
                ('position11to20', models.IntegerField(default=0)),
                ('position21plus', models.IntegerField(default=0)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('site', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='query_counting_aggregates', to='sites.site')),
            ],
            options={
                'db_table': 'query_counting_aggregates',
                'ordering': ['date'],
                'unique_together': {('site', 'date')},
            },
        ),
        migrations.CreateModel(
            name='ContentGroup',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('conditions', models.JSONField(default=list, help_text='List of {type, operator, value} conditions')),
                ('matched_urls', models.JSONField(default=list, help_text='URLs that matched the conditions at last save')),
                ('url_count', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('site', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='content_groups', to='sites.site')),
            ],
            options={
                'db_table': 'content_groups',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='AnalysisRun',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('running', 'Running'), ('completed', 'Completed'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('started_at', models.DateTimeField(auto_now_add=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('date_start', models.DateField(blank=True, null=True)),
                ('date_end', models.DateField(blank=True, null=True)),
                ('total_queries_analyzed', models.IntegerField(default=0)),
                ('total_issues_found', models.IntegerField(default=0)),
                ('high_count', models.IntegerField(default=0)),
                ('medium_count', models.IntegerField(default=0)),
                ('low_count', models.IntegerField(default=0)),
                ('error_message', models.TextField(blank=True)),
                ('site', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='cannibalization_runs', to='sites.site')),
            ],
            options={
                'db_table': 'cannibalization_analysis_runs',
                'ordering': ['-started_at'],
                'indexes': [
                    models.Index(fields=['site', '-started_at'], name='cannibaliza_site_id_2e9f41_idx'),
                    models.Index(fields=['status'], name='cannibaliza_status_7a3c55_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CannibalizationIssue',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('query', models.CharField(max_length=1000)),
                ('impact', models.CharField(choices=[('high', 'High'), ('medium', 'Medium'), ('low', 'Low')], max_length=20)),
                ('url_count', models.IntegerField(default=0)),
                ('total_clicks', models.IntegerField(default=0)),
                ('total_impressions', models.IntegerField(default=0)),
                ('avg_position', models.FloatField(default=0, help_text='Impression-weighted average position')),
                ('position_volatility', models.FloatField(default=0, help_text='Population standard deviation of daily positions')),
                ('urls_json', models.JSONField(default=list, help_text='Competing URLs with clicks, position history and click share')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('analysis_run', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='issues', to='seo.analysisrun')),
            ],
            options={
                'db_table': 'cannibalization_issues',
                'ordering': ['id'],
                'indexes': [
                    models.Index(fields=['analysis_run', 'impact'], name='cannibaliza_analysi_5d0b8e_idx'),
                ],
            },
        ),
    ]
