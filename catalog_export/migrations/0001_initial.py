from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ExportCheckpoint',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('site_id', models.CharField(max_length=100)),
                ('record_type', models.CharField(choices=[('product', 'Product'), ('faq', 'FAQ')], max_length=20)),
                ('last_export_at', models.DateTimeField()),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='ProductExportSnapshot',
            fields=[
                ('product_id', models.CharField(max_length=100, primary_key=True, serialize=False)),
                ('sites', models.JSONField(default=dict)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='PendingDeletion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('record_type', models.CharField(choices=[('product', 'Product'), ('faq', 'FAQ')], max_length=20)),
                ('record_id', models.CharField(max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['created_at', 'pk'],
            },
        ),
        migrations.CreateModel(
            name='ExportRun',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('record_type', models.CharField(choices=[('product', 'Product'), ('faq', 'FAQ')], max_length=20)),
                ('mode', models.CharField(max_length=10)),
                ('site_id', models.CharField(max_length=100)),
                ('state', models.CharField(choices=[('validating', 'Validating'), ('resetting', 'Resetting'), ('deleting', 'Deleting'), ('exporting', 'Exporting'), ('checkpointing', 'Checkpointing'), ('done', 'Done'), ('failed', 'Failed')], default='validating', max_length=20)),
                ('started_at', models.DateTimeField()),
                ('finished_at', models.DateTimeField(blank=True, null=True)),
                ('processed_count', models.PositiveIntegerField(default=0)),
                ('message', models.TextField(blank=True)),
            ],
            options={
                'ordering': ['-started_at'],
            },
        ),
        migrations.AddConstraint(
            model_name='exportcheckpoint',
            constraint=models.UniqueConstraint(fields=('site_id', 'record_type'), name='unique_checkpoint_per_site'),
        ),
        migrations.AddConstraint(
            model_name='pendingdeletion',
            constraint=models.UniqueConstraint(fields=('record_type', 'record_id'), name='unique_pending_deletion'),
        ),
    ]
