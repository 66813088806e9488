import decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ServiceRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('request_id', models.CharField(db_index=True, editable=False, help_text='Public request identifier (auto-generated)', max_length=20, unique=True)),
                ('title', models.CharField(blank=True, max_length=200)),
                ('service_types', models.JSONField(default=list, help_text='ServiceType codes requested')),
                ('description', models.TextField()),
                ('urgency', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('emergency', 'Emergency')], default='medium', max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('finding_contractors', 'Finding Contractors'), ('contractor_selected', 'Contractor Selected'), ('in_progress', 'In Progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=30)),
                ('formatted_address', models.CharField(blank=True, max_length=500)),
                ('latitude', models.FloatField(blank=True, null=True)),
                ('longitude', models.FloatField(blank=True, null=True)),
                ('city', models.CharField(blank=True, max_length=100)),
                ('state', models.CharField(blank=True, max_length=100)),
                ('zip_code', models.CharField(blank=True, max_length=20)),
                ('customer_name', models.CharField(blank=True, max_length=200)),
                ('customer_email', models.EmailField(blank=True, db_index=True, max_length=254)),
                ('customer_phone', models.CharField(blank=True, max_length=30)),
                ('preferred_contact', models.CharField(choices=[('phone', 'Phone'), ('email', 'Email'), ('sms', 'SMS')], default='phone', max_length=10)),
                ('preferred_date_time', models.DateTimeField(blank=True, null=True)),
                ('payment_status', models.CharField(choices=[('none', 'No Payment'), ('pending', 'Pending'), ('authorized', 'Authorized'), ('completed', 'Completed'), ('released', 'Released'), ('failed', 'Failed'), ('refunded', 'Refunded')], default='none', max_length=20)),
                ('payment_intent_id', models.CharField(blank=True, max_length=255)),
                ('notes', models.TextField(blank=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_reason', models.TextField(blank=True)),
                ('assigned_contractor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_requests', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='service_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Service Request',
                'verbose_name_plural': 'Service Requests',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', '-created_at'], name='request_status_created_idx'),
                    models.Index(fields=['customer', '-created_at'], name='request_customer_created_idx'),
                    models.Index(fields=['assigned_contractor', 'status'], name='request_contractor_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Bid',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('title', models.CharField(blank=True, max_length=200)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0.00'))])),
                ('description', models.TextField(validators=[django.core.validators.MaxLengthValidator(5000)])),
                ('estimated_duration', models.CharField(blank=True, max_length=100)),
                ('warranty', models.CharField(blank=True, max_length=200)),
                ('materials', models.JSONField(blank=True, default=list)),
                ('price_breakdown', models.JSONField(blank=True, default=dict, help_text='labor, materials, additional, notes')),
                ('availability', models.CharField(blank=True, max_length=200)),
                ('valid_until', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected'), ('withdrawn', 'Withdrawn'), ('expired', 'Expired')], db_index=True, default='pending', max_length=20)),
                ('submitted_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('rejected_at', models.DateTimeField(blank=True, null=True)),
                ('contractor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bids', to=settings.AUTH_USER_MODEL)),
                ('service_request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bids', to='services.servicerequest')),
            ],
            options={
                'verbose_name': 'Bid',
                'verbose_name_plural': 'Bids',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['service_request', 'status'], name='bid_request_status_idx'),
                    models.Index(fields=['contractor', '-created_at'], name='bid_contractor_created_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'expired'), _negated=True), fields=('service_request', 'contractor'), name='unique_active_bid_per_contractor'),
                ],
            },
        ),
    ]
