import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('services', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='LeadAccess',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('lead_type', models.CharField(choices=[('basic', 'Basic Lead'), ('premium', 'Premium Lead'), ('specialized', 'Specialized Lead')], default='basic', max_length=20)),
                ('lead_price', models.PositiveIntegerField(help_text='Price paid in whole dollars')),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed'), ('refunded', 'Refunded')], db_index=True, default='pending', max_length=20)),
                ('payment_intent_id', models.CharField(blank=True, db_index=True, max_length=255)),
                ('has_access_to_contact_info', models.BooleanField(default=False)),
                ('chat_enabled', models.BooleanField(default=False)),
                ('purchased_at', models.DateTimeField(blank=True, null=True)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('contact_attempts', models.PositiveIntegerField(default=0)),
                ('notes', models.TextField(blank=True)),
                ('contractor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lead_accesses', to=settings.AUTH_USER_MODEL)),
                ('service_request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lead_accesses', to='services.servicerequest')),
            ],
            options={
                'verbose_name': 'Lead Access',
                'verbose_name_plural': 'Lead Access',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['contractor', 'service_request'], name='lead_contractor_request_idx'),
                    models.Index(fields=['service_request', 'payment_status'], name='lead_request_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('payment_status__in', ['pending', 'completed'])), fields=('contractor', 'service_request'), name='unique_open_lead_access'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LeadChatMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('sender_type', models.CharField(choices=[('customer', 'Customer'), ('contractor', 'Contractor'), ('system', 'System')], max_length=20)),
                ('message', models.TextField(validators=[django.core.validators.MaxLengthValidator(1000)])),
                ('message_type', models.CharField(choices=[('text', 'Text Message'), ('quote', 'Quote/Estimate'), ('schedule', 'Schedule Request'), ('contact', 'Contact Information'), ('system', 'System Message')], default='text', max_length=20)),
                ('is_read', models.BooleanField(default=False)),
                ('read_at', models.DateTimeField(blank=True, null=True)),
                ('quote_info', models.JSONField(blank=True, help_text='amount, valid_until, includes_labor, includes_materials', null=True)),
                ('lead_access', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='leads.leadaccess')),
                ('sender', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='lead_messages_sent', to=settings.AUTH_USER_MODEL)),
                ('service_request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lead_messages', to='services.servicerequest')),
            ],
            options={
                'verbose_name': 'Lead Chat Message',
                'verbose_name_plural': 'Lead Chat Messages',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['service_request', 'created_at'], name='leadchat_request_created_idx'),
                    models.Index(fields=['lead_access', 'created_at'], name='leadchat_access_created_idx'),
                ],
            },
        ),
    ]
