# Generated manually for ad-hoc payment requests

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('wallet', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PaymentRequest',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=100)),
                ('description', models.CharField(max_length=500)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[MinValueValidator(Decimal('1')), MaxValueValidator(Decimal('100000'))])),
                ('target_type', models.CharField(choices=[('all', 'All students'), ('selected', 'Selected students'), ('department', 'Department'), ('year', 'Year')], max_length=12)),
                ('target_department', models.CharField(blank=True, choices=[('CSE', 'CSE'), ('ECE', 'ECE'), ('EEE', 'EEE'), ('MECH', 'MECH'), ('CIVIL', 'CIVIL'), ('IT', 'IT'), ('AIDS', 'AIDS'), ('AIML', 'AIML'), ('OTHER', 'Other')], max_length=10)),
                ('target_year', models.PositiveSmallIntegerField(blank=True, null=True, validators=[MinValueValidator(1), MaxValueValidator(4)])),
                ('due_date', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('closed', 'Closed'), ('cancelled', 'Cancelled')], default='active', max_length=10)),
                ('is_visible_on_dashboard', models.BooleanField(default=True)),
                ('total_target_count', models.PositiveIntegerField(default=0)),
                ('paid_count', models.PositiveIntegerField(default=0)),
                ('total_collected', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('created_at', models.DateTimeField()),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='created_payment_requests', to=settings.AUTH_USER_MODEL)),
                ('target_students', models.ManyToManyField(blank=True, related_name='targeted_payment_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'payment_requests',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'is_visible_on_dashboard'], name='payreq_status_visible_idx'),
                    models.Index(fields=['created_by', 'created_at'], name='payreq_creator_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PaymentSubmission',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('failed', 'Failed'), ('refunded', 'Refunded')], default='pending', max_length=10)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField()),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('ledger_entry', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payment_submissions', to='wallet.ledgerentry')),
                ('payment_request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='submissions', to='payments.paymentrequest')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payment_submissions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'payment_submissions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['student', 'status'], name='paysub_student_status_idx'),
                    models.Index(fields=['payment_request', 'status'], name='paysub_request_status_idx'),
                ],
            },
        ),
        migrations.AddConstraint(
            model_name='paymentsubmission',
            constraint=models.UniqueConstraint(fields=('payment_request', 'student'), name='unique_submission_per_student'),
        ),
    ]
