# Generated manually for the month-partitioned wallet ledger

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('orders', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='LedgerPartition',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=40, unique=True)),
                ('year', models.PositiveSmallIntegerField()),
                ('month', models.PositiveSmallIntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'ledger_partitions',
                'ordering': ['-year', '-month'],
            },
        ),
        migrations.AddConstraint(
            model_name='ledgerpartition',
            constraint=models.UniqueConstraint(fields=('year', 'month'), name='unique_ledger_partition_month'),
        ),
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('partition', models.CharField(editable=False, max_length=40)),
                ('entry_type', models.CharField(choices=[('credit', 'Credit'), ('debit', 'Debit'), ('refund', 'Refund')], max_length=10)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[MinValueValidator(Decimal('0.01'))])),
                ('balance_before', models.DecimalField(decimal_places=2, max_digits=10)),
                ('balance_after', models.DecimalField(decimal_places=2, max_digits=10)),
                ('source', models.CharField(choices=[('cash_deposit', 'Cash Deposit'), ('online_payment', 'Online Payment'), ('order_payment', 'Order Payment'), ('refund', 'Refund'), ('adjustment', 'Adjustment'), ('adhoc_payment', 'Ad-hoc Payment'), ('complementary', 'Complementary')], max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed'), ('cancelled', 'Cancelled')], default='completed', max_length=10)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField()),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ledger_entries', to='orders.order')),
                ('processed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='processed_ledger_entries', to=settings.AUTH_USER_MODEL)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'ledger_entries',
                'ordering': ['-created_at'],
                'verbose_name_plural': 'ledger entries',
                'indexes': [
                    models.Index(fields=['partition', 'user', 'created_at'], name='ledger_part_user_idx'),
                    models.Index(fields=['partition', 'created_at'], name='ledger_part_created_idx'),
                    models.Index(fields=['order'], name='ledger_order_idx'),
                    models.Index(fields=['source'], name='ledger_source_idx'),
                ],
            },
        ),
    ]
