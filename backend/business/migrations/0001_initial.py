from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('market', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CommissionConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('commission_percent', models.DecimalField(decimal_places=2, default=Decimal('100.00'), max_digits=5)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='BulkDepositPayment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('deposit_ids', models.JSONField(default=list)),
                ('order_details', models.JSONField(blank=True, default=list)),
                ('total_deposit_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('total_profit_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('total_orders_count', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('receipt_submitted', 'Receipt submitted'), ('approved', 'Approved'), ('rejected', 'Rejected')], db_index=True, default='pending', max_length=24)),
                ('description', models.TextField(blank=True)),
                ('pay_with_wallet', models.BooleanField(default=False)),
                ('receipt_submitted_at', models.DateTimeField(blank=True, null=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejected_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bulk_payments_approved', to=settings.AUTH_USER_MODEL)),
                ('rejected_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bulk_payments_rejected', to=settings.AUTH_USER_MODEL)),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bulk_deposit_payments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['seller', 'status'], name='biz_bulk_seller_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='Receipt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('receipt_file', models.FileField(blank=True, null=True, upload_to='receipts/%Y/%m/')),
                ('description', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')], db_index=True, default='pending', max_length=16)),
                ('submitted_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('processed_at', models.DateTimeField(blank=True, null=True)),
                ('processed_by_name', models.CharField(blank=True, max_length=150)),
                ('notes', models.TextField(blank=True)),
                ('is_deposit_payment', models.BooleanField(default=False)),
                ('product_name', models.CharField(blank=True, max_length=255)),
                ('is_bulk_payment', models.BooleanField(db_index=True, default=False)),
                ('pending_deposit_ids', models.JSONField(blank=True, default=list)),
                ('bulk_order_count', models.PositiveIntegerField(default=0)),
                ('is_wallet_payment', models.BooleanField(db_index=True, default=False)),
                ('wallet_balance_used', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('is_auto_processed', models.BooleanField(default=False)),
                ('bulk_payment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='receipts', to='business.bulkdepositpayment')),
                ('processed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='receipts_processed', to=settings.AUTH_USER_MODEL)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='receipts', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-submitted_at', '-id'],
                'indexes': [
                    models.Index(fields=['user', 'status'], name='biz_rcpt_user_status_idx'),
                    models.Index(fields=['is_bulk_payment', 'submitted_at'], name='biz_rcpt_bulk_sub_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PendingDeposit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_uid', models.CharField(blank=True, db_index=True, max_length=160)),
                ('product_name', models.CharField(max_length=255)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('sold', 'Sold'), ('receipt_submitted', 'Receipt submitted'), ('deposit_paid', 'Deposit paid'), ('completed', 'Completed')], db_index=True, default='pending', max_length=24)),
                ('quantity_listed', models.PositiveIntegerField(default=1)),
                ('actual_quantity_sold', models.PositiveIntegerField(blank=True, null=True)),
                ('original_cost_per_unit', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('listing_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('profit_per_unit', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('total_deposit_required', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('pending_profit_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('sale_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('sale_date', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('deposit_paid_at', models.DateTimeField(blank=True, null=True)),
                ('profit_transferred_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('profit_transferred_at', models.DateTimeField(blank=True, null=True)),
                ('migrated_at', models.DateTimeField(blank=True, null=True)),
                ('migrated_reason', models.CharField(blank=True, max_length=255)),
                ('is_dummy_account', models.BooleanField(default=False)),
                ('exclude_from_revenue', models.BooleanField(db_index=True, default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('admin', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='admin_deposits', to=settings.AUTH_USER_MODEL)),
                ('bulk_payment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='deposits', to='business.bulkdepositpayment')),
                ('listing', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='deposits', to='market.listing')),
                ('receipt', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='linked_deposits', to='business.receipt')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='pending_deposits', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['seller', 'status'], name='biz_dep_seller_status_idx'),
                    models.Index(fields=['admin', 'status'], name='biz_dep_admin_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CommissionTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('original_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('commission_percent', models.DecimalField(decimal_places=2, max_digits=5)),
                ('commission_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=16)),
                ('is_dummy_account', models.BooleanField(default=False)),
                ('exclude_from_revenue', models.BooleanField(db_index=True, default=False)),
                ('migrated_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('admin', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='commission_earnings', to=settings.AUTH_USER_MODEL)),
                ('receipt', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='commissions', to='business.receipt')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='commission_sources', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['admin', 'status'], name='biz_comm_admin_status_idx'),
                    models.Index(fields=['seller', 'status'], name='biz_comm_seller_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SellerMigration',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('pending_deposits_moved', models.PositiveIntegerField(default=0)),
                ('commissions_moved', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('from_admin', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('from_referred_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('performed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='seller_migrations', to=settings.AUTH_USER_MODEL)),
                ('to_admin', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('to_referred_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
