import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def _instance_fields():
    return [
        ('product_code', models.CharField(blank=True, max_length=80)),
        ('name', models.CharField(max_length=255)),
        ('original_product_uid', models.CharField(blank=True, db_index=True, max_length=160)),
        ('original_product_code', models.CharField(blank=True, max_length=80)),
        ('instance_number', models.PositiveIntegerField(blank=True, null=True)),
        ('total_instances', models.PositiveIntegerField(blank=True, null=True)),
        ('is_instance', models.BooleanField(db_index=True, default=False)),
        ('migrated', models.BooleanField(db_index=True, default=False)),
        ('migrated_at', models.DateTimeField(blank=True, null=True)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(blank=True, db_index=True, max_length=100)),
                ('product_code', models.CharField(blank=True, db_index=True, max_length=64)),
                ('price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('quantity', models.PositiveIntegerField(default=0)),
                ('image_url', models.URLField(blank=True, max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='StockItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *_instance_fields(),
                ('product_uid', models.CharField(max_length=160, unique=True)),
                ('stock', models.PositiveIntegerField(default=1)),
                ('listed', models.BooleanField(default=False)),
                ('deposit_receipt_approved', models.BooleanField(default=False)),
                ('deposit_receipt_url', models.CharField(blank=True, max_length=500)),
                ('pending_deposit_id', models.BigIntegerField(blank=True, null=True)),
                ('instance_ids', models.JSONField(blank=True, default=list)),
                ('original_quantity', models.PositiveIntegerField(blank=True, null=True)),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stock_items', to='market.product')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stock_items', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['seller', 'migrated'], name='mkt_stock_seller_migr_idx'),
                    models.Index(fields=['migrated', 'stock'], name='mkt_stock_migr_stock_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InventoryItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_uid', models.CharField(db_index=True, max_length=160)),
                *_instance_fields(),
                ('stock', models.PositiveIntegerField(default=1)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inventory_items', to='market.product')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_items', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['seller', 'product_uid'], name='mkt_inv_seller_uid_idx')],
            },
        ),
        migrations.CreateModel(
            name='Listing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_uid', models.CharField(db_index=True, max_length=160)),
                *_instance_fields(),
                ('price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('status', models.CharField(choices=[('active', 'Active'), ('sold', 'Sold'), ('removed', 'Removed')], db_index=True, default='active', max_length=16)),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='listings', to='market.product')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='listings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['seller', 'status'], name='mkt_listing_seller_st_idx')],
            },
        ),
    ]
