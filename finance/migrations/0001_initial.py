import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('logistics', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CourierEarning',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Jumlah (IDR)')),
                ('type', models.CharField(choices=[('DELIVERY', 'Ongkos antar'), ('BONUS', 'Bonus')], default='DELIVERY', max_length=20, verbose_name='Tipe')),
                ('status', models.CharField(choices=[('PENDING', 'Menunggu'), ('PAID', 'Dibayar'), ('CANCELLED', 'Dibatalkan')], default='PENDING', max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('courier', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='earnings', to='core.courier', verbose_name='Kurir')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='courier_earnings', to='logistics.order', verbose_name='Pesanan')),
            ],
            options={
                'verbose_name': 'Pendapatan kurir',
                'verbose_name_plural': 'Pendapatan kurir',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['courier', 'status'], name='earning_courier_status_idx')],
                'constraints': [models.UniqueConstraint(fields=('order', 'type'), name='unique_earning_per_order_type')],
            },
        ),
    ]
