import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import core.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('phone_number', models.CharField(max_length=16, unique=True, validators=[django.core.validators.RegexValidator(message='Format: +628XXXXXXXXX', regex='^\\+628[0-9]{7,11}$')], verbose_name='Nomor telepon')),
                ('full_name', models.CharField(blank=True, max_length=150, verbose_name='Nama lengkap')),
                ('role', models.CharField(choices=[('ADMIN', 'Administrator'), ('BUYER', 'Pembeli'), ('MERCHANT', 'Merchant'), ('COURIER', 'Kurir'), ('VERIFIKATOR', 'Verifikator')], default='BUYER', max_length=20, verbose_name='Peran')),
                ('is_active', models.BooleanField(default=True)),
                ('is_staff', models.BooleanField(default=False)),
                ('date_joined', models.DateTimeField(auto_now_add=True)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'Pengguna',
                'verbose_name_plural': 'Pengguna',
                'ordering': ['-date_joined'],
            },
            managers=[
                ('objects', core.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Merchant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=150, verbose_name='Nama toko')),
                ('address', models.CharField(blank=True, max_length=255, verbose_name='Alamat')),
                ('city', models.CharField(blank=True, max_length=100, verbose_name='Kota')),
                ('latitude', models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(-90), django.core.validators.MaxValueValidator(90)], verbose_name='Latitude toko')),
                ('longitude', models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(-180), django.core.validators.MaxValueValidator(180)], verbose_name='Longitude toko')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='merchants', to=settings.AUTH_USER_MODEL, verbose_name='Pemilik')),
            ],
            options={
                'verbose_name': 'Merchant',
                'verbose_name_plural': 'Merchant',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Courier',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=150, verbose_name='Nama kurir')),
                ('phone', models.CharField(blank=True, max_length=16, verbose_name='Telepon')),
                ('vehicle_type', models.CharField(choices=[('MOTORCYCLE', 'Motor'), ('BICYCLE', 'Sepeda'), ('CAR', 'Mobil'), ('WALKING', 'Jalan kaki')], default='MOTORCYCLE', max_length=20, verbose_name='Kendaraan')),
                ('current_lat', models.FloatField(blank=True, null=True, verbose_name='Latitude')),
                ('current_lng', models.FloatField(blank=True, null=True, verbose_name='Longitude')),
                ('last_location_update', models.DateTimeField(blank=True, null=True)),
                ('is_available', models.BooleanField(default=False, verbose_name='Siap menerima order')),
                ('status', models.CharField(choices=[('ACTIVE', 'Aktif'), ('SUSPENDED', 'Ditangguhkan'), ('INACTIVE', 'Nonaktif')], default='ACTIVE', max_length=20, verbose_name='Status')),
                ('registration_status', models.CharField(choices=[('PENDING', 'Menunggu verifikasi'), ('APPROVED', 'Disetujui'), ('REJECTED', 'Ditolak')], default='PENDING', max_length=20, verbose_name='Status registrasi')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='courier_profile', to=settings.AUTH_USER_MODEL, verbose_name='Akun')),
            ],
            options={
                'verbose_name': 'Kurir',
                'verbose_name_plural': 'Kurir',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['is_available', 'status', 'registration_status'], name='courier_dispatch_idx')],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=150, verbose_name='Judul')),
                ('message', models.TextField(verbose_name='Pesan')),
                ('type', models.CharField(choices=[('order', 'Pesanan'), ('system', 'Sistem'), ('payment', 'Pembayaran')], default='system', max_length=20, verbose_name='Tipe')),
                ('link', models.CharField(blank=True, max_length=255, verbose_name='Tautan')),
                ('is_read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL, verbose_name='Penerima')),
            ],
            options={
                'verbose_name': 'Notifikasi',
                'verbose_name_plural': 'Notifikasi',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['user', 'is_read'], name='notification_user_read_idx')],
            },
        ),
    ]
