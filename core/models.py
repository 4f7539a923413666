"""
CORE App - Users, Merchants & Couriers for PASAR

Handles: Users (Buyers, Merchants, Couriers, Admins, Verifikators),
merchant pickup locations, courier profiles, in-app notifications.
"""

import uuid
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.core.validators import RegexValidator, MinValueValidator, MaxValueValidator


class UserRole(models.TextChoices):
    """User role enumeration."""
    ADMIN = 'ADMIN', 'Administrator'
    BUYER = 'BUYER', 'Pembeli'
    MERCHANT = 'MERCHANT', 'Merchant'
    COURIER = 'COURIER', 'Kurir'
    VERIFIKATOR = 'VERIFIKATOR', 'Verifikator'


class UserManager(BaseUserManager):
    """Custom user manager for phone-based authentication."""

    def create_user(self, phone_number, password=None, **extra_fields):
        if not phone_number:
            raise ValueError('Nomor telepon wajib diisi')

        user = self.model(phone_number=phone_number, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, phone_number, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(phone_number, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using phone number as primary identifier.

    One account per person; the role decides which portal it uses.
    Courier and merchant specifics live on their own profile models.
    """

    # Indonesian mobile numbers (+62 8xx...)
    phone_regex = RegexValidator(
        regex=r'^\+628[0-9]{7,11}$',
        message="Format: +628XXXXXXXXX"
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone_number = models.CharField(
        max_length=16,
        unique=True,
        validators=[phone_regex],
        verbose_name="Nomor telepon"
    )
    full_name = models.CharField(max_length=150, blank=True, verbose_name="Nama lengkap")
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.BUYER,
        verbose_name="Peran"
    )

    # Django Auth Fields
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(auto_now_add=True)

    objects = UserManager()

    USERNAME_FIELD = 'phone_number'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = "Pengguna"
        verbose_name_plural = "Pengguna"
        ordering = ['-date_joined']

    def __str__(self):
        return f"{self.full_name or self.phone_number} ({self.role})"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN or self.is_superuser

    @property
    def is_courier(self) -> bool:
        return self.role == UserRole.COURIER

    @property
    def is_merchant(self) -> bool:
        return self.role == UserRole.MERCHANT


class Merchant(models.Model):
    """
    Merchant (seller) profile.

    The registered coordinates are the pickup point used for dispatch
    when the caller does not supply one.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='merchants',
        verbose_name="Pemilik"
    )
    name = models.CharField(max_length=150, verbose_name="Nama toko")
    address = models.CharField(max_length=255, blank=True, verbose_name="Alamat")
    city = models.CharField(max_length=100, blank=True, verbose_name="Kota")

    latitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
        verbose_name="Latitude toko"
    )
    longitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
        verbose_name="Longitude toko"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Merchant"
        verbose_name_plural = "Merchant"
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class VehicleType(models.TextChoices):
    """Courier vehicle type."""
    MOTORCYCLE = 'MOTORCYCLE', 'Motor'
    BICYCLE = 'BICYCLE', 'Sepeda'
    CAR = 'CAR', 'Mobil'
    WALKING = 'WALKING', 'Jalan kaki'


class CourierStatus(models.TextChoices):
    """Operational status, set by admins."""
    ACTIVE = 'ACTIVE', 'Aktif'
    SUSPENDED = 'SUSPENDED', 'Ditangguhkan'
    INACTIVE = 'INACTIVE', 'Nonaktif'


class RegistrationStatus(models.TextChoices):
    """Registration review outcome, set by verifikators."""
    PENDING = 'PENDING', 'Menunggu verifikasi'
    APPROVED = 'APPROVED', 'Disetujui'
    REJECTED = 'REJECTED', 'Ditolak'


class Courier(models.Model):
    """
    Courier profile.

    Key Business Logic:
    - current_lat/current_lng hold the last persisted GPS checkpoint only;
      live broadcast pings never touch these columns
    - position and is_available are written by the courier's own device
    - the number of active orders is NOT stored here, it is always
      derived from open orders (see CourierLocationStore)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        User,
        on_delete=models.PROTECT,
        related_name='courier_profile',
        verbose_name="Akun"
    )
    name = models.CharField(max_length=150, verbose_name="Nama kurir")
    phone = models.CharField(max_length=16, blank=True, verbose_name="Telepon")
    vehicle_type = models.CharField(
        max_length=20,
        choices=VehicleType.choices,
        default=VehicleType.MOTORCYCLE,
        verbose_name="Kendaraan"
    )

    # Last checkpointed GPS position (nullable until the first fix)
    current_lat = models.FloatField(null=True, blank=True, verbose_name="Latitude")
    current_lng = models.FloatField(null=True, blank=True, verbose_name="Longitude")
    last_location_update = models.DateTimeField(null=True, blank=True)

    is_available = models.BooleanField(default=False, verbose_name="Siap menerima order")
    status = models.CharField(
        max_length=20,
        choices=CourierStatus.choices,
        default=CourierStatus.ACTIVE,
        verbose_name="Status"
    )
    registration_status = models.CharField(
        max_length=20,
        choices=RegistrationStatus.choices,
        default=RegistrationStatus.PENDING,
        verbose_name="Status registrasi"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Kurir"
        verbose_name_plural = "Kurir"
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_available', 'status', 'registration_status'], name='courier_dispatch_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.vehicle_type})"

    @property
    def has_position(self) -> bool:
        return self.current_lat is not None and self.current_lng is not None

    @property
    def is_dispatchable(self) -> bool:
        """Eligible for new orders, ignoring location and load."""
        return (
            self.is_available
            and self.status == CourierStatus.ACTIVE
            and self.registration_status == RegistrationStatus.APPROVED
        )


class NotificationType(models.TextChoices):
    """In-app notification categories."""
    ORDER = 'order', 'Pesanan'
    SYSTEM = 'system', 'Sistem'
    PAYMENT = 'payment', 'Pembayaran'


class Notification(models.Model):
    """In-app notification addressed to a single user."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='notifications',
        verbose_name="Penerima"
    )
    title = models.CharField(max_length=150, verbose_name="Judul")
    message = models.TextField(verbose_name="Pesan")
    type = models.CharField(
        max_length=20,
        choices=NotificationType.choices,
        default=NotificationType.SYSTEM,
        verbose_name="Tipe"
    )
    link = models.CharField(max_length=255, blank=True, verbose_name="Tautan")
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Notifikasi"
        verbose_name_plural = "Notifikasi"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notification_user_read_idx'),
        ]

    def __str__(self):
        return f"{self.user} | {self.title}"
