"""
Shared fixtures for logistics tests.
"""

from decimal import Decimal
from itertools import count

from core.models import (
    User, UserRole, Merchant, Courier,
    CourierStatus, RegistrationStatus, VehicleType,
)
from logistics.models import Order, OrderStatus

# Bandung city centre
PICKUP_LAT = -6.9175
PICKUP_LNG = 107.6191

# One degree of latitude in km on a 6371 km sphere
KM_PER_DEGREE_LAT = 111.19492664455873

_phone_seq = count(1000000)


def next_phone() -> str:
    return f'+62812{next(_phone_seq):07d}'


def north_of_pickup(km: float) -> float:
    """Latitude `km` north of the pickup point, same longitude."""
    return PICKUP_LAT + km / KM_PER_DEGREE_LAT


def make_user(role=UserRole.BUYER, **extra) -> User:
    return User.objects.create_user(
        phone_number=next_phone(),
        full_name=extra.pop('full_name', f'Test {role}'),
        role=role,
        **extra
    )


def make_merchant(lat=PICKUP_LAT, lng=PICKUP_LNG, name='Toko Test') -> Merchant:
    return Merchant.objects.create(
        user=make_user(UserRole.MERCHANT),
        name=name,
        city='Bandung',
        latitude=lat,
        longitude=lng,
    )


def make_courier(
    name='Kurir',
    km_from_pickup=0.0,
    available=True,
    status=CourierStatus.ACTIVE,
    registration_status=RegistrationStatus.APPROVED,
    positioned=True,
) -> Courier:
    user = make_user(UserRole.COURIER, full_name=name)
    return Courier.objects.create(
        user=user,
        name=name,
        phone=user.phone_number,
        vehicle_type=VehicleType.MOTORCYCLE,
        current_lat=north_of_pickup(km_from_pickup) if positioned else None,
        current_lng=PICKUP_LNG if positioned else None,
        is_available=available,
        status=status,
        registration_status=registration_status,
    )


def make_order(merchant, shipping_cost=Decimal('15000'), **extra) -> Order:
    return Order.objects.create(
        merchant=merchant,
        delivery_address='Jl. Braga No. 1',
        subtotal=Decimal('50000'),
        shipping_cost=shipping_cost,
        total=Decimal('50000') + shipping_cost,
        **extra
    )


def give_active_orders(courier, merchant, n: int, status=OrderStatus.ASSIGNED):
    """Open orders already held by the courier (load for scoring and cap)."""
    return [
        make_order(merchant, courier=courier, status=status)
        for _ in range(n)
    ]
