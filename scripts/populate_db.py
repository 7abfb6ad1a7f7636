import os
import sys
import django
import random
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone
from faker import Faker

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up Django environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'property_platform.settings')
django.setup()

from realty.models import Booking, Dealer, Inquiry, Property, User
from realty.services import bookings as booking_service
from realty.services import commissions

fake = Faker('en_IN')

PASSWORD = 'Password@123'
PROPERTY_TYPES = ['Apartment', 'Villa', 'Plot', 'Independent House', 'Commercial']


def indian_mobile():
    return f"{random.choice('6789')}{fake.numerify('#########')}"


def create_users(num_users=20):
    print(f"Creating {num_users} users...")
    users = []

    for _ in range(num_users):
        user = User.objects.create_user(
            email=fake.unique.email(),
            password=PASSWORD,
            name=fake.name(),
            mobile=indian_mobile(),
            aadhaar=fake.numerify('#' * 12),
        )
        users.append(user)

    print(f"Created {len(users)} users.")
    return users


def create_dealers(users, num_dealers=8):
    """Build a small referral tree: each dealer is referred by an earlier one, or nobody."""
    print(f"Creating {num_dealers} dealers...")
    dealers = []

    for user in random.sample(users, num_dealers):
        parent = random.choice(dealers) if dealers and random.random() < 0.7 else None
        dealer = commissions.register_dealer(user, parent.referral_code if parent else None)
        # Approve most applications so they can refer others
        if random.random() < 0.8:
            dealer = commissions.approve_dealer(dealer.id)
        dealers.append(dealer)

    print(f"Created {len(dealers)} dealers.")
    return [d for d in dealers if d.status == Dealer.STATUS_APPROVED]


def create_properties(users, dealers, num_properties=30):
    print(f"Creating {num_properties} properties...")
    properties = []

    for _ in range(num_properties):
        prop = Property.objects.create(
            title=f"{random.choice(['Spacious', 'Modern', 'Cozy', 'Premium'])} {random.choice(PROPERTY_TYPES)}",
            description=fake.paragraph(nb_sentences=4)[:1000],
            property_type=random.choice(PROPERTY_TYPES),
            location=fake.city(),
            address=fake.address()[:500],
            latitude=float(fake.latitude()),
            longitude=float(fake.longitude()),
            price=Decimal(random.randrange(500000, 20000000, 10000)),
            owner=random.choice(users),
            dealer=random.choice(dealers) if dealers and random.random() < 0.6 else None,
        )
        properties.append(prop)

    print(f"Created {len(properties)} properties.")
    return properties


def create_bookings(users, properties):
    print("Creating bookings...")
    created = []

    for prop in random.sample(properties, min(len(properties), 15)):
        start = timezone.now() + timedelta(days=random.randint(-10, 20))
        booking = booking_service.create_manual_booking(
            random.choice(users),
            prop.id,
            payment_ref=f"UPI{fake.numerify('##########')}",
            start_date=start,
            end_date=start + timedelta(days=3),
        )
        outcome = random.choice(['approve', 'reject', 'pending'])
        if outcome == 'approve':
            booking = booking_service.approve_booking(booking.id)
        elif outcome == 'reject':
            booking = booking_service.reject_booking(booking.id)
        created.append(booking)

    print(f"Created {len(created)} bookings.")
    return created


def create_sales(properties):
    print("Recording sales and commissions...")
    sold = 0

    for prop in properties:
        if prop.dealer_id and prop.status == Property.STATUS_FREE and random.random() < 0.3:
            commissions.calculate_commissions(prop.id, prop.price)
            prop.status = Property.STATUS_SOLD
            prop.save(update_fields=['status', 'updated_at'])
            sold += 1

    print(f"Recorded {sold} sales.")


def create_inquiries(num_inquiries=10):
    print(f"Creating {num_inquiries} inquiries...")
    for _ in range(num_inquiries):
        Inquiry.objects.create(
            message=fake.paragraph(nb_sentences=2),
            mobile_number=indian_mobile(),
            status=random.choice([s for s, _ in Inquiry.STATUS_CHOICES]),
        )


def main():
    print("Starting database population...")

    users = create_users(num_users=25)
    dealers = create_dealers(users)
    properties = create_properties(users, dealers)
    bookings = create_bookings(users, properties)
    for prop in properties:
        prop.refresh_from_db()
    create_sales(properties)
    create_inquiries()

    print(f"Database population completed successfully! ({Booking.objects.count()} bookings total, {len(bookings)} new)")


if __name__ == '__main__':
    main()
