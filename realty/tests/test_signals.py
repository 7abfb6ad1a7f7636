"""
Tests for the signals that announce new listings and dealer applications.
"""

from decimal import Decimal

from django.core import mail
from django.test import TestCase

from realty.models import Dealer, Notification, Property, User


class PropertySignalTests(TestCase):
    """A PROPERTY_ADDED notification is stored for new listings only."""

    def setUp(self):
        self.owner = User.objects.create_user(
            email='owner@example.com',
            password='Secure@Pass123',
            name='Meera Owner'
        )

    def create_property(self, **overrides):
        fields = {
            'title': 'Lake View Bungalow',
            'description': 'Four bedroom bungalow facing the lake.',
            'property_type': 'Villa',
            'location': 'Pune',
            'price': Decimal('8500000.00'),
            'owner': self.owner,
        }
        fields.update(overrides)
        return Property.objects.create(**fields)

    def test_new_property_is_announced(self):
        prop = self.create_property()

        notification = Notification.objects.get(notification_type=Notification.PROPERTY_ADDED)
        self.assertEqual(notification.data['property_id'], prop.id)
        self.assertEqual(notification.data['owner_email'], 'owner@example.com')
        self.assertEqual(notification.data['price'], '8500000.00')
        self.assertIn('Lake View Bungalow', notification.message)
        self.assertIn('Meera Owner', notification.message)

    def test_updates_are_not_announced(self):
        prop = self.create_property()
        prop.price = Decimal('8000000.00')
        prop.save()

        self.assertEqual(
            Notification.objects.filter(notification_type=Notification.PROPERTY_ADDED).count(),
            1
        )


class DealerSignalTests(TestCase):
    """Pending dealer applications notify admins in-app and by email."""

    def setUp(self):
        self.referrer_user = User.objects.create_user(
            email='referrer@example.com',
            password='Secure@Pass123',
            name='Arjun Referrer',
            role=User.ROLE_DEALER
        )
        self.referrer = Dealer.objects.create(user=self.referrer_user, status=Dealer.STATUS_APPROVED)
        self.applicant = User.objects.create_user(
            email='applicant@example.com',
            password='Secure@Pass123',
            name='Nisha Applicant'
        )
        # Creating an approved dealer sends nothing
        Notification.objects.all().delete()
        mail.outbox = []

    def test_pending_application_is_announced(self):
        dealer = Dealer.objects.create(user=self.applicant, parent=self.referrer)

        notification = Notification.objects.get(notification_type=Notification.DEALER_REQUEST)
        self.assertEqual(notification.data['dealer_id'], dealer.id)
        self.assertEqual(notification.data['parent_id'], self.referrer.id)
        self.assertEqual(notification.data['referral_code'], dealer.referral_code)

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'New dealer application')
        self.assertIn(self.referrer.referral_code, mail.outbox[0].body)

    def test_approved_dealer_is_not_announced(self):
        Dealer.objects.create(user=self.applicant, status=Dealer.STATUS_APPROVED)

        self.assertFalse(Notification.objects.filter(notification_type=Notification.DEALER_REQUEST).exists())
        self.assertEqual(mail.outbox, [])

    def test_status_change_is_not_announced_again(self):
        dealer = Dealer.objects.create(user=self.applicant)
        dealer.status = Dealer.STATUS_APPROVED
        dealer.save()

        self.assertEqual(
            Notification.objects.filter(notification_type=Notification.DEALER_REQUEST).count(),
            1
        )
