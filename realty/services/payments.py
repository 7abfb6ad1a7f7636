"""
Payment gateway client.

Live mode talks to the Stripe REST API over ``requests``. Mock mode issues
``pi_mock_<timestamp>`` intents that always verify, which keeps local
development and tests independent of the gateway.

``PAYMENTS_MODE``:
- ``mock``: always mock
- ``live``: always Stripe (requires ``STRIPE_SECRET_KEY``)
- ``auto``: Stripe when a key is configured, otherwise mock
"""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal

import requests
from django.conf import settings

from ..exceptions import PlatformError


logger = logging.getLogger(__name__)

STRIPE_API_BASE = 'https://api.stripe.com/v1'
MOCK_PREFIX = 'pi_mock_'


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str
    amount: Decimal
    status: str


def is_mock_mode():
    mode = getattr(settings, 'PAYMENTS_MODE', 'auto')
    if mode == 'mock':
        return True
    if mode == 'live':
        return False
    return not settings.STRIPE_SECRET_KEY


def _minor_units(amount):
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1')))


def _stripe_request(method, path, data=None):
    if not settings.STRIPE_SECRET_KEY:
        raise PlatformError('Payment gateway is not configured.', 503)

    try:
        response = requests.request(
            method,
            f'{STRIPE_API_BASE}{path}',
            auth=(settings.STRIPE_SECRET_KEY, ''),
            data=data,
            timeout=settings.OUTBOUND_HTTP_TIMEOUT,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Stripe request {method} {path} failed: {e}")
        raise PlatformError('Payment gateway request failed.', 502) from e

    return response.json()


def create_payment_intent(amount, metadata=None):
    """
    Create a payment intent for ``amount`` (major currency units).

    Returns:
        PaymentIntent
    """
    amount = Decimal(str(amount))
    if is_mock_mode():
        intent_id = f'{MOCK_PREFIX}{int(time.time() * 1000)}'
        logger.info(f"Created mock payment intent {intent_id} for {amount}")
        return PaymentIntent(
            id=intent_id,
            client_secret=f'{intent_id}_secret',
            amount=amount,
            status='requires_payment_method',
        )

    data = {
        'amount': _minor_units(amount),
        'currency': settings.PAYMENTS_CURRENCY,
    }
    for key, value in (metadata or {}).items():
        data[f'metadata[{key}]'] = str(value)

    payload = _stripe_request('post', '/payment_intents', data)
    return PaymentIntent(
        id=payload['id'],
        client_secret=payload.get('client_secret', ''),
        amount=amount,
        status=payload.get('status', ''),
    )


def confirm_payment(intent_id):
    """Return True when the gateway reports the intent as paid."""
    if not intent_id:
        return False

    if is_mock_mode():
        return intent_id.startswith(MOCK_PREFIX)

    payload = _stripe_request('get', f'/payment_intents/{intent_id}')
    return payload.get('status') == 'succeeded'


def refund_payment(intent_id, amount=None):
    """
    Refund a captured payment, fully or partially.

    Returns:
        str: Refund id from the gateway (or a mock id)
    """
    if is_mock_mode():
        refund_id = f're_mock_{int(time.time() * 1000)}'
        logger.info(f"Mock refund {refund_id} issued for {intent_id}")
        return refund_id

    data = {'payment_intent': intent_id}
    if amount is not None:
        data['amount'] = _minor_units(amount)
    payload = _stripe_request('post', '/refunds', data)
    logger.info(f"Refund {payload.get('id')} issued for {intent_id}")
    return payload.get('id')
