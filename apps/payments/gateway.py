"""
Razorpay orders client.

Only order creation talks to the gateway; signatures are verified locally.
Any failure surfaces as GatewayUnavailable so the caller can offer the manual
payment link instead of retrying.
"""
import logging
from decimal import Decimal

import requests
from django.conf import settings

from core.exceptions import GatewayUnavailable

logger = logging.getLogger(__name__)


class RazorpayGateway:
    def __init__(self, key_id=None, key_secret=None, base_url=None, timeout=None):
        self.key_id = settings.RAZORPAY_KEY_ID if key_id is None else key_id
        self.key_secret = settings.RAZORPAY_KEY_SECRET if key_secret is None else key_secret
        self.base_url = (base_url or settings.RAZORPAY_BASE_URL).rstrip('/')
        self.timeout = settings.RAZORPAY_TIMEOUT if timeout is None else timeout

    @property
    def configured(self):
        return bool(self.key_id and self.key_secret)

    def create_order(self, amount, currency, job_id):
        """Create an order for ``amount`` (major units) and return its id."""
        if not self.configured:
            logger.error("Razorpay credentials are not configured")
            raise GatewayUnavailable("Payment gateway is not configured")

        payload = {
            'amount': int((Decimal(amount) * 100).to_integral_value()),
            'currency': currency,
            'receipt': f"job_{job_id}",
            'notes': {'job_id': str(job_id)},
        }
        try:
            logger.info(f"Creating Razorpay order for job {job_id}: {payload['amount']} {currency}")
            response = requests.post(
                f"{self.base_url}/orders",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            logger.error(f"Razorpay HTTP error for job {job_id}: {str(e)}, Response: {e.response.text if e.response is not None else ''}")
            raise GatewayUnavailable("Payment gateway rejected the order", job_id=job_id)
        except requests.exceptions.RequestException as e:
            logger.error(f"Razorpay request failed for job {job_id}: {str(e)}")
            raise GatewayUnavailable("Payment gateway is unreachable", job_id=job_id)
        except ValueError as e:
            logger.error(f"Razorpay returned invalid JSON for job {job_id}: {str(e)}")
            raise GatewayUnavailable("Payment gateway returned a malformed reply", job_id=job_id)

        order_id = data.get('id') if isinstance(data, dict) else None
        if not order_id:
            logger.error(f"Razorpay reply without order id for job {job_id}: {data}")
            raise GatewayUnavailable("Payment gateway returned a malformed reply", job_id=job_id)
        logger.info(f"Razorpay order {order_id} created for job {job_id}")
        return order_id
