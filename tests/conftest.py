from datetime import date
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from apps.jobs import services as jobs
from apps.users.models import Customer, Professional, User


@pytest.fixture(autouse=True)
def fixitnow_settings(settings, tmp_path):
    settings.RAZORPAY_KEY_ID = 'rzp_test_key'
    settings.RAZORPAY_KEY_SECRET = 'test_key_secret'
    settings.RAZORPAY_WEBHOOK_SECRET = 'test_webhook_secret'
    settings.MANUAL_PAYMENT_LINK = 'https://razorpay.me/@fixitnow4870/'
    settings.COMMISSION_RATE = Decimal('0.10')
    settings.INVOICE_TAX_RATE = Decimal('0.18')
    settings.INVOICE_NUMBER_PREFIX = 'INV'
    settings.TWILIO_ACCOUNT_SID = ''
    settings.TWILIO_AUTH_TOKEN = ''
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    settings.EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    return settings


@pytest.fixture
def customer(db):
    user = User.objects.create_user(
        username='asha', email='asha@example.com', password='pass12345', phone_number='+919800000001'
    )
    Customer.objects.create(user=user, location='Pune')
    return user


@pytest.fixture
def other_customer(db):
    user = User.objects.create_user(username='vikram', email='vikram@example.com', password='pass12345')
    Customer.objects.create(user=user)
    return user


@pytest.fixture
def professional(db):
    user = User.objects.create_user(
        username='ravi', email='ravi@example.com', password='pass12345', phone_number='+919800000002'
    )
    Professional.objects.create(user=user, skills='plumbing')
    return user


@pytest.fixture
def other_professional(db):
    user = User.objects.create_user(username='meera', email='meera@example.com', password='pass12345')
    Professional.objects.create(user=user, skills='electrical')
    return user


@pytest.fixture
def make_job(customer):
    def _make(payment_method='cash', **overrides):
        data = {
            'category': 'plumbing',
            'title': 'Fix kitchen sink',
            'scheduled_date': date(2026, 11, 2),
            'scheduled_time': '10:00',
            'budget_min': Decimal('50.00'),
            'budget_max': Decimal('200.00'),
            'payment_method': payment_method,
        }
        data.update(overrides)
        return jobs.create_job(customer, data)
    return _make


@pytest.fixture
def completed_job(make_job, professional):
    def _complete(payment_method='cash', final_price='150.00'):
        job = make_job(payment_method)
        jobs.accept_job(job.id, professional)
        jobs.start_job(job.id, professional)
        return jobs.complete_job(job.id, professional, final_price)
    return _complete


@pytest.fixture
def api_client_for():
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client
