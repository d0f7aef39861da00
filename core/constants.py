# core/constants.py
JOB_STATUS_PENDING = 'pending'
JOB_STATUS_ACCEPTED = 'accepted'
JOB_STATUS_IN_PROGRESS = 'in_progress'
JOB_STATUS_COMPLETED = 'completed'
JOB_STATUS_CANCELLED = 'cancelled'

JOB_STATUS_CHOICES = (
    (JOB_STATUS_PENDING, 'Pending'),          # Created by the customer, waiting for a professional
    (JOB_STATUS_ACCEPTED, 'Accepted'),        # A professional took the job
    (JOB_STATUS_IN_PROGRESS, 'In Progress'),  # Work has started
    (JOB_STATUS_COMPLETED, 'Completed'),      # Work done, final price fixed
    (JOB_STATUS_CANCELLED, 'Cancelled'),      # Job was cancelled
)

PAYMENT_METHOD_CASH = 'cash'
PAYMENT_METHOD_ONLINE = 'online'

PAYMENT_METHOD_CHOICES = (
    (PAYMENT_METHOD_CASH, 'Cash'),
    (PAYMENT_METHOD_ONLINE, 'Online'),
)

PAYMENT_STATUS_UNPAID = 'unpaid'
PAYMENT_STATUS_PENDING_VERIFICATION = 'pending_verification'
PAYMENT_STATUS_DISPUTED = 'disputed'
PAYMENT_STATUS_CONFIRMED_MANUALLY = 'confirmed_manually'
PAYMENT_STATUS_PAID = 'paid'

PAYMENT_STATUS_CHOICES = (
    (PAYMENT_STATUS_UNPAID, 'Unpaid'),
    (PAYMENT_STATUS_PENDING_VERIFICATION, 'Pending Verification'),
    (PAYMENT_STATUS_DISPUTED, 'Disputed'),
    (PAYMENT_STATUS_CONFIRMED_MANUALLY, 'Confirmed Manually (unverified)'),
    (PAYMENT_STATUS_PAID, 'Paid'),
)

ROLE_CUSTOMER = 'customer'
ROLE_PROFESSIONAL = 'professional'
ROLE_ADMIN = 'admin'

ROLE_CHOICES = (
    (ROLE_CUSTOMER, 'Customer'),
    (ROLE_PROFESSIONAL, 'Professional'),
    (ROLE_ADMIN, 'Admin'),
)

SERVICE_CATEGORY_CHOICES = (
    ('plumbing', 'Plumbing'),
    ('electrical', 'Electrical'),
    ('carpentry', 'Carpentry'),
    ('painting', 'Painting'),
    ('cleaning', 'Cleaning'),
    ('appliance_repair', 'Appliance Repair'),
    ('hvac', 'HVAC'),
    ('landscaping', 'Landscaping'),
    ('handyman', 'Handyman'),
    ('other', 'Other'),
)

CASH_RECEIVED_METHOD_CHOICES = (
    ('cash', 'Cash'),
    ('upi', 'UPI'),
    ('bank_transfer', 'Bank Transfer'),
    ('other', 'Other'),
)

DISPUTE_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('resolved', 'Resolved'),
)

INVOICE_STATUS_CHOICES = (
    ('draft', 'Draft'),
    ('paid', 'Paid'),
)

NOTIFICATION_TYPE_CHOICES = (
    ('job_created', 'Job Created'),
    ('job_accepted', 'Job Accepted'),
    ('job_started', 'Job Started'),
    ('job_completed', 'Job Completed'),
    ('job_cancelled', 'Job Cancelled'),
    ('payment_due', 'Payment Due'),
    ('payment_confirmation_required', 'Payment Confirmation Required'),
    ('payment_received', 'Payment Received'),
    ('payment_confirmed', 'Payment Confirmed'),
    ('payment_confirmed_manually', 'Payment Confirmed Manually'),
    ('payment_failed', 'Payment Failed'),
    ('payment_dispute', 'Payment Dispute'),
    ('dispute_resolved', 'Dispute Resolved'),
)
