"""
Domain errors raised by the service layer and translated to HTTP responses by the routes
"""


class TargetNotFoundError(LookupError):
    """The document being voted on, rated or commented on does not exist"""

    def __init__(self, path: str):
        super().__init__(f"{path} not found")
        self.path = path


class BillingError(Exception):
    """Stripe or entitlement update failed"""

    status_code = 500


class BillingConfigurationError(BillingError):
    status_code = 500


class PaymentNotCompleteError(BillingError):
    """Checkout session is unpaid or not a subscription"""

    status_code = 400


class SessionOwnerMismatchError(BillingError):
    """Checkout session belongs to a different account than the caller"""

    status_code = 403


class MailDeliveryError(Exception):
    """SMTP relay refused or failed to deliver a message"""
