"""Backend services for the trek booking platform."""

from .booking import BookingService, available_actions
from .catalog import CatalogService
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .email_service import EmailService, EmailServiceError, SMTPSettings
from .payment_service import PaymentService
from .promotions import OfferService, PromoCodeService
from .refund_policy_service import RefundCalculation, RefundPolicyEvaluator
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .stats import StatsService
from .stripe_service import StripeService, StripeServiceError, get_stripe_service

__all__ = [
    "DynamoDBService",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "BookingService",
    "available_actions",
    "CatalogService",
    "EmailService",
    "EmailServiceError",
    "SMTPSettings",
    "PaymentService",
    "OfferService",
    "PromoCodeService",
    "RefundCalculation",
    "RefundPolicyEvaluator",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "StatsService",
    "StripeService",
    "StripeServiceError",
    "get_stripe_service",
]
