"""Errors raised by the quote engine and its store."""

from typing import Optional


class QuoteEngineError(Exception):
    """Base class for every quote engine failure."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFoundError(QuoteEngineError):
    """A job, quote or pricing configuration could not be loaded."""


class JobNotFound(NotFoundError):
    def __init__(self, job_id: str):
        super().__init__(f"Job with ID {job_id} not found")
        self.job_id = job_id


class PricingConfigNotFound(NotFoundError):
    def __init__(self, organization_id: str, pricing_config_id: Optional[str] = None):
        if pricing_config_id:
            message = f"Pricing configuration {pricing_config_id} not found for organization {organization_id}"
        else:
            message = f"No default pricing configuration found for organization {organization_id}"
        super().__init__(message)
        self.organization_id = organization_id
        self.pricing_config_id = pricing_config_id


class QuoteNotFound(NotFoundError):
    def __init__(self, quote_id: str):
        super().__init__(f"Quote with ID {quote_id} not found")
        self.quote_id = quote_id


class IncompleteQuote(QuoteEngineError):
    """A loaded quote lost its job or pricing configuration association."""

    def __init__(self, quote_id: str):
        super().__init__(f"Quote {quote_id} is missing its job or pricing configuration")
        self.quote_id = quote_id


class QuoteNumberConflict(QuoteEngineError):
    """Two quotes for the same organization were given the same number."""

    def __init__(self, organization_id: str, quote_number: str):
        super().__init__(f"Quote number {quote_number} already exists for organization {organization_id}")
        self.organization_id = organization_id
        self.quote_number = quote_number


class InvalidQuoteUpdate(QuoteEngineError):
    pass
