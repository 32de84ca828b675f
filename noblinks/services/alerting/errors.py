"""
Alerting error taxonomy.

Every error carries a stable ``code`` used as the ``error`` field of the
JSON response, the HTTP status it maps to, and whether the caller may
safely retry the same request.
"""

import uuid
from typing import Any, Dict, Optional


class AlertingError(Exception):
    """Base alerting error."""

    code = "alerting_error"
    status_code = 500
    retryable = False

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        # Diagnostic detail, only exposed in development
        self.detail = detail

    def to_dict(self, include_detail: bool = False) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "error": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }
        body.update(self.extra())
        if include_detail and self.detail:
            body["detail"] = self.detail
        return body

    def extra(self) -> Dict[str, Any]:
        return {}


# =============================================================================
# Provider errors
# =============================================================================

class ProviderError(AlertingError):
    """Failure talking to the generative-model provider."""

    status_code = 502


class ConfigurationError(ProviderError):
    """No provider credentials (or catalog) available on the server."""

    code = "configuration_error"
    status_code = 500


class AuthError(ProviderError):
    """Provider rejected our credentials."""

    code = "provider_auth_error"


class RateLimitError(ProviderError):
    """Provider throttled the request."""

    code = "rate_limited"
    status_code = 429
    retryable = True


class NetworkError(ProviderError):
    """Transport failure reaching the provider."""

    code = "network_error"
    status_code = 503
    retryable = True


class UnknownProviderError(ProviderError):
    """Any other provider failure, including unusable structured output."""

    code = "provider_error"


# =============================================================================
# Match outcomes
# =============================================================================

class MatchError(AlertingError):
    """
    The extractor produced no trustworthy match.

    Not a system failure: the analyze endpoint turns these into a
    ``matched: false`` payload with the capability list attached.
    """

    code = "no_match"
    status_code = 200


class NoMatchError(MatchError):
    code = "no_match"


class IncompleteMatchError(MatchError):
    code = "incomplete"


class InvalidCapabilityError(MatchError):
    code = "invalid_capability"

    def __init__(self, message: str, capability_key: str):
        super().__init__(message)
        self.capability_key = capability_key


# =============================================================================
# Request errors
# =============================================================================

class ValidationError(AlertingError):
    """Structural problem in a create or update request."""

    code = "validation_error"
    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def extra(self) -> Dict[str, Any]:
        return {"field": self.field}


class CapabilityNotFoundError(AlertingError):
    code = "capability_not_found"
    status_code = 404


class AlertNotFoundError(AlertingError):
    code = "alert_not_found"
    status_code = 404


class DuplicateConflictError(AlertingError):
    """An equivalent alert already exists; retry with force=true to create anyway."""

    code = "duplicate"
    status_code = 409

    def __init__(self, existing_alert_id: uuid.UUID, existing_name: str):
        super().__init__(
            f'An alert "{existing_name}" already exists for this capability and machine.'
        )
        self.existing_alert_id = existing_alert_id
        self.existing_name = existing_name

    def extra(self) -> Dict[str, Any]:
        return {"existingAlertId": str(self.existing_alert_id)}
