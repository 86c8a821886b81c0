"""
Control panel exception types

Defines the exception hierarchy shared by the adapters, typed API clients
and rule editors, plus helpers that turn exceptions into response payloads.
"""

import re
from datetime import datetime
from typing import Dict, Any, Optional, List


class ControlPanelException(Exception):
    """Base exception of the control panel service"""

    def __init__(self, message: str, error_code: str = "CONTROL_PANEL_ERROR",
                 component: str = "unknown", details: Optional[Dict[str, Any]] = None):
        """Initialize the exception

        Args:
            message: Error message
            error_code: Machine readable error code
            component: Component that raised the error
            details: Extra error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.component = component
        self.details = details or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary"""
        return {
            'error_code': self.error_code,
            'message': self.message,
            'component': self.component,
            'details': self.details,
            'timestamp': self.timestamp.isoformat()
        }


class ConfigurationException(ControlPanelException):
    """Configuration error"""

    def __init__(self, config_key: str, message: str,
                 details: Optional[Dict[str, Any]] = None):
        self.config_key = config_key
        error_details = details or {}
        error_details.update({'config_key': config_key})
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            "CONFIGURATION_ERROR",
            "ConfigManager",
            error_details
        )


class ConfigurationMissingError(ControlPanelException):
    """Raised when a required upstream setting (URL or API key) is absent"""

    def __init__(self, service: str, missing: List[str], hint: Optional[str] = None):
        self.service = service
        self.missing = list(missing)
        self.hint = hint
        super().__init__(
            f"{service} configuration missing",
            "CONFIGURATION_MISSING",
            f"{service}Adapter",
            {'missing': self.missing, 'hint': hint}
        )

    @property
    def details_text(self) -> str:
        return f"Missing environment variables: {', '.join(self.missing)}"


class AdapterException(ControlPanelException):
    """Upstream adapter error"""

    def __init__(self, adapter_name: str, message: str, error_code: str = "ADAPTER_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        self.adapter_name = adapter_name
        error_details = details or {}
        error_details.update({'adapter_name': adapter_name})
        super().__init__(message, error_code, f"{adapter_name}Adapter", error_details)


class ConnectionException(AdapterException):
    """Network level failure while talking to an upstream service"""

    def __init__(self, adapter_name: str, target_system: str, message: str,
                 details: Optional[Dict[str, Any]] = None):
        self.target_system = target_system
        error_details = details or {}
        error_details.update({'target_system': target_system})
        super().__init__(
            adapter_name,
            f"Failed to connect to {target_system}: {message}",
            "CONNECTION_ERROR",
            error_details
        )


class UpstreamServiceError(AdapterException):
    """Raised when an upstream service returns a non-success HTTP status."""

    def __init__(self, service: str, method: str, path: str, status: int, error: str = ""):
        self.service = service
        self.method = method
        self.path = path
        self.status = status
        self.error = error
        super().__init__(
            service,
            f"{service} {method} {path} -> HTTP {status}",
            "UPSTREAM_ERROR",
            {'method': method, 'path': path, 'status': status, 'error': error}
        )


class ValidationException(ControlPanelException):
    """Input validation error"""

    def __init__(self, message: str, errors: Optional[List[str]] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.errors = list(errors or [])
        error_details = details or {}
        error_details.update({'errors': self.errors})
        super().__init__(message, "VALIDATION_ERROR", "Validator", error_details)


class ResourceNotFoundError(ControlPanelException):
    """Requested record does not exist"""

    def __init__(self, resource: str, resource_id: Any):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            f"{resource} not found",
            "NOT_FOUND",
            resource,
            {'resource_id': resource_id}
        )


class OperationNotAllowedError(ControlPanelException):
    """Operation refused by a business rule"""

    def __init__(self, message: str, component: str = "unknown",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "OPERATION_NOT_ALLOWED", component, details)


class ExecutionInProgressError(ControlPanelException):
    """A schedule was started again inside the duplicate window"""

    def __init__(self, schedule_id: Any):
        self.schedule_id = schedule_id
        super().__init__(
            "Schedule execution already in progress. Please wait...",
            "EXECUTION_IN_PROGRESS",
            "ExecutionGuard",
            {"schedule_id": schedule_id}
        )


class BatchSaveError(ControlPanelException):
    """A batched save had at least one failed operation"""

    def __init__(self, failures: List[Dict[str, Any]], attempted: int):
        self.failures = failures
        self.attempted = attempted
        super().__init__(
            f"Batch save failed: {len(failures)} of {attempted} operations failed",
            "BATCH_SAVE_ERROR",
            "RulesBatchSaver",
            {'failures': failures, 'attempted': attempted}
        )


def handle_exception(exception: Exception, component: str = "unknown",
                     context: Optional[Dict[str, Any]] = None,
                     mask_sensitive: bool = True) -> ControlPanelException:
    """Wrap any exception into a ControlPanelException

    Args:
        exception: Original exception
        component: Component where it happened
        context: Extra context
        mask_sensitive: Mask keys, tokens and passwords in the message

    Returns:
        ControlPanelException: Normalized exception
    """
    if isinstance(exception, ControlPanelException):
        return exception

    details = context or {}

    if mask_sensitive:
        message = mask_sensitive_info(str(exception))
        details = _mask_sensitive_details(details)
    else:
        message = str(exception)

    details.update({
        'original_exception_type': type(exception).__name__,
        'original_exception_message': message
    })

    return ControlPanelException(
        message=message,
        error_code="WRAPPED_EXCEPTION",
        component=component,
        details=details
    )


def mask_sensitive_info(message: str) -> str:
    """Mask passwords, tokens and keys inside a message"""
    patterns = [
        (r'password["\s]*[:=]["\s]*[^"\s]+', 'password=***'),
        (r'token["\s]*[:=]["\s]*[^"\s]+', 'token=***'),
        (r'key["\s]*[:=]["\s]*[^"\s]+', 'key=***'),
        (r'secret["\s]*[:=]["\s]*[^"\s]+', 'secret=***'),
    ]

    masked_message = message
    for pattern, replacement in patterns:
        masked_message = re.sub(pattern, replacement, masked_message, flags=re.IGNORECASE)

    return masked_message


def mask_key(value: Optional[str], visible: int = 8) -> str:
    """Show only the first characters of a secret"""
    if not value:
        return 'MISSING'
    return f"{value[:visible]}..."


def _mask_sensitive_details(details: Dict[str, Any]) -> Dict[str, Any]:
    sensitive_keys = {'password', 'token', 'key', 'secret', 'auth', 'credential'}

    masked_details = {}
    for key, value in details.items():
        if any(sensitive_key in key.lower() for sensitive_key in sensitive_keys):
            masked_details[key] = '***'
        else:
            masked_details[key] = value

    return masked_details


def create_error_response(exception: ControlPanelException) -> Dict[str, Any]:
    """Build the standard error payload

    Args:
        exception: Control panel exception

    Returns:
        Dict[str, Any]: Error payload
    """
    return {
        'success': False,
        'error': exception.message,
        'error_code': exception.error_code,
        'details': exception.details,
        'timestamp': datetime.now().isoformat()
    }


def get_http_status(exception: ControlPanelException) -> int:
    """Map an exception to the HTTP status used by page endpoints"""
    if isinstance(exception, UpstreamServiceError):
        return exception.status
    status_by_code = {
        'VALIDATION_ERROR': 400,
        'NOT_FOUND': 404,
        'OPERATION_NOT_ALLOWED': 409,
        'EXECUTION_IN_PROGRESS': 429,
        'CONFIGURATION_MISSING': 500,
        'CONFIGURATION_ERROR': 500,
        'CONNECTION_ERROR': 502,
        'BATCH_SAVE_ERROR': 502,
    }
    return status_by_code.get(exception.error_code, 500)
