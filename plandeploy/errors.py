"""
Error classes for plandeploy.

These error types classify failures at the deploy boundary:
- MalformedPlanError: The plan cannot be deployed as configured (no processor,
  no endpoints). Raised before any lock is taken or log entry is written.
- PlanAlreadyRunningError: Another deployment of the same plan holds the lock.
- PlanError: Runtime inconsistency found while the deployment is running
  (invalid endpoint reference, no endpoint selected).

Errors raised by plugins (aggregators, processors, services) are NOT wrapped.
Plan.deploy() catches them once, releases the lock, records the failure and
re-raises the original exception.
"""

from typing import Optional


class DeployError(Exception):
    """Base exception for plandeploy."""
    pass


class MalformedPlanError(DeployError):
    """
    The plan is structurally unable to deploy.

    Examples:
    - No processor configured (fetch-only plan)
    - No endpoints configured
    - No aggregator configured when entities are requested
    """

    def __init__(self, plan_name: str, message: str):
        self.plan_name = plan_name
        super().__init__(message)


class PlanAlreadyRunningError(DeployError):
    """The deploy lock for this plan is already held."""

    def __init__(self, plan_name: str, lock_name: str):
        self.plan_name = plan_name
        self.lock_name = lock_name
        super().__init__(f"Plan '{plan_name}' is already running (lock: {lock_name})")


class PlanError(DeployError):
    """A deployment failed because of an inconsistency in the plan's targets."""

    def __init__(self, plan_name: str, message: str, endpoint_name: Optional[str] = None):
        self.plan_name = plan_name
        self.endpoint_name = endpoint_name
        super().__init__(message)


class InvalidEndpointError(DeployError):
    """An endpoint is configured but can't be used."""

    def __init__(self, endpoint_name: str, message: Optional[str] = None):
        self.endpoint_name = endpoint_name
        super().__init__(message or f"Endpoint '{endpoint_name}' is invalid")


class UnknownPluginError(DeployError):
    """No factory is registered under the requested plugin identifier."""
    pass


class ServiceError(DeployError):
    """An endpoint service rejected a deploy or publish request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ConfigError(DeployError):
    """Configuration validation error."""
    pass


class PlanNotFoundError(DeployError):
    """Raised when a plan definition is not found."""
    pass


class PlanValidationError(DeployError):
    """Raised when a plan definition fails validation."""
    pass
