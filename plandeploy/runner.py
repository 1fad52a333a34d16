"""Runner - wires stored configuration to Plan.deploy().

This module provides the main entry point for deploying a plan:
1. Loads the plan definition from the plans directory
2. Builds the endpoint registry, lock service and deployment log
3. Runs the deploy protocol and logs the outcome

Usage:
    from plandeploy.config import load_config
    from plandeploy.runner import run_deploy

    deployment_id = run_deploy("site-sync", load_config())
"""

import logging
from typing import Optional

from plandeploy.config import DeployConfig
from plandeploy.deploy_log import FileDeploymentLog
from plandeploy.endpoints import YamlEndpointRegistry
from plandeploy.locks import FileLockService
from plandeploy.operations import OperationRegistry, operations as default_operations
from plandeploy.plan import DeployContext
from plandeploy.store import PlanStore

logger = logging.getLogger(__name__)


def build_context(
    config: DeployConfig,
    operations: Optional[OperationRegistry] = None,
) -> DeployContext:
    """Build file-backed collaborators from config."""
    return DeployContext(
        endpoints=YamlEndpointRegistry(config.endpoints_file),
        log=FileDeploymentLog(config.log_dir),
        locks=FileLockService(config.lock_dir),
        operations=operations if operations is not None else default_operations,
    )


def run_deploy(
    plan_name: str,
    config: DeployConfig,
    context: Optional[DeployContext] = None,
) -> str:
    """
    Deploy a plan by name.

    Args:
        plan_name: Plan to deploy
        config: plandeploy configuration
        context: Collaborators to use instead of the file-backed defaults

    Returns:
        The deployment id

    Raises:
        Exception: Any error from loading or deploying the plan
    """
    store = PlanStore(config.plans_dir)
    plan = store.load(plan_name)
    if context is None:
        context = build_context(config)

    logger.info(f"Starting deployment: {plan_name} (endpoints={plan.endpoints})")
    try:
        deployment_id = plan.deploy(context)
    except Exception as e:
        logger.error(f"Deployment failed: {plan_name} - {e}", exc_info=True)
        raise

    logger.info(f"Deployment completed: {plan_name} (deployment={deployment_id})")
    return deployment_id
