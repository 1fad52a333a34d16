"""
plandeploy - Deploy plans of content entities to remote endpoints

A plan names an aggregator (what to deploy), a processor (how to push it)
and a list of endpoints (where to send it). Plan.deploy() pushes to every
endpoint before publishing on any of them, under a per-plan lock, and
records each status transition in a deployment log.
"""

__version__ = "0.1.0"


__all__ = ["DeployConfig", "DeployContext", "Plan", "load_config", "get_plandeploy_home"]

from .config import DeployConfig, load_config, get_plandeploy_home
from .plan import DeployContext, Plan
