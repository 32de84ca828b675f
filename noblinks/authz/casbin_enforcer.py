"""
Casbin enforcer management.

Builds one in-memory enforcer from the RBAC model and the built-in role
policies.
"""

from functools import lru_cache

from casbin import Enforcer
from casbin.model import Model

from noblinks.authz.casbin_config import CASBIN_MODEL, ROLE_HIERARCHY, ROLE_POLICIES


def _create_model() -> Model:
    """Create Casbin model from text definition."""
    model = Model()
    model.load_model_from_text(CASBIN_MODEL)
    return model


@lru_cache
def get_enforcer() -> Enforcer:
    """Get the shared enforcer, loading role policies on first use."""
    enforcer = Enforcer(_create_model())

    for role, resource, action in ROLE_POLICIES:
        enforcer.add_policy(role, resource, action)
    for role, parent in ROLE_HIERARCHY:
        enforcer.add_grouping_policy(role, parent)

    return enforcer


def enforce(role: str, resource: str, action: str) -> bool:
    """Check if a role may perform an action on a resource."""
    return get_enforcer().enforce(role, resource, action)
