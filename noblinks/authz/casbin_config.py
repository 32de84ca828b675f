"""
Casbin RBAC configuration.

Organization roles form a hierarchy (owner > admin > member); each role
is granted actions on a resource.
"""

# Casbin model definition for role-based access with role inheritance
CASBIN_MODEL = """
[request_definition]
r = sub, obj, act

[policy_definition]
p = sub, obj, act

[role_definition]
g = _, _

[policy_effect]
e = some(where (p.eft == allow))

[matchers]
m = g(r.sub, p.sub) && keyMatch(r.obj, p.obj) && regexMatch(r.act, p.act)
"""

# (role, resource, action pattern)
ROLE_POLICIES = [
    ("member", "alert", "^view$"),
    ("member", "capability", "^view$"),
    ("admin", "alert", "^(create|update|delete)$"),
]

# (role, inherited role)
ROLE_HIERARCHY = [
    ("admin", "member"),
    ("owner", "admin"),
]
