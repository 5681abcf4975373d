"""Authentication and authorization.

Learn: One authentication path — email/password → bcrypt check → JWT.
The JWT comes back on every request as `Authorization: Bearer <token>`
and the access gate in dependencies.py resolves it to a Principal.
Ownership scoping of tasks lives in ownership.py.
"""
