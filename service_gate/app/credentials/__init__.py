"""
Credential package.

Issues and verifies the self-contained HS256 credentials presented as
`Authorization: Bearer <token>`. Only the process-wide signing secret is
needed to verify a credential; there is no session store.
"""
