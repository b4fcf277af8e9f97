"""
Access Gate service package for SyncFit.

This package exposes the FastAPI application that authenticates callers and
enforces their daily generation quota before forwarding to the generation
provider:

- app.main: Application entrypoint that wires routes and lifecycle.
- app.credentials: Credential issuance and verification (signed JWTs).
- app.quota: Per-identity daily usage tracking and its storage seam.
- app.domain: The two-stage admission gate and its failure taxonomy.
- app.adapters: Client for the downstream generation provider.

Design notes:
- Module import must not perform network calls.
- Identity is self-asserted at login; production use requires a real
  credential check (password, OTP, IdP) before a credential is issued.
- Quota state lives in a single process. Running several workers needs a
  shared, transactional UsageStore.
"""
