"""GraphQL feature module using Strawberry.

This module provides the GraphQL API endpoint with:
- A Relay-style users connection over the identity provider
- User write mutations, including upsert
- A token namespace for sign-in, verification and minting
- Per-tenant clients selected from a request header
"""
