"""
Generative AI services.

- ``orchestration``: retry, backoff and credential failover around provider calls
- ``llm_client``: Gemini REST client
- ``agents``: chat, interior and area-risk agents built on top of it

Agents only talk to the provider; catalog access and floor-plan fallbacks
live in their own service packages.
"""
