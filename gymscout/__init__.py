"""Muay Thai Gym Scout - a chat assistant and gym directory for Thailand.

Architecture Overview
=====================

Every request is stateless.  The Airtable base is the only system of
record; rows are fetched per request (optionally through a short TTL
cache) and discarded after the response is sent.

1. **Table fetcher** - ``services/airtable_client.py`` reads the first page
   of a table.  Any failure degrades to an empty list.
2. **Normalizer** - ``normalizer.py`` turns gym rows into display objects
   (average rating, prices resolved through the Prices table, synthesized
   descriptions) and into the flat knowledge text that grounds the chat.
3. **Chat** - ``agent.py`` is a LangGraph graph: ``ground`` (fetch + build
   knowledge) → ``chatbot`` (one model call).  Gym names in replies are
   wrapped in ``|||`` for the UI to link.

Package Structure
-----------------
- ``gymscout/config.py`` - configuration from environment variables
- ``gymscout/records.py`` - Airtable row model and field-value variants
- ``gymscout/normalizer.py`` - gym views + knowledge context
- ``gymscout/prompts.py`` - system prompt and fallback sentence
- ``gymscout/agent.py`` - LangGraph chat graph
- ``gymscout/traffic.py`` - time-of-day gym traffic rule
- ``gymscout/server.py`` - FastAPI application
- ``gymscout/main.py`` - CLI chat and Airtable inspection
- ``gymscout/services/`` - Airtable, Stripe, cache, metrics
- ``gymscout/api/`` - FastAPI routes, Pydantic schemas, input checks
"""
