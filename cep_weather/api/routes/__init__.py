"""API route handlers.

Routes:
- cep_input: POST / (input service)
- temperature: GET /{cep} (orchestration service)
- health: GET /health (both)
"""

__all__: list[str] = []
