"""
hashsession - Redis hash backed sessions for ASGI applications

Per-request session objects whose field changes are tracked and written
to Redis in one batch at the end of each request.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- All communication through defined interfaces

Modules:
- session: Session objects, change tracking, flush scheduling
- storage: Redis hash persistence
- carrier: Signed cookie token transport
- middleware: FastAPI / Starlette request binding
- config: Environment configuration
- api: Demo service models
"""

__version__ = "1.0.0"
