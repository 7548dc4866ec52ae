"""
Shared module for common code across the REST API and the WS Gateway.

STRUCTURE:
- shared.security: Authentication and login rate limiting
  - auth.py: JWT signing/verification, current_user_context
  - password.py: Bcrypt hashing
  - rate_limit.py: slowapi limiter for the login route

- shared.infrastructure: Database and messaging
  - db.py: SQLAlchemy engine and sessions, safe_commit(), transaction()
  - correlation.py: X-Request-ID middleware and log filter
  - events/: Redis pub/sub, role-room channels, event publishing

- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: Roles, statuses, transition tables, permissions

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: Search and filter parsing
  - schemas.py, kitchen_schemas.py, admin_schemas.py: Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import verify_jwt, current_user_context
    from shared.infrastructure.db import get_db, transaction
    from shared.config.settings import settings
    from shared.config.constants import Roles, OrderStatus
    from shared.utils.exceptions import NotFoundError, InvalidTransitionError
"""
