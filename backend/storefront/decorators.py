# Overview: Request context decorators for catalog routes.

from functools import wraps
from flask import request, g

from .services.tenant_service import tenant_slug_from_request


def with_caller(f):
    """
    Establish caller and shop context for a catalog route.

    Sets the following Flask g attributes:
    - g.caller_id: External caller identity from the X-User-Id header
      (set by the gateway after authentication), or None when anonymous
    - g.shop_slug: Shop the request is browsing, or None

    Authentication itself happens upstream; an absent header simply means
    an anonymous caller, which scoped searches treat as "no shops".
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        caller_id = (request.headers.get("X-User-Id") or "").strip()
        g.caller_id = caller_id or None
        g.shop_slug = tenant_slug_from_request()
        return f(*args, **kwargs)

    return decorated_function
