# Overview: Flask API route for the category tree with product counts.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import with_caller
from ..services import search_service
from ..services.category_service import CatalogIntegrityError

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@with_caller
def list_categories_route():
    """
    Category forest with direct and cumulative product counts.

    Counts follow the same scope rules as /api/search (scope, shop, X-User-Id).
    Response: {"items": [flat nodes], "tree": [nested nodes]}
    """
    try:
        result = search_service.catalog_categories(
            scope_token=request.args.get("scope"),
            caller_id=g.caller_id,
            shop_slug=g.shop_slug,
        )
    except CatalogIntegrityError:
        current_app.logger.exception("Category tree failed integrity check")
        return jsonify({"error": "Category tree is inconsistent"}), 500
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result)
