# Overview: Shared route plumbing; per-request inventory scope and error-to-status mapping.

from functools import wraps

from flask import current_app, g, jsonify, request

from stockledger.extensions import db
from stockledger.services.concurrency import commit_with_retry
from stockledger.services.errors import (
    InsufficientStockError,
    InvalidTransitionError,
    InventoryError,
    LedgerError,
    NotFoundError,
)
from stockledger.services.inventory_service import InventoryService
from stockledger.services.key_value_store import SqlKeyValueStore
from stockledger.validation import ConflictError, ValidationError


def get_inventory() -> InventoryService:
    """
    InventoryService for the current user, built once per request.

    Writes are flushed into the request's session; inventory_route commits
    them once the view returns, or rolls everything back on error.
    """
    service = g.get("inventory")
    if service is None:
        service = InventoryService(
            SqlKeyValueStore(autocommit=False),
            g.user_id,
            enforce_unique_sku=current_app.config.get("ENFORCE_UNIQUE_SKU", False),
            seed_defaults=current_app.config.get("SEED_DEFAULTS_ON_INIT", True),
        )
        g.inventory = service
    return service


def json_body(*, required: bool = True):
    data = request.get_json(silent=True)
    if data is None and required:
        raise ValidationError("Request body must be JSON")
    return data


def inventory_route(f):
    """
    Commit on success, roll back and map domain errors to JSON otherwise.

        ValidationError                         400
        NotFoundError                           404
        InsufficientStockError                  409 (with available/requested)
        InvalidTransitionError, ConflictError   409
        LedgerError, anything unexpected        500
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        # g can outlive the request when an app context is already pushed
        g.pop("inventory", None)
        try:
            response = f(*args, **kwargs)
            commit_with_retry()
            return response
        except InsufficientStockError as e:
            db.session.rollback()
            return jsonify(e.to_dict()), 409
        except (InvalidTransitionError, ConflictError) as e:
            db.session.rollback()
            return jsonify({"error": str(e)}), 409
        except NotFoundError as e:
            db.session.rollback()
            return jsonify({"error": str(e)}), 404
        except ValidationError as e:
            db.session.rollback()
            return jsonify({"error": str(e)}), 400
        except LedgerError:
            db.session.rollback()
            current_app.logger.exception("Ledger invariant violated on %s %s", request.method, request.path)
            return jsonify({"error": "Internal server error"}), 500
        except InventoryError as e:
            db.session.rollback()
            return jsonify({"error": str(e)}), 400
        except Exception:
            db.session.rollback()
            current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
            return jsonify({"error": "Internal server error"}), 500

    return decorated_function
