"""Flask HTTP API for rate configuration, current rates and the cost ledger."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from flask import Flask, Response, jsonify, request

from src.api.marketplace import MarketplaceClient, MarketplaceRateLimitError
from src.core.config import Settings, get_settings
from src.core.errors import NotFoundError, SyncCancelledError, SyncTimeoutError, ValidationError
from src.core.models import Found, RateTier
from src.core.reconciler import ledger_totals
from src.core.services import MonthlyCostService, RateConfigurationService
from src.core.months import current_year_month, validate_year_month
from src.core.sync import MonthSync
from src.db.repository import Repository
from src.utils.export import Exporter

logger = logging.getLogger(__name__)


def _require_int(value: Any, name: str) -> int:
    if value is None or value == "":
        raise ValidationError(f"{name} is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer, got {value!r}") from None


def _parse_decimal(value: Any, name: str) -> Decimal:
    if value is None or value == "":
        raise ValidationError(f"{name} is required")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"{name} must be a finite number, got {value!r}")
    return amount


def _parse_tiers(raw: Any) -> list[RateTier]:
    if not isinstance(raw, list):
        raise ValidationError("rate_tiers must be a list")
    tiers = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"Tier {index + 1} must be an object, got {item!r}")
        try:
            tiers.append(RateTier.from_dict(item))
        except (KeyError, TypeError, ValueError, InvalidOperation):
            raise ValidationError(f"Tier {index + 1} is malformed: {item!r}") from None
    return tiers


def _parse_location_ids(raw: Any) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(i, str) for i in raw):
        raise ValidationError("special_zone_location_ids must be a list of strings")
    return raw


def _optional_bool(data: dict, name: str, default: bool) -> bool:
    value = data.get(name, default)
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be true or false")
    return value


def _seller_id_arg() -> int:
    return _require_int(request.args.get("seller_id"), "seller_id")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def create_app(
    settings: Settings | None = None,
    repo: Repository | None = None,
    client: MarketplaceClient | None = None,
) -> Flask:
    """Create and configure the Flask application."""
    settings = settings or get_settings()
    repo = repo or Repository(precision=settings.currency_precision)
    client = client or MarketplaceClient(settings)

    rate_service = RateConfigurationService(settings, repo)
    cost_service = MonthlyCostService(settings, repo)
    month_sync = MonthSync(settings, repo, client)

    app = Flask(__name__)
    app.json.sort_keys = False

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        return jsonify({"error": "validation_error", "message": str(error)}), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(error: NotFoundError):
        return jsonify({"error": "not_found", "message": str(error)}), 404

    @app.errorhandler(MarketplaceRateLimitError)
    def handle_rate_limit(error: MarketplaceRateLimitError):
        logger.warning(f"Marketplace rate limit: {error}")
        response = jsonify({"error": "rate_limited", "message": str(error)})
        if error.retry_after is not None:
            response.headers["Retry-After"] = str(error.retry_after)
        return response, 429

    # ==================== Rate configuration ====================

    @app.get("/api/rate-config")
    def get_rate_config():
        seller_id = _seller_id_arg()
        lookup = rate_service.get(seller_id)
        if isinstance(lookup, Found):
            return jsonify({"found": True, "configuration": lookup.value.to_dict()})
        return jsonify({
            "found": False,
            "configuration": None,
            "message": f"No rate configuration for seller {seller_id}",
        })

    @app.put("/api/rate-config")
    def put_rate_config():
        data = _json_body()
        config = rate_service.save(
            seller_id=_require_int(data.get("seller_id"), "seller_id"),
            tiers=_parse_tiers(data.get("rate_tiers")),
            special_zone_surcharge=_parse_decimal(
                data.get("special_zone_surcharge", settings.rates.special_zone_surcharge),
                "special_zone_surcharge",
            ),
            oversize_surcharge=_parse_decimal(
                data.get("oversize_surcharge", settings.rates.oversize_surcharge),
                "oversize_surcharge",
            ),
            default_service_type=str(
                data.get("default_service_type", settings.rates.default_service_type)
            ),
            special_zone_location_ids=_parse_location_ids(data.get("special_zone_location_ids")),
            is_active=_optional_bool(data, "is_active", True),
        )
        return jsonify(config.to_dict())

    @app.post("/api/rate-config/active")
    def set_rate_config_active():
        data = _json_body()
        if "is_active" not in data:
            raise ValidationError("is_active is required")
        config = rate_service.set_active(
            _require_int(data.get("seller_id"), "seller_id"), _optional_bool(data, "is_active", True)
        )
        return jsonify(config.to_dict())

    @app.get("/api/rate-config/current-rate")
    def get_current_rate():
        result = rate_service.current_rate(_seller_id_arg(), request.args.get("year_month"))
        return jsonify(result.to_dict())

    # ==================== Shipments ====================

    @app.get("/api/shipments-count")
    def get_shipments_count():
        return jsonify(
            rate_service.shipments_count(_seller_id_arg(), request.args.get("year_month"))
        )

    @app.get("/api/shipments-days")
    def get_shipment_days():
        seller_id = _seller_id_arg()
        year_month = validate_year_month(request.args.get("year_month") or current_year_month())
        days = repo.order_details(seller_id, year_month)
        last_synced = repo.get_last_synced_at(seller_id, year_month)
        return jsonify({
            "seller_id": seller_id,
            "year_month": year_month,
            "last_synced_at": last_synced.isoformat() if last_synced else None,
            "details": [d.to_dict() for d in days],
        })

    @app.post("/api/sync-month")
    def post_sync_month():
        data = _json_body()
        seller_id = _require_int(data.get("seller_id"), "seller_id")
        year_month = validate_year_month(str(data.get("year_month") or current_year_month()))
        timeout = data.get("timeout_seconds")
        if timeout is not None:
            timeout = float(_parse_decimal(timeout, "timeout_seconds"))

        result = month_sync.run(seller_id, year_month, timeout=timeout)
        try:
            result.raise_for_status()
        except SyncTimeoutError:
            return jsonify(result.to_dict()), 504
        except SyncCancelledError:
            return jsonify(result.to_dict()), 409
        return jsonify(result.to_dict())

    # ==================== Monthly costs ====================

    @app.get("/api/monthly-costs")
    def list_monthly_costs():
        seller_id = _seller_id_arg()
        costs = cost_service.list_costs(seller_id)
        return jsonify({
            "seller_id": seller_id,
            "items": [c.to_dict() for c in costs],
            "totals": ledger_totals(costs).to_dict(),
        })

    @app.get("/api/monthly-costs/export")
    def export_monthly_costs():
        seller_id = _seller_id_arg()
        csv_text = Exporter.monthly_costs_to_csv(cost_service.list_costs(seller_id))
        filename = Exporter.generate_filename(seller_id)
        return Response(
            csv_text,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.get("/api/monthly-costs/<year_month>")
    def get_monthly_cost(year_month: str):
        seller_id = _seller_id_arg()
        lookup = cost_service.get(seller_id, year_month)
        if isinstance(lookup, Found):
            return jsonify({"found": True, "monthly_cost": lookup.value.to_dict()})
        return jsonify({
            "found": False,
            "monthly_cost": None,
            "message": f"No monthly cost for {year_month}",
        })

    @app.put("/api/monthly-costs/<year_month>")
    def put_monthly_cost(year_month: str):
        data = _json_body()
        notes = data.get("notes")
        cost = cost_service.upsert(
            seller_id=_require_int(data.get("seller_id"), "seller_id"),
            year_month=year_month,
            total_with_tax=_parse_decimal(data.get("total_with_tax"), "total_with_tax"),
            notes=str(notes) if notes else None,
        )
        return jsonify(cost.to_dict())

    @app.delete("/api/monthly-costs/<year_month>")
    def delete_monthly_cost(year_month: str):
        cost_service.delete(_seller_id_arg(), year_month)
        return "", 204

    return app
