from flask import Blueprint, request, jsonify
from marshmallow import ValidationError
from transport_backend.api.responses import (
    validation_error_response, service_error_response, unexpected_error_response,
)
from transport_backend.schemas.filter_schema import PeriodSchema
from transport_backend.schemas.report_schema import max_range_days
from transport_backend.services.stats_service import StatsService, default_period
from transport_backend.services.errors import ServiceError

dashboard_bp = Blueprint('dashboard', __name__)
period_schema = PeriodSchema()

def _period():
    args = period_schema.load(request.args.to_dict())
    date_from, date_to = default_period()
    date_from = args.get('date_from', date_from)
    date_to = args.get('date_to', date_to)
    if date_to < date_from:
        raise ValidationError({'date_to': ['End date must be on or after start date.']})
    if (date_to - date_from).days > max_range_days():
        raise ValidationError({'date_to': [f'Period cannot exceed {max_range_days()} days.']})
    return date_from, date_to, args

def _dump_all(models):
    return [m.model_dump(mode='json') for m in models]

@dashboard_bp.route('/dashboard/stats', methods=['GET'])
def dashboard_stats():
    try:
        date_from, date_to, _ = _period()
        stats = StatsService().dashboard(date_from, date_to)
        return jsonify(stats.model_dump(mode='json')), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('dashboard_stats', e)

@dashboard_bp.route('/dashboard/containers', methods=['GET'])
def dashboard_containers():
    try:
        date_from, date_to, _ = _period()
        return jsonify(_dump_all(StatsService().container_distribution(date_from, date_to))), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('dashboard_containers', e)

@dashboard_bp.route('/dashboard/consumption', methods=['GET'])
def dashboard_consumption():
    try:
        date_from, date_to, args = _period()
        ranking = StatsService().consumption_ranking(date_from, date_to, args['limit'])
        return jsonify(_dump_all(ranking)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('dashboard_consumption', e)

@dashboard_bp.route('/dashboard/trips-series', methods=['GET'])
def dashboard_trips_series():
    try:
        date_from, date_to, args = _period()
        series = StatsService().trips_series(date_from, date_to, fill=args['fill'])
        return jsonify(_dump_all(series)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('dashboard_trips_series', e)

@dashboard_bp.route('/dashboard/costs-series', methods=['GET'])
def dashboard_costs_series():
    try:
        date_from, date_to, args = _period()
        series = StatsService().costs_series(date_from, date_to, fill=args['fill'])
        return jsonify(_dump_all(series)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('dashboard_costs_series', e)

@dashboard_bp.route('/dashboard/driver-status', methods=['GET'])
def dashboard_driver_status():
    try:
        return jsonify(_dump_all(StatsService().driver_status_distribution())), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('dashboard_driver_status', e)
