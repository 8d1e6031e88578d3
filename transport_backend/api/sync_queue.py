from flask import Blueprint, request, jsonify
from marshmallow import Schema, fields, validate, ValidationError
from transport_backend.api.responses import (
    validation_error_response, service_error_response, unexpected_error_response,
)
from transport_backend.models.sync_queue import SyncEntity, SyncOperation
from transport_backend.services.sync_queue_service import SyncQueueService
from transport_backend.services.errors import ServiceError

sync_queue_bp = Blueprint('sync_queue', __name__)

class SyncQueueItemSchema(Schema):
    id = fields.Integer(dump_only=True)
    entity = fields.String(required=True, validate=validate.OneOf([e.value for e in SyncEntity]))
    entity_id = fields.String(required=True, validate=validate.Length(min=1, max=64))
    operation = fields.String(required=True, validate=validate.OneOf([o.value for o in SyncOperation]))
    payload = fields.Raw(allow_none=True)
    created_at = fields.DateTime(dump_only=True)
    retry_count = fields.Integer(dump_only=True)
    last_error = fields.String(dump_only=True)

schema = SyncQueueItemSchema()
schema_many = SyncQueueItemSchema(many=True)

@sync_queue_bp.route('/sync-queue', methods=['POST'])
def enqueue_operation():
    try:
        data = schema.load(request.get_json() or {})
        item = SyncQueueService().enqueue(**data)
        return jsonify(schema.dump(item)), 201
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('enqueue_operation', e)

@sync_queue_bp.route('/sync-queue', methods=['GET'])
def list_pending_operations():
    try:
        items = SyncQueueService().pending(request.args.get('entity'))
        return jsonify(schema_many.dump(items)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list_pending_operations', e)

@sync_queue_bp.route('/sync-queue/stats', methods=['GET'])
def sync_queue_stats():
    try:
        return jsonify(SyncQueueService().stats().model_dump(mode='json')), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('sync_queue_stats', e)

@sync_queue_bp.route('/sync-queue/<int:item_id>/retry', methods=['POST'])
def increment_retry(item_id):
    try:
        body = request.get_json(silent=True) or {}
        item = SyncQueueService().increment_retry(item_id, body.get('error'))
        return jsonify(schema.dump(item)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('increment_retry', e)

@sync_queue_bp.route('/sync-queue/<int:item_id>', methods=['DELETE'])
def remove_operation(item_id):
    try:
        SyncQueueService().remove(item_id)
        return jsonify({'message': 'Operation removed'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('remove_operation', e)

@sync_queue_bp.route('/sync-queue', methods=['DELETE'])
def clear_queue():
    try:
        removed = SyncQueueService().clear(request.args.get('entity'))
        return jsonify({'message': 'Queue cleared', 'removed': removed}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('clear_queue', e)
