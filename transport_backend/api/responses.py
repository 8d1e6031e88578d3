import logging
from flask import jsonify
from transport_backend.services.errors import NotFoundError, BusinessRuleError


def page_response(result, schema_many):
    return jsonify({
        'items': schema_many.dump(result.items),
        'count': result.count,
        'page': result.page,
        'page_size': result.page_size,
        'total_pages': result.total_pages,
    }), 200


def validation_error_response(ve):
    return jsonify({'error': 'Invalid request data.', 'messages': ve.messages}), 400


def service_error_response(se):
    if isinstance(se, NotFoundError):
        return jsonify({'error': se.message}), 404
    if isinstance(se, BusinessRuleError):
        return jsonify({'error': se.message}), 400
    return jsonify({'error': se.message}), 500


def unexpected_error_response(where, e):
    logging.error(f"Unhandled error in {where}: {e}", exc_info=True)
    return jsonify({'error': 'An unexpected error occurred. Please try again later.'}), 500
