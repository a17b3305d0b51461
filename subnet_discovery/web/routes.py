"""
Flask routes for the host inventory.

This module provides the JSON endpoints that list stored hosts and run a
sweep plus reconciliation for a requested subnet.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import Blueprint, current_app, jsonify, request

from host_storage.exceptions import StorageManagerError

from ..core.reconcile import ReconciliationSink
from ..core.subnet import parse_cidr
from ..utils.error_handler import ParseError, PersistenceFailure

logger = logging.getLogger(__name__)

hosts_bp = Blueprint('hosts', __name__, url_prefix='/api')

HELP_MESSAGES = {
    400: "Check your request parameters and try again",
    404: "The requested resource was not found",
    500: "Internal server error - please try again later",
    503: "Host storage is unavailable - check the database connection",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_error_response(message: str, status_code: int = 400, details: Optional[Dict] = None,
                          error_code: Optional[str] = None):
    """
    Create a standardized JSON error response.

    Args:
        message: Error message
        status_code: HTTP status code
        details: Additional error details
        error_code: Specific error code for client handling

    Returns:
        Flask response tuple (jsonify(response), status_code)
    """
    response = {
        'success': False,
        'error': message,
        'timestamp': _timestamp(),
        'request_id': str(uuid.uuid4())[:8],
        'help': HELP_MESSAGES.get(status_code, "Please try again later"),
    }
    if error_code:
        response['error_code'] = error_code
    if details:
        response['details'] = details

    return jsonify(response), status_code


def create_success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    response = {
        'success': True,
        'timestamp': _timestamp()
    }
    if data is not None:
        response['data'] = data
    if message:
        response['message'] = message
    return response


def _state() -> Dict[str, Any]:
    return current_app.extensions['subnet_discovery']


@hosts_bp.route('/hosts', methods=['GET'])
def list_hosts():
    """Return every stored host record ordered by id."""
    try:
        hosts = _state()['repository'].all()
    except StorageManagerError as e:
        logger.error(f"Failed to list hosts: {e}")
        return create_error_response("Could not read host records", 503, error_code='STORAGE_ERROR')

    return jsonify(create_success_response(
        {'hosts': [host.to_dict() for host in hosts], 'count': len(hosts)}
    ))


@hosts_bp.route('/refresh', methods=['POST'])
def refresh():
    """
    Sweep the subnet in ``{"ip_address": "a.b.c.d/n"}`` and reconcile the findings.

    Responds with the hosts found during this sweep and the reconciliation report.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return create_error_response("Request body must be a JSON object", 400, error_code='INVALID_BODY')

    target = data.get('ip_address')
    if not target:
        return create_error_response("Missing required field: ip_address", 400, error_code='MISSING_FIELD')

    try:
        address_range = parse_cidr(target)
    except ParseError as e:
        return create_error_response(str(e), 400, details={'ip_address': target}, error_code='INVALID_TARGET')

    state = _state()
    found = []
    sink = ReconciliationSink(
        state['repository'],
        fail_fast=state['fail_fast'],
        on_host=lambda result, record: found.append(record.to_dict())
    )

    logger.info(f"Refresh requested for {address_range.cidr} ({len(address_range)} addresses)")
    try:
        report = sink.consume(state['sweeper'](address_range.addresses))
    except PersistenceFailure as e:
        logger.error(f"Refresh of {address_range.cidr} failed: {e}")
        return create_error_response("Could not persist sweep results", 503, error_code='STORAGE_ERROR')

    for address, error in report.failures:
        logger.warning(f"Host {address} not persisted: {error}")

    return jsonify(create_success_response(
        {'target': address_range.cidr, 'hosts': found, 'report': report.to_dict()},
        f"Sweep of {address_range.cidr} found {len(found)} hosts"
    ))
