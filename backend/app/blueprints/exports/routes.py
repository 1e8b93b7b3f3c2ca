"""Form data export blueprint: landing page plus CSV and Excel downloads."""
from flask import Blueprint, current_app, request

from backend.app.extensions import limiter
from backend.app.middleware.principal import with_principal
from backend.app.services.exports.endpoint import create_export_endpoint

exports_bp = Blueprint('exports', __name__)


def _export_rate_limit() -> str:
    return current_app.config.get('EXPORT_RATE_LIMIT', '30 per hour')


@exports_bp.route('/csv', methods=['GET'])
@with_principal
def show_page(principal):
    """Page with the download links, for administrators and managers."""
    return create_export_endpoint().show_landing_page(principal, base_path=request.script_root)


@exports_bp.route('/csv/download-excel', methods=['GET'])
@limiter.limit(_export_rate_limit)
@with_principal
def download_excel(principal):
    """Excel workbook with every submitted form."""
    return create_export_endpoint().download_spreadsheet(principal)


@exports_bp.route('/csv/download-csv', methods=['GET'])
@limiter.limit(_export_rate_limit)
@with_principal
def download_csv(principal):
    """CSV file with every submitted form."""
    return create_export_endpoint().download_csv(principal)
