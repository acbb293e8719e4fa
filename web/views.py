"""
Flask views for the Receivables Audit Workbench.

JSON endpoints backing the dashboard: upload, read-only snapshots of the
dataset and its derived collections, dataset replacement, CSV exports,
and AI commentary.
"""
from flask import Blueprint, Response, jsonify, request, g
from werkzeug.utils import secure_filename
from pathlib import PurePath
import logging

from audit_engine import (
    AuditStateStore,
    NormalizationError,
    RecordKind,
    buckets_to_frame,
    calculate_customer_exposure,
    calculate_kpis,
    ingest_files,
    issues_to_frame,
    normalize_records,
    sample_dataset,
)
from audit_engine.samples import CSV_TEMPLATES
from config import config
from summarizer.gemini import GeminiSummarizer
from web.session_state import load_store, save_store

logger = logging.getLogger(__name__)
bp = Blueprint('main', __name__)

NOTHING_RECOGNIZED_MESSAGE = "No recognized data found. Please check CSV headers."


def get_summarizer() -> GeminiSummarizer:
    """Get the AI summarizer configured from the environment."""
    return GeminiSummarizer.from_config(config.ai)


def _error(message: str, status: int):
    return jsonify({'error': message}), status


def _csv_response(csv_text: str, filename: str) -> Response:
    return Response(
        csv_text,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


def _dataset_payload(store: AuditStateStore) -> dict:
    dataset = store.current_dataset()
    return {
        'reference_date': store.reference_date.isoformat(),
        'counts': dataset.summary(),
        **dataset.to_dict()
    }


@bp.route('/health')
def health():
    return jsonify({'status': 'ok'})


@bp.route('/api/dataset')
def get_dataset():
    """Snapshot of the four primary record sets."""
    store = load_store()
    return jsonify(_dataset_payload(store))


@bp.route('/api/dataset/<kind>', methods=['PUT'])
def replace_dataset(kind: str):
    """Replace one primary set with the JSON array in the request body."""
    try:
        record_kind = RecordKind(kind)
    except ValueError:
        return _error(f"Unknown dataset kind '{kind}'. Expected one of: {[k.value for k in RecordKind]}", 400)

    rows = request.get_json(silent=True)
    if not isinstance(rows, list):
        return _error(f"Request body must be a JSON array of {record_kind.value} records", 400)

    try:
        records, warnings = normalize_records(record_kind, rows)
    except NormalizationError as e:
        return _error(str(e), 400)

    store = load_store()
    store.replace(record_kind, records)
    save_store(store)

    return jsonify({
        'kind': record_kind.value,
        'count': len(records),
        'warnings': [w.to_dict() for w in warnings]
    })


@bp.route('/upload', methods=['POST'])
def upload():
    """Ingest one or more CSV/JSON files into the session dataset."""
    files = request.files.getlist('files') or request.files.getlist('file')
    files = [f for f in files if f and f.filename]
    if not files:
        return _error('No file uploaded', 400)

    batch = []
    skipped = []
    for file in files:
        filename = secure_filename(file.filename) or file.filename
        suffix = PurePath(filename).suffix.lower()
        if suffix and suffix not in config.ingestion.allowed_extensions:
            logger.warning(f"[UPLOAD] Skipping unsupported file type: {filename}")
            skipped.append({'filename': filename, 'reason': 'Unsupported file type'})
            continue
        # Read each file fully before it is parsed
        batch.append((filename, file.read()))

    try:
        store = load_store()
        result = ingest_files(store, batch)
        save_store(store)
    except Exception as e:
        logger.error(f"[UPLOAD] Error processing upload: {e}", exc_info=True)
        return _error(f'Error processing files: {e}', 500)

    result.rejected.extend(skipped)
    payload = result.to_dict()
    if not result.recognized:
        payload['error'] = NOTHING_RECOGNIZED_MESSAGE
        return jsonify(payload), 422

    payload['message'] = f"Successfully loaded: {', '.join(result.loaded)}"
    return jsonify(payload)


@bp.route('/api/reset', methods=['POST'])
def reset():
    """Reset the session dataset to the built-in sample data."""
    store = load_store()
    store.reset(sample_dataset())
    save_store(store)
    logger.info(f"[RESET] Session {g.session_id} reset to sample data")
    return jsonify({'message': 'Data reset to defaults.', **_dataset_payload(store)})


@bp.route('/api/reference-date', methods=['PUT'])
def set_reference_date():
    """Change the aging reference date for this session."""
    body = request.get_json(silent=True) or {}
    value = body.get('reference_date')
    if not value:
        return _error("Missing 'reference_date'", 400)

    store = load_store()
    try:
        store.set_reference_date(value)
    except ValueError as e:
        return _error(str(e), 400)
    save_store(store)

    return jsonify({'reference_date': store.reference_date.isoformat()})


@bp.route('/api/compliance')
def compliance():
    """Compliance issues for the current dataset."""
    store = load_store()
    issues = store.compliance_issues()
    save_store(store)
    return jsonify({
        'count': len(issues),
        'issues': [issue.to_dict() for issue in issues]
    })


@bp.route('/api/aging')
def aging():
    """Aging buckets and allowance for the current dataset."""
    store = load_store()
    buckets = store.aging_buckets()
    save_store(store)
    return jsonify({
        'reference_date': store.reference_date.isoformat(),
        'buckets': [bucket.to_dict() for bucket in buckets],
        'total_amount': sum(b.total_amount for b in buckets),
        'total_allowance': sum(b.estimated_allowance for b in buckets),
        'invoice_count': sum(b.invoice_count for b in buckets)
    })


@bp.route('/api/kpis')
def kpis():
    """Dashboard KPIs."""
    store = load_store()
    result = calculate_kpis(store.current_dataset(), store.compliance_issues(), store.aging_buckets())
    save_store(store)
    result['reference_date'] = store.reference_date.isoformat()
    return jsonify(result)


@bp.route('/api/customers/exposure')
def customer_exposure():
    """Receivables exposure and risk trend by customer."""
    store = load_store()
    dataset = store.current_dataset()
    exposure = calculate_customer_exposure(dataset.customers, dataset.invoices, store.reference_date)
    records = exposure.astype(object).where(exposure.notna(), None).to_dict('records')
    return jsonify({'customers': records})


@bp.route('/export/compliance.csv')
def export_compliance():
    store = load_store()
    df = issues_to_frame(store.compliance_issues())
    save_store(store)
    return _csv_response(df.to_csv(index=False), 'compliance_issues.csv')


@bp.route('/export/aging.csv')
def export_aging():
    store = load_store()
    df = buckets_to_frame(store.aging_buckets())
    save_store(store)
    return _csv_response(df.to_csv(index=False), f'aging_{store.reference_date.isoformat()}.csv')


@bp.route('/templates/<kind>.csv')
def download_template(kind: str):
    """Download the CSV template for a record kind."""
    try:
        template = CSV_TEMPLATES[RecordKind(kind)]
    except ValueError:
        return _error(f"Unknown template '{kind}'", 404)
    return _csv_response(template['content'], template['filename'])


@bp.route('/api/ai/credit-risk/<customer_id>', methods=['POST'])
def ai_credit_risk(customer_id: str):
    """AI credit risk commentary for one customer."""
    store = load_store()
    dataset = store.current_dataset()

    customer = next((c for c in dataset.customers if c.customer_id == customer_id), None)
    if customer is None:
        return _error(f"Customer '{customer_id}' not found", 404)

    analysis = get_summarizer().summarize_credit_risk(
        customer,
        dataset.invoices,
        store.reference_date,
        temperature=config.ai.credit_risk_temperature
    )
    return jsonify({'customer_id': customer_id, 'analysis': analysis})


@bp.route('/api/ai/audit-summary', methods=['POST'])
def ai_audit_summary():
    """AI executive summary of compliance and aging results."""
    store = load_store()
    issues = store.compliance_issues()
    buckets = store.aging_buckets()
    save_store(store)

    summary = get_summarizer().summarize_audit(
        len(issues),
        buckets,
        temperature=config.ai.audit_summary_temperature
    )
    return jsonify({'summary': summary})
