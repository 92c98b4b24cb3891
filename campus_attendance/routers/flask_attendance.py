"""
Flask Attendance Router
Sessions, rotating QR codes, scans, manual overrides and live stats
"""

from flask import Blueprint, current_app, request, jsonify
import logging

from ..core.exceptions import ConflictError, CustomHTTPException, ResourceNotFoundError, ValidationError
from ..core.qr_generator import LightweightQRGenerator
from ..core.validators import parse_body, parse_optional_positive_int
from ..schemas.attendance import SessionCreate, VerifyQRRequest, ManualAttendanceRequest

logger = logging.getLogger(__name__)

attendance_bp = Blueprint('attendance', __name__)

def _core():
    return current_app.extensions['campus_attendance']

@attendance_bp.route('/sessions', methods=['POST'])
def create_session():
    """Open a session and start rotating its QR token"""
    try:
        data = parse_body(SessionCreate, request.get_json(silent=True))
        session = _core().sessions.create_session(data)

        return jsonify({
            "message": "Session created successfully",
            "session": session.to_response()
        }), 201

    except CustomHTTPException:
        raise
    except Exception as e:
        logger.error(f"Create session error: {e}")
        raise CustomHTTPException(500, "Failed to create session")

@attendance_bp.route('/sessions/<session_id>', methods=['GET'])
def get_session(session_id):
    """Get a session"""
    session = _core().sessions.get_session(session_id)
    return jsonify({"session": session.to_response()})

@attendance_bp.route('/sessions/faculty/<faculty_id>', methods=['GET'])
def get_faculty_sessions(faculty_id):
    """Active sessions of one faculty member"""
    sessions = _core().sessions.list_active_sessions(faculty_id)
    return jsonify({
        "sessions": [s.to_response() for s in sessions],
        "total_count": len(sessions)
    })

@attendance_bp.route('/sessions/<session_id>/end', methods=['POST'])
def end_session(session_id):
    """End a session; its token rotation stops"""
    try:
        session = _core().sessions.end_session(session_id)
        return jsonify({
            "message": "Session ended successfully",
            "session": session.to_response()
        })

    except CustomHTTPException:
        raise
    except Exception as e:
        logger.error(f"End session error: {e}")
        raise CustomHTTPException(500, "Failed to end session")

@attendance_bp.route('/sessions/<session_id>/qr', methods=['GET'])
def get_current_qr(session_id):
    """Current token for the faculty display, rendered as an SVG QR code"""
    core = _core()
    session = core.sessions.get_session(session_id)
    if not session.is_active:
        raise ConflictError("Session is not active", field="is_active")

    # another worker or an earlier process may have been rotating this session
    core.sessions.ensure_rotation(session)

    qr_token = core.tokens.current(session_id)
    if qr_token is None:
        raise ResourceNotFoundError("Live QR token for session", session_id)

    payload = core.tokens.build_payload(qr_token, session)
    settings = core.settings
    qr_info = LightweightQRGenerator.generate_payload_qr(payload, settings.QR_CODE_SIZE, settings.QR_CODE_BORDER)

    return jsonify({
        "token": qr_token.to_response(),
        "payload": payload.model_dump(by_alias=True),
        "qr_code": qr_info["image"]
    })

@attendance_bp.route('/verify-qr', methods=['POST'])
def verify_qr():
    """Student scan: validate the token, classify location, record attendance"""
    try:
        data = parse_body(VerifyQRRequest, request.get_json(silent=True))
        record = _core().attendance.verify_and_mark(data)

        return jsonify({
            "message": "Attendance marked successfully",
            "attendance": record.to_response(),
            "geofencingStatus": record.geofencing_status.value
        }), 201

    except CustomHTTPException:
        raise
    except Exception as e:
        logger.error(f"QR verification error: {e}")
        raise CustomHTTPException(500, "Failed to verify QR code and mark attendance")

@attendance_bp.route('/sessions/<session_id>/manual', methods=['POST'])
def manual_attendance(session_id):
    """Faculty marks a student present or absent without a scan"""
    try:
        data = parse_body(ManualAttendanceRequest, request.get_json(silent=True))
        record = _core().attendance.manual_mark(session_id, data)

        return jsonify({
            "message": f"Student {record.student_id} marked {record.status.value}",
            "attendance": record.to_response()
        }), 201

    except CustomHTTPException:
        raise
    except Exception as e:
        logger.error(f"Manual attendance error: {e}")
        raise CustomHTTPException(500, "Failed to mark attendance")

@attendance_bp.route('/sessions/<session_id>/records', methods=['GET'])
def get_session_records(session_id):
    """All attendance records of a session"""
    records = _core().attendance.session_records(session_id)
    return jsonify({
        "records": [r.to_response() for r in records],
        "total_count": len(records)
    })

@attendance_bp.route('/sessions/<session_id>/stats', methods=['GET'])
def get_session_stats(session_id):
    """Live counts for the faculty dashboard"""
    total_enrolled = parse_optional_positive_int(request.args.get('total_enrolled'), 'total_enrolled')
    stats = _core().attendance.session_stats(session_id, total_enrolled)
    return jsonify(stats.model_dump(by_alias=True))

@attendance_bp.route('/students/<student_id>/records', methods=['GET'])
def get_student_records(student_id):
    """A student's attendance history, newest first"""
    records = _core().attendance.student_records(student_id)
    return jsonify({
        "records": [r.to_response() for r in records],
        "total_count": len(records)
    })

@attendance_bp.route('/qr-tokens/<token>', methods=['GET'])
def check_token(token):
    """Token validity probe"""
    session_id = request.args.get('session_id')
    if not session_id:
        raise ValidationError("session_id query parameter is required", field="session_id")

    if not _core().tokens.validate(session_id, token):
        return jsonify({"valid": False, "message": "Invalid or expired token"}), 404
    return jsonify({"valid": True})

@attendance_bp.route('/qr-tokens/cleanup', methods=['DELETE'])
def cleanup_tokens():
    """Purge expired tokens of every session"""
    removed = _core().tokens.cleanup_expired()
    return jsonify({
        "message": "Expired tokens cleaned up successfully",
        "removed": removed
    })
