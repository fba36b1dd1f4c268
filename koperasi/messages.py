"""
Message Catalog Module

Human-readable messages for domain errors and API responses in the
supported locales. Bahasa Indonesia is the cooperative's working language;
English is kept for logs and integrations.
"""

from typing import Any, Dict, Optional


SUPPORTED_LOCALES = ("id", "en")
FALLBACK_LOCALE = "en"


MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        # Errors
        "meeting_not_found": "Meeting {meeting_id} not found",
        "agenda_item_not_found": "Agenda item {agenda_item_id} not found in meeting {meeting_id}",
        "vote_results_not_found": "No vote results for agenda item {agenda_item_id}",
        "meeting_finalized": "Meeting {meeting_id} is completed and can no longer be changed",
        "meeting_already_closed": "Meeting {meeting_id} is already closed",
        "meeting_not_scheduled": "Meeting {meeting_id} cannot be started from status {status}",
        "status_regression": "Meeting status cannot move from {current} to {requested}",
        "agenda_locked": "Agenda of meeting {meeting_id} cannot be replaced after voting has started",
        "voting_closed": "Voting is not allowed on a completed meeting",
        "vote_not_required": "Agenda item {agenda_item_id} does not require voting",
        "duplicate_vote": "Member {member_id} has already voted on agenda item {agenda_item_id}",
        "invalid_choice": "Invalid vote choice {choice}; expected approve, reject or abstain",
        "invalid_status": "Invalid meeting status {status}",
        "missing_field": "Field {field} is required",
        "invalid_date": "Field {field} is not a valid date: {value}",
        "unknown_field": "Field {field} cannot be updated",
        "unknown_member": "Member {member_id} is not registered",
        "invalid_request": "Request could not be processed",
        "permission_denied": "Role {role} is not allowed to perform {permission}",
        "missing_role": "X-User-Role header is required",
        # Success
        "meeting_created": "Meeting created successfully",
        "meeting_updated": "Meeting updated successfully",
        "meeting_started": "Meeting started",
        "meeting_closed": "Meeting closed successfully",
        "attendance_recorded": "Attendance recorded",
        "vote_recorded": "Vote recorded successfully",
    },
    "id": {
        "meeting_not_found": "Rapat tidak ditemukan",
        "agenda_item_not_found": "Agenda tidak ditemukan",
        "vote_results_not_found": "Hasil voting tidak ditemukan",
        "meeting_finalized": "Rapat yang sudah selesai tidak dapat diubah",
        "meeting_already_closed": "Rapat sudah ditutup",
        "meeting_not_scheduled": "Rapat dengan status {status} tidak dapat dimulai",
        "status_regression": "Status rapat tidak dapat diubah dari {current} ke {requested}",
        "agenda_locked": "Agenda tidak dapat diganti setelah voting dimulai",
        "voting_closed": "Voting tidak dapat dilakukan pada rapat yang sudah selesai",
        "vote_not_required": "Agenda ini tidak memerlukan voting",
        "duplicate_vote": "Anda sudah memberikan suara untuk agenda ini",
        "invalid_choice": "Pilihan suara {choice} tidak valid",
        "invalid_status": "Status rapat {status} tidak valid",
        "missing_field": "Kolom {field} wajib diisi",
        "invalid_date": "Kolom {field} bukan tanggal yang valid",
        "unknown_field": "Kolom {field} tidak dapat diubah",
        "unknown_member": "Anggota {member_id} tidak terdaftar",
        "invalid_request": "Permintaan tidak dapat diproses",
        "permission_denied": "Peran {role} tidak memiliki izin {permission}",
        "missing_role": "Header X-User-Role wajib disertakan",
        "meeting_created": "Rapat berhasil dibuat",
        "meeting_updated": "Rapat berhasil diperbarui",
        "meeting_started": "Rapat dimulai",
        "meeting_closed": "Rapat berhasil ditutup",
        "attendance_recorded": "Kehadiran berhasil dicatat",
        "vote_recorded": "Suara berhasil disimpan",
    },
}


def normalize_locale(locale: Optional[str], default: str = FALLBACK_LOCALE) -> str:
    """
    Reduce a locale tag or Accept-Language header to a supported locale.

    "id-ID,id;q=0.9,en;q=0.8" -> "id"; unsupported or empty -> default.
    """
    if not locale:
        return default if default in SUPPORTED_LOCALES else FALLBACK_LOCALE

    for part in locale.split(","):
        tag = part.split(";")[0].strip().lower()
        primary = tag.split("-")[0].split("_")[0]
        if primary in SUPPORTED_LOCALES:
            return primary

    return default if default in SUPPORTED_LOCALES else FALLBACK_LOCALE


def render_message(key: str, locale: str = FALLBACK_LOCALE,
                   params: Optional[Dict[str, Any]] = None) -> str:
    """Render a catalog message, falling back to English and then to the key"""
    catalog = MESSAGES.get(locale, MESSAGES[FALLBACK_LOCALE])
    template = catalog.get(key) or MESSAGES[FALLBACK_LOCALE].get(key)
    if template is None:
        return key
    try:
        return template.format(**(params or {}))
    except KeyError:
        return template
