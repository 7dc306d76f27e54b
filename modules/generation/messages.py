"""User-facing message catalog keyed by error kind."""

from __future__ import annotations

from typing import Dict

from modules.generation.errors import ErrorKind

DEFAULT_LOCALE = "id"

MESSAGES: Dict[str, Dict[ErrorKind, str]] = {
    "id": {
        ErrorKind.EMPTY_INPUT: "Mohon masukkan soal atau stimulus terlebih dahulu.",
        ErrorKind.EMPTY_ANALYSIS_RESULT: "Hasil analisis kosong. Silakan coba lagi.",
        ErrorKind.MALFORMED_RESPONSE: "Gagal membaca struktur data dari AI.",
        ErrorKind.EMPTY_RESPONSE: "Respon model kosong. Silakan coba lagi.",
        ErrorKind.NO_IMAGE_RETURNED: "Model berhasil dipanggil tetapi tidak mengembalikan data gambar.",
        ErrorKind.MODEL_UNAVAILABLE: (
            "Model gambar sedang sibuk atau tidak ditemukan. Silakan coba sesaat lagi."
        ),
        ErrorKind.TRANSPORT_ERROR: "Terjadi kesalahan saat menghubungi layanan AI. Coba lagi nanti.",
        ErrorKind.PERSISTENCE_READ_ERROR: "Riwayat tersimpan tidak dapat dibaca.",
        ErrorKind.PERSISTENCE_WRITE_ERROR: "Gambar berhasil dibuat, tetapi gagal disimpan ke riwayat.",
    },
    "en": {
        ErrorKind.EMPTY_INPUT: "Please enter a question or stimulus first.",
        ErrorKind.EMPTY_ANALYSIS_RESULT: "The analysis came back empty. Please try again.",
        ErrorKind.MALFORMED_RESPONSE: "Could not read the data structure returned by the AI.",
        ErrorKind.EMPTY_RESPONSE: "The model response was empty. Please try again.",
        ErrorKind.NO_IMAGE_RETURNED: "The model responded but returned no image data.",
        ErrorKind.MODEL_UNAVAILABLE: (
            "The image model is busy or could not be found. Please try again in a moment."
        ),
        ErrorKind.TRANSPORT_ERROR: "Something went wrong while contacting the AI service. Try again later.",
        ErrorKind.PERSISTENCE_READ_ERROR: "Saved history could not be read.",
        ErrorKind.PERSISTENCE_WRITE_ERROR: "The image was created but could not be saved to history.",
    },
}


def message_for(kind: ErrorKind, locale: str = DEFAULT_LOCALE) -> str:
    """Return the localized message for an error kind, falling back to the default locale."""
    catalog = MESSAGES.get(locale) or MESSAGES[DEFAULT_LOCALE]
    return catalog.get(kind) or MESSAGES[DEFAULT_LOCALE][kind]


DELETE_FAILURE_TEXT: Dict[str, str] = {
    "id": "Gagal menghapus riwayat. Riwayat tidak berubah.",
    "en": "Could not delete the history item. History is unchanged.",
}


def delete_failure_message(locale: str = DEFAULT_LOCALE) -> str:
    """Return the localized message for a history delete that could not be saved."""
    return DELETE_FAILURE_TEXT.get(locale) or DELETE_FAILURE_TEXT[DEFAULT_LOCALE]


STATUS_TEXT: Dict[str, Dict[str, str]] = {
    "id": {
        "ready": "Siap.",
        "analyzing": "Menganalisis teks...",
        "analysis_done": "Analisis selesai. Lanjutkan dengan membuat gambar.",
        "rendering": "Membuat gambar...",
        "render_done": "Gambar berhasil dibuat dan disimpan ke riwayat.",
        "restored": "Riwayat dimuat ke generator.",
        "deleted": "Riwayat dihapus.",
        "not_found": "Riwayat tidak ditemukan.",
        "history_empty": "Belum ada riwayat.",
    },
    "en": {
        "ready": "Ready.",
        "analyzing": "Analyzing text...",
        "analysis_done": "Analysis complete. Continue by generating the image.",
        "rendering": "Generating image...",
        "render_done": "Image generated and saved to history.",
        "restored": "History item loaded into the generator.",
        "deleted": "History item deleted.",
        "not_found": "History item not found.",
        "history_empty": "No history yet.",
    },
}


def status_for(key: str, locale: str = DEFAULT_LOCALE) -> str:
    """Return a localized status line for the presentation layer."""
    catalog = STATUS_TEXT.get(locale) or STATUS_TEXT[DEFAULT_LOCALE]
    return catalog.get(key) or STATUS_TEXT[DEFAULT_LOCALE][key]
